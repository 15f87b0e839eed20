"""Middleware components."""

from .handle import HandleMessageMiddleware
from .logging import LoggingMiddleware
from .pipeline import build_pipeline, end_of_chain
from .send import SendMessageMiddleware

__all__ = [
    "HandleMessageMiddleware",
    "LoggingMiddleware",
    "SendMessageMiddleware",
    "build_pipeline",
    "end_of_chain",
]

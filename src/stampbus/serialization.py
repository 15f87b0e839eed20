"""EnvelopeSerializer: JSON roundtrip with MessageTypeRegistry hydration."""

from __future__ import annotations

import dataclasses
import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .envelope import Envelope
from .primitives.exceptions import SerializationError
from .stamps import BUILTIN_STAMPS, NON_SENDABLE_STAMPS

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .registry import MessageTypeRegistry
    from .stamps import Stamp


def _json_default(obj: Any) -> Any:
    """Serialize datetime and other non-JSON types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class EnvelopeSerializer:
    """Encode/decode an :class:`Envelope` to/from JSON bytes.

    Wire format::

        {"type": "Hello",
         "body": {"name": "world"},
         "stamps": [{"type": "RetryCountStamp", "body": {"count": 1}}]}

    Message classes are resolved through the ``MessageTypeRegistry``; stamps
    through the ``stamp_types`` given at construction (built-ins by default).
    Stamps describing a single delivery are never written.
    """

    def __init__(
        self,
        registry: MessageTypeRegistry,
        stamp_types: Iterable[type[Stamp]] = BUILTIN_STAMPS,
    ) -> None:
        self._registry = registry
        self._stamp_types: dict[str, type[Stamp]] = {
            cls.__name__: cls for cls in stamp_types
        }

    @property
    def registry(self) -> MessageTypeRegistry:
        return self._registry

    def encode(self, envelope: Envelope) -> bytes:
        """Encode *envelope* to JSON bytes."""
        message = envelope.message
        type_name = self._registry.name_of(type(message))
        if type_name is None:
            raise SerializationError(
                f"Message type {type(message).__name__} is not registered"
            )
        try:
            data = {
                "type": type_name,
                "body": self._dump_message(message),
                "stamps": [
                    {"type": type(s).__name__, "body": s.model_dump(mode="json")}
                    for s in envelope.stamps
                    if not isinstance(s, NON_SENDABLE_STAMPS)
                ],
            }
            return json.dumps(data, default=_json_default).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(str(e)) from e

    def decode(self, raw: bytes) -> Envelope:
        """Decode JSON bytes to an :class:`Envelope`."""
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Malformed envelope: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            raise SerializationError("Envelope has no message type")
        body = data.get("body") or {}
        if not isinstance(body, dict):
            raise SerializationError("Envelope body must be a JSON object")
        raw_stamps = data.get("stamps") or []
        if not isinstance(raw_stamps, list) or not all(
            isinstance(s, dict) for s in raw_stamps
        ):
            raise SerializationError("Envelope stamps must be a list of objects")

        try:
            message = self._registry.hydrate(data["type"], body)
            stamps = [self._load_stamp(s) for s in raw_stamps]
        except LookupError as e:
            raise SerializationError(str(e)) from e
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Could not hydrate {data['type']}: {e}"
            ) from e
        return Envelope(message=message, stamps=tuple(stamps))

    def _dump_message(self, message: Any) -> dict[str, Any]:
        if isinstance(message, BaseModel):
            return message.model_dump(mode="json")
        if dataclasses.is_dataclass(message) and not isinstance(message, type):
            return dataclasses.asdict(message)
        if isinstance(message, dict):
            return dict(message)
        raise TypeError(
            f"Cannot serialize message of type {type(message).__name__}"
        )

    def _load_stamp(self, data: dict[str, Any]) -> Stamp:
        stamp_class = self._stamp_types.get(data.get("type", ""))
        if stamp_class is None:
            raise LookupError(f"Stamp type '{data.get('type')}' is not registered")
        return stamp_class.model_validate(data.get("body") or {})

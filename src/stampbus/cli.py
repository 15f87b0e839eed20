"""Command line entry points: consume, send and transports."""

import asyncio
import contextlib
import importlib
import json
import logging
import signal
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stampbus import __version__
from stampbus.envelope import Envelope
from stampbus.primitives.exceptions import ConfigurationError, StampBusError
from stampbus.stamps import HandledStamp, SentStamp
from stampbus.wiring import Runtime
from stampbus.worker import Worker

app = typer.Typer(
    name="stampbus",
    help="stampbus - message bus and worker runtime",
    no_args_is_help=True,
)

console = Console()

APP_HELP = "Application wiring as 'module:attribute' (a Runtime or a factory)."


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_runtime(path: str) -> Runtime:
    """Resolve ``module:attribute`` to a Runtime, calling it if it is a factory."""
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter(f"expected 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name}: {e}") from e
    target = getattr(module, attribute, None)
    if target is None:
        raise typer.BadParameter(f"{module_name} has no attribute {attribute!r}")
    if not isinstance(target, Runtime) and callable(target):
        target = target()
    if not isinstance(target, Runtime):
        raise typer.BadParameter(f"{path} does not provide a stampbus Runtime")
    return target


def version_callback(value: bool) -> None:
    if value:
        console.print(f"stampbus v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
) -> None:
    """stampbus - message bus and worker runtime."""


# ============================================================================
# Consumer
# ============================================================================


@app.command()
def consume(
    app_path: str = typer.Argument(..., metavar="APP", help=APP_HELP),
    receivers: List[str] = typer.Argument(..., help="Receiver transport names"),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", help="Stop after this many messages"
    ),
    time_limit: Optional[float] = typer.Option(
        None, "--time-limit", "-t", help="Stop after this many seconds"
    ),
    sleep: Optional[float] = typer.Option(
        None, "--sleep", help="Seconds to wait when no message is available"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Consume messages from RECEIVERS until stopped (Ctrl+C / SIGTERM)."""
    _configure_logging(verbose)
    runtime = load_runtime(app_path)
    try:
        worker = runtime.worker(
            receivers, limit=limit, time_limit=time_limit, sleep=sleep
        )
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"[green]✓[/green] Consuming from [cyan]{', '.join(receivers)}[/cyan]"
    )
    asyncio.run(_run_worker(runtime, worker))
    console.print(f"Stopped after {worker.processed} message(s)")


async def _run_worker(runtime: Runtime, worker: Worker) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, worker.request_stop)
    try:
        await worker.run()
    finally:
        await runtime.close()


# ============================================================================
# Producer
# ============================================================================


@app.command()
def send(
    app_path: str = typer.Argument(..., metavar="APP", help=APP_HELP),
    message_type: str = typer.Argument(..., help="Registered message type name"),
    payload: str = typer.Argument("{}", help="Message body as a JSON object"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build MESSAGE_TYPE from PAYLOAD and dispatch it on the bus."""
    _configure_logging(verbose)
    runtime = load_runtime(app_path)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"payload is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise typer.BadParameter("payload must be a JSON object")

    try:
        message = runtime.registry.hydrate(message_type, data)
    except LookupError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    except (TypeError, ValueError) as e:
        console.print(f"[red]Error: invalid {message_type}: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    try:
        envelope = asyncio.run(_dispatch(runtime, message))
    except StampBusError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    for stamp in envelope.all_stamps_of(SentStamp):
        console.print(f"[green]✓[/green] Sent to [cyan]{stamp.transport_name}[/cyan]")
    for stamp in envelope.all_stamps_of(HandledStamp):
        console.print(f"[green]✓[/green] Handled by [cyan]{stamp.handler_name}[/cyan]")


async def _dispatch(runtime: Runtime, message: object) -> Envelope:
    try:
        return await runtime.bus.dispatch(message)
    finally:
        await runtime.close()


# ============================================================================
# Introspection
# ============================================================================


@app.command()
def transports(
    app_path: str = typer.Argument(..., metavar="APP", help=APP_HELP),
) -> None:
    """List configured transports and their retry strategies."""
    runtime = load_runtime(app_path)

    table = Table(title="Transports")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Retry strategy", style="yellow")

    failure = runtime.settings.failure_transport
    for name in runtime.transports.names():
        strategy = runtime.retry_strategies.get(name)
        label = f"{name} (failure)" if name == failure else name
        table.add_row(
            label,
            type(runtime.transports.get(name)).__name__,
            repr(strategy) if strategy is not None else "[dim]no retries[/dim]",
        )
    console.print(table)


if __name__ == "__main__":
    app()

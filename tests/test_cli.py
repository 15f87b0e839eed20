"""Tests for the stampbus command line."""

from __future__ import annotations

import cli_app
import pytest
from conftest import Hello
from typer.testing import CliRunner

from stampbus import __version__
from stampbus.cli import app, load_runtime
from stampbus.envelope import Envelope
from stampbus.wiring import Runtime

runner = CliRunner()

APP = "cli_app:make_runtime"


@pytest.fixture(autouse=True)
def _reset_app() -> None:
    cli_app.QUEUE.reset()
    cli_app.GREETED.clear()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_load_runtime_calls_factory() -> None:
    assert isinstance(load_runtime(APP), Runtime)


@pytest.mark.parametrize(
    "path",
    ["cli_app", "no_such_module:thing", "cli_app:missing", "cli_app:not_a_runtime"],
)
def test_load_runtime_rejects_bad_paths(path: str) -> None:
    import typer

    with pytest.raises(typer.BadParameter):
        load_runtime(path)


def test_send_handles_local_message() -> None:
    result = runner.invoke(app, ["send", APP, "Hello", '{"name": "world"}'])

    assert result.exit_code == 0, result.output
    assert "Handled by greet" in result.output
    assert cli_app.GREETED == ["world"]


def test_send_routes_to_transport() -> None:
    result = runner.invoke(app, ["send", APP, "Greeting", '{"text": "hi"}'])

    assert result.exit_code == 0, result.output
    assert "Sent to async" in result.output
    assert len(cli_app.QUEUE.sent) == 1


def test_send_unknown_type_fails() -> None:
    result = runner.invoke(app, ["send", APP, "Nope", "{}"])
    assert result.exit_code == 1
    assert "not registered" in result.output


def test_send_invalid_payload_fails() -> None:
    result = runner.invoke(app, ["send", APP, "Hello", "{}"])
    assert result.exit_code == 1
    assert "invalid Hello" in result.output


def test_send_rejects_non_json_payload() -> None:
    result = runner.invoke(app, ["send", APP, "Hello", "not json"])
    assert result.exit_code == 2


def test_send_rejects_non_object_payload() -> None:
    result = runner.invoke(app, ["send", APP, "Greeting", "[1, 2]"])
    assert result.exit_code == 2
    assert cli_app.QUEUE.sent == []


def test_consume_processes_queued_messages() -> None:
    import asyncio

    asyncio.run(cli_app.QUEUE.send(Envelope.wrap(Hello(name="queued"))))

    result = runner.invoke(
        app, ["consume", APP, "async", "--limit", "1", "--sleep", "0.01"]
    )

    assert result.exit_code == 0, result.output
    assert "Consuming from async" in result.output
    assert "Stopped after 1 message(s)" in result.output
    assert cli_app.GREETED == ["queued"]
    assert len(cli_app.QUEUE.acknowledged) == 1


def test_consume_stops_at_time_limit() -> None:
    result = runner.invoke(
        app, ["consume", APP, "async", "--time-limit", "0.05", "--sleep", "0.01"]
    )
    assert result.exit_code == 0, result.output
    assert "Stopped after 0 message(s)" in result.output


def test_consume_unknown_receiver_fails() -> None:
    result = runner.invoke(app, ["consume", APP, "nope"])
    assert result.exit_code == 1
    assert "nope" in result.output


def test_transports_lists_configuration() -> None:
    result = runner.invoke(app, ["transports", APP])
    assert result.exit_code == 0, result.output
    assert "async" in result.output
    assert "(failure)" in result.output
    assert "InMemoryTransport" in result.output

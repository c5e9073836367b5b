"""Tests for CLI commands against a scripted daemon."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gpsd_json.cli import app
from gpsd_json.client.blocking import GpsdClient
from gpsd_json.config import Config
from gpsd_json.errors import TransportError

VERSION = b'{"class":"VERSION","release":"3.25","rev":"3.25","proto_major":3,"proto_minor":15}\n'
DEVICES = b'{"class":"DEVICES","devices":[]}\n'
WATCH_JSON = b'{"class":"WATCH","enable":true,"json":true}\n'
WATCH_OFF = b'{"class":"WATCH","enable":false}\n'
TPV = b'{"class":"TPV","device":"/dev/ttyUSB0","mode":3,"lat":35.0,"lon":139.0}\n'

runner = CliRunner()


class ScriptedSocket:
    """Socket stand-in that returns scripted chunks and records what was sent."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = list(chunks)
        self.sent: list[bytes] = []
        self.closed = False

    def recv(self, bufsize: int, /) -> bytes:
        return self._chunks.pop(0) if self._chunks else b""

    def sendall(self, data: bytes, /) -> None:
        self.sent.append(data)

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("gpsd_json")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _serve(monkeypatch: pytest.MonkeyPatch, sock: ScriptedSocket) -> None:
    def from_config(cls: type[GpsdClient], cfg: Config) -> GpsdClient:
        return GpsdClient.open(sock, required=cfg.required_version)

    monkeypatch.setattr(GpsdClient, "from_config", classmethod(from_config))


class TestQueries:
    """One-shot query commands."""

    def test_version_json(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """version prints the daemon version envelope."""
        sock = ScriptedSocket(VERSION, VERSION)
        _serve(monkeypatch, sock)
        result = runner.invoke(app, ["--json", "--data-dir", str(tmp_path), "version"])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["release"] == "3.25"
        assert sock.sent == [b"?VERSION;"]
        assert sock.closed

    def test_devices_human(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """devices lists one line per device."""
        devices = b'{"class":"DEVICES","devices":[{"path":"/dev/ttyUSB0","driver":"u-blox"}]}\n'
        _serve(monkeypatch, ScriptedSocket(VERSION, devices))
        result = runner.invoke(app, ["--data-dir", str(tmp_path), "devices"])
        assert result.exit_code == 0
        assert result.output.startswith("/dev/ttyUSB0  u-blox  inactive")

    def test_connection_error(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """Client errors exit with code 1 and an error envelope."""

        def refuse(cls: type[GpsdClient], cfg: Config) -> GpsdClient:
            raise TransportError("Cannot connect to 127.0.0.1:2947: Connection refused")

        monkeypatch.setattr(GpsdClient, "from_config", classmethod(refuse))
        result = runner.invoke(app, ["--json", "--data-dir", str(tmp_path), "version"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "io_error"


class TestWatch:
    """The streaming command."""

    def test_json_count(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        """watch -n 1 prints one report and stops watching."""
        sock = ScriptedSocket(VERSION, DEVICES + WATCH_JSON, TPV, DEVICES + WATCH_OFF)
        _serve(monkeypatch, sock)
        result = runner.invoke(app, ["--json", "--data-dir", str(tmp_path), "watch", "-n", "1"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["class"] == "TPV"
        assert data["lat"] == 35.0
        assert sock.sent[0] == b'?WATCH={"enable":true,"json":true};'
        assert sock.sent[-1].startswith(b'?WATCH={"enable":false')
        assert sock.closed

    def test_device_needs_sentence_format(self, tmp_path: Path):
        """--device is rejected for the JSON format."""
        result = runner.invoke(app, ["--data-dir", str(tmp_path), "watch", "--device", "/dev/ttyUSB0"])
        assert result.exit_code != 0

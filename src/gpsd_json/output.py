"""Structured output for CLI and JSON modes."""

# ruff: noqa: T201

import json
import sys
from typing import NoReturn

import typer

from gpsd_json.errors import DecodeError
from gpsd_json.protocol.responses import DeviceList, Message, Poll, Unknown, Version, kind_of


def _message_data(message: Message) -> dict[str, object]:
    """Wire-shaped payload of a message, tagged with its class."""
    if isinstance(message, Unknown):
        return {"class": message.kind, "raw": message.raw}
    return {"class": message.kind, **message.to_wire()}


class Output:
    """Handles all CLI output in JSON or human-readable format."""

    def __init__(self, *, json_mode: bool) -> None:
        """Initialize output handler.

        Args:
            json_mode: If True, output JSON envelopes; otherwise human-readable text.

        """
        self._json_mode = json_mode

    def _success(self, data: dict[str, object], message: str) -> None:
        """Print a success result in JSON or human-readable format."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": data}))
        else:
            print(message)

    def print_error_and_exit(self, code: str, message: str) -> NoReturn:
        """Print an error in JSON or human-readable format and exit with code 1.

        Raises:
            typer.Exit: Always, with code 1.

        """
        if self._json_mode:
            print(json.dumps({"ok": False, "error": code, "message": message}))
        else:
            print(f"Error: {message}", file=sys.stderr)
        raise typer.Exit(code=1)

    # --- Queries ---

    def print_version(self, version: Version) -> None:
        """Print daemon version information."""
        self._success(
            version.to_wire(),
            f"gpsd {version.release} (rev {version.rev}), protocol {version.proto_major}.{version.proto_minor}",
        )

    def print_devices(self, devices: DeviceList) -> None:
        """Print the daemon's device list."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": devices.to_wire()}))
            return
        if not devices.devices:
            print("No devices.")
        for device in devices.devices:
            driver = device.driver or "unknown driver"
            activated = device.activated.isoformat() if device.activated else "inactive"
            print(f"{device.path}  {driver}  {activated}")

    def print_poll(self, poll: Poll) -> None:
        """Print a poll snapshot."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": poll.to_wire()}))
            return
        print(f"Active devices: {poll.active or 0}")
        for tpv in poll.tpv:
            print(f"{tpv.device}: mode {tpv.mode.name}, lat {tpv.lat}, lon {tpv.lon}, alt {tpv.alt}")

    # --- Streaming ---

    def print_message(self, message: Message) -> None:
        """Print one structured stream message."""
        if self._json_mode:
            print(json.dumps({"ok": True, "data": _message_data(message)}))
        elif isinstance(message, Unknown):
            print(message.raw)
        else:
            print(f"{kind_of(message)} {message.to_json()}")

    def print_line(self, line: str | bytes) -> None:
        """Print one sentence or raw stream line."""
        text = line.decode(errors="replace").rstrip() if isinstance(line, bytes) else line
        if self._json_mode:
            print(json.dumps({"ok": True, "data": {"line": text}}))
        else:
            print(text)

    def print_stream_error(self, error: DecodeError) -> None:
        """Print a stream element that failed to decode, without exiting."""
        if self._json_mode:
            print(json.dumps({"ok": False, "error": error.code, "message": str(error)}))
        else:
            print(f"Error: {error}", file=sys.stderr)

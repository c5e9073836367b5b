"""Commands sent to the daemon.

A command is one ASCII line with no terminator of its own::

    ?VERSION;
    ?WATCH;
    ?WATCH={"enable":true,"json":true};

Parameters are compact JSON with absent fields omitted, so the daemon keeps
its own defaults for anything the client did not set.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from gpsd_json.protocol.types import Device, Watch


class Command(enum.StrEnum):
    """Command names understood by the daemon."""

    VERSION = "VERSION"
    DEVICES = "DEVICES"
    DEVICE = "DEVICE"
    WATCH = "WATCH"
    POLL = "POLL"


_PARAM_TYPES: dict[Command, type[Watch | Device]] = {Command.WATCH: Watch, Command.DEVICE: Device}


@dataclass(frozen=True)
class Request:
    """Daemon command with an optional parameter object."""

    command: Command
    params: Watch | Device | None = None

    def __post_init__(self) -> None:
        if self.params is None:
            return
        expected = _PARAM_TYPES.get(self.command)
        if expected is None:
            msg = f"?{self.command} takes no parameters."
            raise ValueError(msg)
        if not isinstance(self.params, expected):
            msg = f"?{self.command} parameters must be {expected.__name__}, got {type(self.params).__name__}."
            raise TypeError(msg)

    @staticmethod
    def version() -> Request:
        """Build a ?VERSION request."""
        return Request(Command.VERSION)

    @staticmethod
    def devices() -> Request:
        """Build a ?DEVICES request."""
        return Request(Command.DEVICES)

    @staticmethod
    def device(device: Device | None = None) -> Request:
        """Build a ?DEVICE request: a query without a device, a reconfiguration with one."""
        return Request(Command.DEVICE, device)

    @staticmethod
    def watch(watch: Watch | None = None) -> Request:
        """Build a ?WATCH request: a query without a policy, a change with one."""
        return Request(Command.WATCH, watch)

    @staticmethod
    def poll() -> Request:
        """Build a ?POLL request."""
        return Request(Command.POLL)


def encode_request(req: Request) -> bytes:
    """Serialize a Request to its command line."""
    if req.params is None:
        return f"?{req.command};".encode("ascii")
    return f"?{req.command}={req.params.to_json()};".encode("ascii")

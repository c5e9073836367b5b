"""Request/response correlation for commands answered by one or more frames.

Exchanges are I/O-free: a connection sends the command, then feeds every
decoded frame (``None`` for end-of-stream) into :meth:`Exchange.receive`
until it returns a result. The blocking and asyncio connections drive the
same exchanges, so the sequencing rules live in one place.

Reply sequences:

    ?VERSION; ?DEVICES; ?DEVICE; ?POLL;  ->  one frame of the matching kind
    ?WATCH...;                           ->  DEVICES, then WATCH
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

from gpsd_json.errors import DaemonError, DecodeError, ProtocolError
from gpsd_json.protocol.responses import DeviceList, Error, Message, WatchReport, kind_of

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class WatchResult:
    """The pair of frames answering a ?WATCH command."""

    watch: WatchReport
    devices: DeviceList | None


class Exchange(ABC, Generic[T]):
    """Consumes reply frames until a command's result is complete."""

    @abstractmethod
    def receive(self, message: Message | None) -> T | None:
        """Consume one frame. Return the result when complete, None if more frames are needed."""

    def receive_error(self, error: DecodeError) -> None:
        """Consume a frame that failed to decode. Aborts the exchange unless overridden."""
        raise error


def _unexpected(expected: str, message: Message | None) -> ProtocolError:
    if message is None:
        return ProtocolError(f"Connection closed while waiting for {expected} response.")
    if isinstance(message, Error):
        return DaemonError(message.message)
    return ProtocolError(f"Expected {expected} response, got {kind_of(message)}.")


class SingleReply(Exchange[T]):
    """Exactly one frame of the expected kind."""

    def __init__(self, expected: type[T]) -> None:
        self._expected = expected

    def receive(self, message: Message | None) -> T:
        if isinstance(message, self._expected):
            return message
        raise _unexpected(self._expected.kind, message)  # type: ignore[attr-defined]


class WatchReply(Exchange[WatchResult]):
    """DEVICES followed by WATCH, strictly in that order."""

    def __init__(self) -> None:
        self._devices: DeviceList | None = None

    def receive(self, message: Message | None) -> WatchResult | None:
        if self._devices is None:
            if isinstance(message, DeviceList):
                self._devices = message
                return None
            raise _unexpected(DeviceList.kind, message)
        if isinstance(message, WatchReport):
            return WatchResult(watch=message, devices=self._devices)
        raise _unexpected(WatchReport.kind, message)


class WatchShutdown(Exchange[WatchResult]):
    """Reply to the ?WATCH that stops streaming.

    Reports already in flight when the command was sent may arrive before the
    confirmation; they are discarded, and one undecodable frame among them is
    tolerated. When leaving a sentence stream (NMEA or raw), lines that are
    not JSON objects at all are in-flight sentences and do not count.
    """

    def __init__(self, *, sentences: bool = False) -> None:
        self._devices: DeviceList | None = None
        self._decode_errors = 0
        self._sentences = sentences

    def receive(self, message: Message | None) -> WatchResult | None:
        if message is None:
            raise ProtocolError("Stream ended unexpectedly while closing.")
        if isinstance(message, WatchReport):
            return WatchResult(watch=message, devices=self._devices)
        if isinstance(message, DeviceList):
            self._devices = message
        else:
            logger.debug("Discarding %s received while closing stream", kind_of(message))
        return None

    def receive_error(self, error: DecodeError) -> None:
        if self._sentences and not error.frame.lstrip().startswith(b"{"):
            logger.debug("Discarding sentence received while closing stream: %r", error.frame)
            return
        self._decode_errors += 1
        if self._decode_errors > 1:
            msg = f"Second undecodable frame while closing stream: {error}"
            raise ProtocolError(msg) from error
        logger.debug("Discarding undecodable frame received while closing stream: %s", error)

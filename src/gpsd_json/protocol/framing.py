"""Newline framing for the GPSD JSON protocol.

Every message the daemon sends is one line terminated by ``\\n``. The decoder
here is a resumable state machine independent of how bytes arrive: the blocking
and asyncio readers both feed it and ask it for frames.

Stream layout::

    {"class":"VERSION",...}\\n{"class":"DEVICES",...}\\n{"class":"WA
    |<------- frame ------->|<------- frame ------->|<- pending ->

A frame boundary is the first newline in stream order; the JSON inside does
not need to be complete for the boundary to be found.
"""

import enum
import logging

logger = logging.getLogger(__name__)

FRAME_DELIMITER = b"\n"


class Signal(enum.Enum):
    """Non-frame results of :meth:`FrameDecoder.next_frame`."""

    NEED_DATA = "need_data"
    END_OF_STREAM = "end_of_stream"


NEED_DATA = Signal.NEED_DATA
END_OF_STREAM = Signal.END_OF_STREAM


class FrameDecoder:
    """Extract newline-terminated frames from an arbitrarily chunked byte stream."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        # Bytes before this offset are known to contain no delimiter.
        self._scanned = 0
        self._eof = False

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet returned as a frame."""
        return len(self._buffer)

    @property
    def at_eof(self) -> bool:
        """True once end-of-stream has been fed."""
        return self._eof

    def feed(self, data: bytes) -> None:
        """Append bytes received from the transport. An empty chunk is a no-op."""
        if not data:
            return
        if self._eof:
            msg = "Cannot feed data after end-of-stream."
            raise RuntimeError(msg)
        self._buffer += data

    def feed_eof(self) -> None:
        """Record that the transport will deliver no more bytes."""
        self._eof = True

    def next_frame(self) -> bytes | Signal:
        """Return the next complete frame (trailing newline included), or a signal.

        ``NEED_DATA`` leaves all buffered bytes in place; calling again after
        :meth:`feed` continues the scan where it stopped.

        An unterminated fragment left at end-of-stream is discarded and
        ``END_OF_STREAM`` is returned.
        """
        pos = self._buffer.find(FRAME_DELIMITER, self._scanned)
        if pos >= 0:
            frame = bytes(self._buffer[: pos + 1])
            del self._buffer[: pos + 1]
            self._scanned = 0
            return frame

        self._scanned = len(self._buffer)
        if not self._eof:
            return NEED_DATA

        if self._buffer:
            logger.debug("Discarding %d bytes of unterminated trailing frame", len(self._buffer))
            self._buffer.clear()
            self._scanned = 0
        return END_OF_STREAM

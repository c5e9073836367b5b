"""Session bootstrap: the version exchange that gates every other operation.

The daemon speaks first. On connect it sends a single VERSION frame, and the
client must accept it before issuing any command:

    UNESTABLISHED --start()--> VERSION_PENDING --receive(VERSION)--> READY
                                      |
                                      +--anything else--> FAILED
"""

from __future__ import annotations

import enum
import logging
from typing import NoReturn

from pydantic import BaseModel, ConfigDict, Field

from gpsd_json.errors import DecodeError, ProtocolError, UnsupportedVersionError
from gpsd_json.protocol.responses import Message, Version, kind_of

logger = logging.getLogger(__name__)


class ProtocolVersion(BaseModel):
    """A (major, minor) protocol version."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def satisfies(self, required: ProtocolVersion) -> bool:
        """Check whether a server speaking this version offers what ``required`` needs.

        Major versions must match exactly; the server's minor version must be at
        least the required one.
        """
        return self.major == required.major and self.minor >= required.minor


# Oldest protocol revision whose messages this client understands.
REQUIRED_VERSION = ProtocolVersion(major=3, minor=15)


class SessionState(enum.Enum):
    """Handshake progress."""

    UNESTABLISHED = "unestablished"
    VERSION_PENDING = "version_pending"
    READY = "ready"
    FAILED = "failed"


class Handshake:
    """Validates the daemon's greeting against the required protocol version."""

    def __init__(self, required: ProtocolVersion = REQUIRED_VERSION) -> None:
        """Initialize the handshake.

        Args:
            required: Protocol version the client needs the daemon to support.

        """
        self.required = required
        self.state = SessionState.UNESTABLISHED
        self.server_version: ProtocolVersion | None = None

    def start(self) -> None:
        """Mark the connection as open and waiting for the greeting."""
        if self.state is not SessionState.UNESTABLISHED:
            msg = f"Handshake already started (state: {self.state.value})."
            raise RuntimeError(msg)
        self.state = SessionState.VERSION_PENDING

    def receive(self, message: Message | None) -> Version:
        """Consume the first frame of the session.

        Args:
            message: The decoded first frame, or None if the stream ended.

        Returns:
            The daemon's version information.

        Raises:
            ProtocolError: Stream ended or the first frame is not VERSION.
            UnsupportedVersionError: The advertised version is incompatible.

        """
        self._require_pending()
        if message is None:
            self._fail(ProtocolError("Connection closed by daemon before version message."))
        if not isinstance(message, Version):
            self._fail(ProtocolError(f"Expected VERSION as first message, got {kind_of(message)}."))

        server = ProtocolVersion(major=message.proto_major, minor=message.proto_minor)
        self.server_version = server
        if not server.satisfies(self.required):
            self._fail(UnsupportedVersionError(server.major, server.minor))

        self.state = SessionState.READY
        logger.info("Connected to gpsd %s (protocol %s)", message.release, server)
        return message

    def receive_error(self, error: DecodeError) -> NoReturn:
        """Fail the handshake because the first frame could not be decoded."""
        self._require_pending()
        self._fail(ProtocolError(f"Failed to read version message from daemon: {error}"), cause=error)

    def _require_pending(self) -> None:
        if self.state is not SessionState.VERSION_PENDING:
            msg = f"Handshake is not waiting for a version message (state: {self.state.value})."
            raise RuntimeError(msg)

    def _fail(self, error: ProtocolError | UnsupportedVersionError, cause: Exception | None = None) -> NoReturn:
        self.state = SessionState.FAILED
        logger.warning("Handshake failed: %s", error)
        raise error from cause

"""Error hierarchy for GPSD client operations."""


class GpsdJsonError(Exception):
    """Base error raised by protocol and client operations."""

    code = "gpsd_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Initialize with a human-readable message and an optional machine-readable code.

        Args:
            message: Human-readable error description.
            code: Overrides the class-level code (e.g. "io_error").

        """
        super().__init__(message)
        if code is not None:
            self.code = code


class TransportError(GpsdJsonError):
    """The underlying byte stream failed to read or write."""

    code = "io_error"


class DecodeError(GpsdJsonError):
    """A frame could not be decoded into a message."""

    code = "decode_error"

    def __init__(self, message: str, *, frame: bytes = b"") -> None:
        """Initialize with the offending frame for diagnostics."""
        super().__init__(message)
        self.frame = frame


class IncompleteFrameError(DecodeError):
    """JSON ended before the value was complete; not yet a message."""

    code = "incomplete_frame"


class UnsupportedVersionError(GpsdJsonError):
    """The daemon advertised a protocol version this client cannot talk to."""

    code = "unsupported_version"

    def __init__(self, major: int, minor: int) -> None:
        """Initialize with the version advertised by the daemon."""
        super().__init__(f"Unsupported protocol version: {major}.{minor}")
        self.major = major
        self.minor = minor


class ProtocolError(GpsdJsonError):
    """A frame of the wrong kind, or end-of-stream, arrived where a specific reply was expected."""

    code = "protocol_error"


class WatchStateMismatchError(ProtocolError):
    """The daemon confirmed a watch state different from the one requested."""

    code = "watch_mismatch"

    def __init__(self, requested: bool, confirmed: bool | None) -> None:
        """Initialize with the requested and confirmed enable flags."""
        super().__init__(f"Requested watch enable={requested}, daemon confirmed enable={confirmed}")
        self.requested = requested
        self.confirmed = confirmed


class ClientClosedError(GpsdJsonError):
    """The client handle no longer owns its connection."""

    code = "client_closed"


class DaemonError(ProtocolError):
    """The daemon answered a command with an ERROR notification."""

    code = "daemon_error"

"""Synchronous client for the GPSD JSON protocol.

Every read and write blocks the calling thread. A client owns its socket
exclusively and must not be shared across threads without external locking.

    with GpsdClient.connect("127.0.0.1", 2947) as client:
        print(client.version().release)
        stream = client.stream(StreamOptions.json())
        for message in itertools.islice(stream, 10):
            print(message)
        client = stream.close()
"""

from __future__ import annotations

import logging
import socket
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING, ClassVar, Generic, Protocol, Self, TypeVar, overload

from gpsd_json.client.correlator import Exchange, SingleReply, WatchReply, WatchResult, WatchShutdown
from gpsd_json.client.options import (
    JsonStreamOptions,
    NmeaStreamOptions,
    RawStreamOptions,
    StreamFormat,
    StreamOptions,
    sentence_text,
)
from gpsd_json.client.session import REQUIRED_VERSION, Handshake, ProtocolVersion
from gpsd_json.errors import ClientClosedError, DecodeError, TransportError, WatchStateMismatchError
from gpsd_json.protocol.framing import END_OF_STREAM, FrameDecoder
from gpsd_json.protocol.requests import Request, encode_request
from gpsd_json.protocol.responses import DeviceList, DeviceReport, Message, Poll, Version, decode_message
from gpsd_json.protocol.types import Device, Watch

if TYPE_CHECKING:
    from gpsd_json.config import Config

logger = logging.getLogger(__name__)

# Read buffer size
_BUFSIZE = 65536

T = TypeVar("T")


class SocketLike(Protocol):
    """Blocking byte stream: the subset of :class:`socket.socket` the client uses."""

    def recv(self, bufsize: int, /) -> bytes: ...

    def sendall(self, data: bytes, /) -> None: ...

    def close(self) -> None: ...


class FrameReader:
    """Blocking frame reader over a socket-like byte source."""

    def __init__(self, sock: SocketLike, bufsize: int = _BUFSIZE) -> None:
        self._sock = sock
        self._bufsize = bufsize
        self._decoder = FrameDecoder()

    def read_frame(self) -> bytes | None:
        """Return the next frame including its newline, or None at end-of-stream."""
        while True:
            result = self._decoder.next_frame()
            if isinstance(result, bytes):
                return result
            if result is END_OF_STREAM:
                return None
            try:
                chunk = self._sock.recv(self._bufsize)
            except OSError as e:
                raise TransportError(f"Read failed: {e}") from e
            if chunk:
                self._decoder.feed(chunk)
            else:
                self._decoder.feed_eof()


class Connection:
    """One daemon connection: command encoding, frame decoding and reply correlation."""

    def __init__(self, sock: SocketLike) -> None:
        self._sock = sock
        self._reader = FrameReader(sock)

    def send(self, request: Request) -> None:
        """Write one command line."""
        line = encode_request(request)
        logger.debug("Sending %s", line.decode("ascii"))
        try:
            self._sock.sendall(line)
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    def recv_frame(self) -> bytes | None:
        """Read one raw frame, or None at end-of-stream."""
        return self._reader.read_frame()

    def recv(self) -> Message | None:
        """Read and decode one message, or None at end-of-stream.

        Raises:
            DecodeError: The frame is malformed.

        """
        frame = self._reader.read_frame()
        if frame is None:
            logger.debug("End of stream")
            return None
        message = decode_message(frame)
        logger.debug("Received %s", type(message).__name__)
        return message

    def collect(self, exchange: Exchange[T]) -> T:
        """Feed reply frames into an exchange until it yields its result."""
        while True:
            try:
                message = self.recv()
            except DecodeError as e:
                exchange.receive_error(e)
                continue
            result = exchange.receive(message)
            if result is not None:
                return result

    def transact(self, request: Request, exchange: Exchange[T]) -> T:
        """Send a command and collect its reply."""
        self.send(request)
        return self.collect(exchange)

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()


class GpsdClient:
    """Blocking GPSD client in command mode."""

    def __init__(self, conn: Connection, server: Version) -> None:
        """Wrap an established connection. Use :meth:`open` or :meth:`connect` instead.

        Args:
            conn: Connection that already completed the handshake.
            server: Version information received during the handshake.

        """
        self._connection: Connection | None = conn
        self._server = server

    @classmethod
    def open(cls, sock: SocketLike, *, required: ProtocolVersion = REQUIRED_VERSION) -> GpsdClient:
        """Run the version handshake over an already connected socket.

        Raises:
            ProtocolError: The daemon did not greet with a VERSION message.
            UnsupportedVersionError: The daemon's protocol version is incompatible.

        """
        conn = Connection(sock)
        handshake = Handshake(required)
        handshake.start()
        try:
            message = conn.recv()
        except DecodeError as e:
            handshake.receive_error(e)
        return cls(conn, handshake.receive(message))

    @classmethod
    def connect(
        cls, host: str = "127.0.0.1", port: int = 2947, *, required: ProtocolVersion = REQUIRED_VERSION
    ) -> GpsdClient:
        """Connect over TCP and run the version handshake."""
        try:
            sock = socket.create_connection((host, port))
        except OSError as e:
            raise TransportError(f"Cannot connect to {host}:{port}: {e}") from e
        try:
            return cls.open(sock, required=required)
        except BaseException:
            sock.close()
            raise

    @classmethod
    def from_config(cls, cfg: Config) -> GpsdClient:
        """Connect to the daemon described by a Config."""
        return cls.connect(cfg.host, cfg.port, required=cfg.required_version)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def server(self) -> Version:
        """Version information the daemon sent on connect."""
        return self._server

    @property
    def protocol_version(self) -> ProtocolVersion:
        """Protocol version negotiated at connect."""
        return ProtocolVersion(major=self._server.proto_major, minor=self._server.proto_minor)

    @property
    def closed(self) -> bool:
        """True once the client no longer owns a connection."""
        return self._connection is None

    @property
    def _conn(self) -> Connection:
        if self._connection is None:
            raise ClientClosedError("Client no longer owns its connection.")
        return self._connection

    def version(self) -> Version:
        """Query the daemon's version information."""
        return self._conn.transact(Request.version(), SingleReply(Version))

    def devices(self) -> DeviceList:
        """List the devices known to the daemon."""
        return self._conn.transact(Request.devices(), SingleReply(DeviceList))

    def device(self) -> DeviceReport:
        """Query the currently active device."""
        return self._conn.transact(Request.device(), SingleReply(DeviceReport))

    def set_device(self, device: Device) -> DeviceReport:
        """Reconfigure a device. The daemon replies with the device's new settings."""
        return self._conn.transact(Request.device(device), SingleReply(DeviceReport))

    def poll(self) -> Poll:
        """Fetch a snapshot of the latest fixes."""
        return self._conn.transact(Request.poll(), SingleReply(Poll))

    def watch(self) -> WatchResult:
        """Query the current watch policy and device list."""
        return self._conn.transact(Request.watch(), WatchReply())

    def set_watch(self, watch: Watch) -> WatchResult:
        """Send a watch policy; returns the policy the daemon confirmed."""
        return self._conn.transact(Request.watch(watch), WatchReply())

    def watch_mode(self, enable: bool) -> WatchResult:
        """Turn watching on or off without changing the other watch settings.

        Raises:
            WatchStateMismatchError: The daemon confirmed a different enable flag.

        """
        result = self.set_watch(Watch(enable=enable))
        if result.watch.enable is not enable:
            raise WatchStateMismatchError(enable, result.watch.enable)
        return result

    @overload
    def stream(self, opts: JsonStreamOptions) -> JsonDataStream: ...

    @overload
    def stream(self, opts: NmeaStreamOptions) -> NmeaDataStream: ...

    @overload
    def stream(self, opts: RawStreamOptions) -> RawDataStream: ...

    def stream(self, opts: StreamOptions) -> DataStream[object]:
        """Enable watching and hand the connection over to a data stream.

        The client is unusable afterwards; :meth:`DataStream.close` returns a
        new client on the same connection.

        Raises:
            WatchStateMismatchError: The daemon did not confirm enable=true.

        """
        result = self.set_watch(opts.watch)
        if result.watch.enable is not True:
            raise WatchStateMismatchError(True, result.watch.enable)
        conn = self._conn
        self._connection = None
        logger.info("Streaming %s", opts.format.value)
        return _STREAM_TYPES[opts.format](conn, self._server)

    def close(self) -> None:
        """Close the connection. No-op if the client no longer owns one."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class DataStream(ABC, Generic[T]):
    """Connection in streaming mode.

    Iterating yields items until the daemon closes the connection. A frame that
    fails to decode is yielded as a :class:`DecodeError` instead of ending the
    iteration; :meth:`recv` raises it instead.
    """

    format: ClassVar[StreamFormat]

    def __init__(self, conn: Connection, server: Version) -> None:
        self._connection: Connection | None = conn
        self._server = server

    @property
    def _conn(self) -> Connection:
        if self._connection is None:
            raise ClientClosedError("Stream is closed.")
        return self._connection

    @abstractmethod
    def recv(self) -> T | None:
        """Read the next item, or None when the daemon closed the connection.

        Raises:
            DecodeError: The frame is malformed. The stream stays usable.

        """

    def __iter__(self) -> Iterator[T | DecodeError]:
        return self

    def __next__(self) -> T | DecodeError:
        try:
            item = self.recv()
        except DecodeError as e:
            return e
        if item is None:
            raise StopIteration
        return item

    def close(self) -> GpsdClient:
        """Disable watching and return the connection to a command-mode client.

        On failure the connection is closed and the stream is unusable.

        Raises:
            ProtocolError: The stream ended, or more than one frame failed to decode, before confirmation.
            WatchStateMismatchError: The daemon did not confirm enable=false.

        """
        conn = self._conn
        shutdown = WatchShutdown(sentences=self.format is not StreamFormat.JSON)
        self._connection = None
        try:
            result = conn.transact(Request.watch(Watch.default()), shutdown)
            if result.watch.enable is not False:
                raise WatchStateMismatchError(False, result.watch.enable)
        except BaseException:
            conn.close()
            raise
        logger.info("Stream closed")
        return GpsdClient(conn, self._server)


class JsonDataStream(DataStream[Message]):
    """Structured stream: every frame decoded into a message."""

    format = StreamFormat.JSON

    def recv(self) -> Message | None:
        return self._conn.recv()


class NmeaDataStream(DataStream[str]):
    """Sentence stream: each line as text, without its terminator."""

    format = StreamFormat.NMEA

    def recv(self) -> str | None:
        frame = self._conn.recv_frame()
        return None if frame is None else sentence_text(frame)


class RawDataStream(DataStream[bytes]):
    """Raw stream: each line's bytes, newline included."""

    format = StreamFormat.RAW

    def recv(self) -> bytes | None:
        return self._conn.recv_frame()


_STREAM_TYPES: dict[StreamFormat, type[DataStream[object]]] = {
    StreamFormat.JSON: JsonDataStream,
    StreamFormat.NMEA: NmeaDataStream,
    StreamFormat.RAW: RawDataStream,
}

"""Asyncio client for the GPSD JSON protocol.

Same protocol behaviour as :mod:`gpsd_json.client.blocking`; reads and writes
are suspension points instead of blocking calls. Bytes enter the frame decoder
only after a read completes, so cancelling a pending read never loses or
duplicates data. Cancelling in the middle of an exchange does leave the
connection at an unknown point in the reply sequence; draining or closing it
is up to the caller.

    client = await AsyncGpsdClient.connect("127.0.0.1", 2947)
    stream = await client.stream(StreamOptions.json())
    async for message in stream:
        print(message)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, ClassVar, Generic, Self, TypeVar, overload

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


class AsyncFrameReader:
    """Frame reader over an :class:`asyncio.StreamReader`."""

    def __init__(self, reader: asyncio.StreamReader, bufsize: int = _BUFSIZE) -> None:
        self._reader = reader
        self._bufsize = bufsize
        self._decoder = FrameDecoder()

    async def read_frame(self) -> bytes | None:
        """Return the next frame including its newline, or None at end-of-stream."""
        while True:
            result = self._decoder.next_frame()
            if isinstance(result, bytes):
                return result
            if result is END_OF_STREAM:
                return None
            try:
                chunk = await self._reader.read(self._bufsize)
            except OSError as e:
                raise TransportError(f"Read failed: {e}") from e
            if chunk:
                self._decoder.feed(chunk)
            else:
                self._decoder.feed_eof()


class AsyncConnection:
    """One daemon connection over an asyncio stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        self._reader = AsyncFrameReader(reader)

    async def send(self, request: Request) -> None:
        """Write one command line and wait until it is flushed."""
        line = encode_request(request)
        logger.debug("Sending %s", line.decode("ascii"))
        try:
            self._writer.write(line)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    async def recv_frame(self) -> bytes | None:
        """Read one raw frame, or None at end-of-stream."""
        return await self._reader.read_frame()

    async def recv(self) -> Message | None:
        """Read and decode one message, or None at end-of-stream.

        Raises:
            DecodeError: The frame is malformed.

        """
        frame = await self._reader.read_frame()
        if frame is None:
            logger.debug("End of stream")
            return None
        message = decode_message(frame)
        logger.debug("Received %s", type(message).__name__)
        return message

    async def collect(self, exchange: Exchange[T]) -> T:
        """Feed reply frames into an exchange until it yields its result."""
        while True:
            try:
                message = await self.recv()
            except DecodeError as e:
                exchange.receive_error(e)
                continue
            result = exchange.receive(message)
            if result is not None:
                return result

    async def transact(self, request: Request, exchange: Exchange[T]) -> T:
        """Send a command and collect its reply."""
        await self.send(request)
        return await self.collect(exchange)

    async def close(self) -> None:
        """Close the writer and wait for the transport to shut down."""
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug("Error while closing connection: %s", e)


class AsyncGpsdClient:
    """Asyncio GPSD client in command mode."""

    def __init__(self, conn: AsyncConnection, server: Version) -> None:
        """Wrap an established connection. Use :meth:`open` or :meth:`connect` instead."""
        self._connection: AsyncConnection | None = conn
        self._server = server

    @classmethod
    async def open(
        cls,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        required: ProtocolVersion = REQUIRED_VERSION,
    ) -> AsyncGpsdClient:
        """Run the version handshake over an already connected stream pair.

        Raises:
            ProtocolError: The daemon did not greet with a VERSION message.
            UnsupportedVersionError: The daemon's protocol version is incompatible.

        """
        conn = AsyncConnection(reader, writer)
        handshake = Handshake(required)
        handshake.start()
        try:
            message = await conn.recv()
        except DecodeError as e:
            handshake.receive_error(e)
        return cls(conn, handshake.receive(message))

    @classmethod
    async def connect(
        cls, host: str = "127.0.0.1", port: int = 2947, *, required: ProtocolVersion = REQUIRED_VERSION
    ) -> AsyncGpsdClient:
        """Connect over TCP and run the version handshake."""
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as e:
            raise TransportError(f"Cannot connect to {host}:{port}: {e}") from e
        try:
            return await cls.open(reader, writer, required=required)
        except BaseException:
            writer.close()
            raise

    @classmethod
    async def from_config(cls, cfg: Config) -> AsyncGpsdClient:
        """Connect to the daemon described by a Config."""
        return await cls.connect(cfg.host, cfg.port, required=cfg.required_version)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

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
    def _conn(self) -> AsyncConnection:
        if self._connection is None:
            raise ClientClosedError("Client no longer owns its connection.")
        return self._connection

    async def version(self) -> Version:
        """Query the daemon's version information."""
        return await self._conn.transact(Request.version(), SingleReply(Version))

    async def devices(self) -> DeviceList:
        """List the devices known to the daemon."""
        return await self._conn.transact(Request.devices(), SingleReply(DeviceList))

    async def device(self) -> DeviceReport:
        """Query the currently active device."""
        return await self._conn.transact(Request.device(), SingleReply(DeviceReport))

    async def set_device(self, device: Device) -> DeviceReport:
        """Reconfigure a device. The daemon replies with the device's new settings."""
        return await self._conn.transact(Request.device(device), SingleReply(DeviceReport))

    async def poll(self) -> Poll:
        """Fetch a snapshot of the latest fixes."""
        return await self._conn.transact(Request.poll(), SingleReply(Poll))

    async def watch(self) -> WatchResult:
        """Query the current watch policy and device list."""
        return await self._conn.transact(Request.watch(), WatchReply())

    async def set_watch(self, watch: Watch) -> WatchResult:
        """Send a watch policy; returns the policy the daemon confirmed."""
        return await self._conn.transact(Request.watch(watch), WatchReply())

    async def watch_mode(self, enable: bool) -> WatchResult:
        """Turn watching on or off without changing the other watch settings.

        Raises:
            WatchStateMismatchError: The daemon confirmed a different enable flag.

        """
        result = await self.set_watch(Watch(enable=enable))
        if result.watch.enable is not enable:
            raise WatchStateMismatchError(enable, result.watch.enable)
        return result

    @overload
    async def stream(self, opts: JsonStreamOptions) -> AsyncJsonDataStream: ...

    @overload
    async def stream(self, opts: NmeaStreamOptions) -> AsyncNmeaDataStream: ...

    @overload
    async def stream(self, opts: RawStreamOptions) -> AsyncRawDataStream: ...

    async def stream(self, opts: StreamOptions) -> AsyncDataStream[object]:
        """Enable watching and hand the connection over to a data stream.

        The client is unusable afterwards; :meth:`AsyncDataStream.close`
        returns a new client on the same connection.

        Raises:
            WatchStateMismatchError: The daemon did not confirm enable=true.

        """
        result = await self.set_watch(opts.watch)
        if result.watch.enable is not True:
            raise WatchStateMismatchError(True, result.watch.enable)
        conn = self._conn
        self._connection = None
        logger.info("Streaming %s", opts.format.value)
        return _STREAM_TYPES[opts.format](conn, self._server)

    async def close(self) -> None:
        """Close the connection. No-op if the client no longer owns one."""
        if self._connection is not None:
            conn, self._connection = self._connection, None
            await conn.close()


class AsyncDataStream(ABC, Generic[T]):
    """Connection in streaming mode.

    Async iteration yields items until the daemon closes the connection. A
    frame that fails to decode is yielded as a :class:`DecodeError` instead of
    ending the iteration; :meth:`recv` raises it instead.
    """

    format: ClassVar[StreamFormat]

    def __init__(self, conn: AsyncConnection, server: Version) -> None:
        self._connection: AsyncConnection | None = conn
        self._server = server

    @property
    def _conn(self) -> AsyncConnection:
        if self._connection is None:
            raise ClientClosedError("Stream is closed.")
        return self._connection

    @abstractmethod
    async def recv(self) -> T | None:
        """Read the next item, or None when the daemon closed the connection.

        Raises:
            DecodeError: The frame is malformed. The stream stays usable.

        """

    def __aiter__(self) -> AsyncIterator[T | DecodeError]:
        return self

    async def __anext__(self) -> T | DecodeError:
        try:
            item = await self.recv()
        except DecodeError as e:
            return e
        if item is None:
            raise StopAsyncIteration
        return item

    async def close(self) -> AsyncGpsdClient:
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
            result = await conn.transact(Request.watch(Watch.default()), shutdown)
            if result.watch.enable is not False:
                raise WatchStateMismatchError(False, result.watch.enable)
        except BaseException:
            await conn.close()
            raise
        logger.info("Stream closed")
        return AsyncGpsdClient(conn, self._server)


class AsyncJsonDataStream(AsyncDataStream[Message]):
    """Structured stream: every frame decoded into a message."""

    format = StreamFormat.JSON

    async def recv(self) -> Message | None:
        return await self._conn.recv()


class AsyncNmeaDataStream(AsyncDataStream[str]):
    """Sentence stream: each line as text, without its terminator."""

    format = StreamFormat.NMEA

    async def recv(self) -> str | None:
        frame = await self._conn.recv_frame()
        return None if frame is None else sentence_text(frame)


class AsyncRawDataStream(AsyncDataStream[bytes]):
    """Raw stream: each line's bytes, newline included."""

    format = StreamFormat.RAW

    async def recv(self) -> bytes | None:
        return await self._conn.recv_frame()


_STREAM_TYPES: dict[StreamFormat, type[AsyncDataStream[object]]] = {
    StreamFormat.JSON: AsyncJsonDataStream,
    StreamFormat.NMEA: AsyncNmeaDataStream,
    StreamFormat.RAW: AsyncRawDataStream,
}

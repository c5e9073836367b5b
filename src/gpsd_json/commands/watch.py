"""Stream data from the daemon."""

import contextlib
import itertools
from typing import Annotated

import typer

from gpsd_json.app_context import use_context
from gpsd_json.client.blocking import DataStream
from gpsd_json.client.options import NmeaStreamOptions, RawStreamOptions, StreamFormat, StreamOptions
from gpsd_json.errors import DecodeError, GpsdJsonError
from gpsd_json.output import Output


def _options(fmt: StreamFormat, device: str | None) -> StreamOptions:
    opts: NmeaStreamOptions | RawStreamOptions
    match fmt:
        case StreamFormat.JSON:
            if device:
                msg = "--device is only supported with nmea and raw formats."
                raise typer.BadParameter(msg)
            return StreamOptions.json()
        case StreamFormat.NMEA:
            opts = StreamOptions.nmea()
        case StreamFormat.RAW:
            opts = StreamOptions.raw()
    return opts.device(device) if device else opts


def _print_item(out: Output, item: object) -> None:
    if isinstance(item, DecodeError):
        out.print_stream_error(item)
    elif isinstance(item, str | bytes):
        out.print_line(item)
    else:
        out.print_message(item)  # type: ignore[arg-type]


def watch(
    ctx: typer.Context,
    fmt: Annotated[StreamFormat, typer.Option("--format", "-f", help="Stream format.")] = StreamFormat.JSON,
    count: Annotated[int | None, typer.Option("--count", "-n", min=1, help="Stop after this many items.")] = None,
    device: Annotated[str | None, typer.Option("--device", help="Only stream from this device (nmea/raw).")] = None,
) -> None:
    """Stream reports from gpsd until interrupted."""
    app = use_context(ctx)
    opts = _options(fmt, device)
    client = app.connect()
    try:
        stream: DataStream[object] = client.stream(opts)  # type: ignore[call-overload]
    except GpsdJsonError as e:
        client.close()
        app.out.print_error_and_exit(e.code, str(e))

    try:
        with contextlib.suppress(KeyboardInterrupt):
            for item in itertools.islice(stream, count):
                _print_item(app.out, item)
        stream.close().close()
    except GpsdJsonError as e:
        app.out.print_error_and_exit(e.code, str(e))

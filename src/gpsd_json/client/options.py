"""Stream options: which format the daemon streams once watching is enabled.

The format is fixed by the options class, and each class only offers the
builders that make sense for its format::

    StreamOptions.json().pps(True).timing(True)
    StreamOptions.nmea().device("/dev/ttyUSB0")
    StreamOptions.raw().hex_dump(False)

The client picks the matching data stream type from :attr:`StreamOptions.format`.
"""

from __future__ import annotations

import enum
from typing import ClassVar, Self

from gpsd_json.protocol.types import Watch


class StreamFormat(enum.Enum):
    """Streaming formats. Only selects the decoding rule; never sent on the wire as such."""

    JSON = "json"
    NMEA = "nmea"
    RAW = "raw"


class StreamOptions:
    """Watch policy for entering streaming mode. Builders return new options."""

    format: ClassVar[StreamFormat]

    def __init__(self, watch: Watch) -> None:
        self._watch = watch

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._watch.to_json()})"

    @property
    def watch(self) -> Watch:
        """Watch policy sent to the daemon."""
        return self._watch

    def scaled(self, enable: bool) -> Self:
        """Apply scaling to reported values."""
        return self._replace(scaled=enable)

    def split24(self, enable: bool) -> Self:
        """Report AIS type 24 parts A and B as separate messages."""
        return self._replace(split24=enable)

    def _replace(self, **changes: object) -> Self:
        return type(self)(self._watch.model_copy(update=changes))

    @staticmethod
    def json() -> JsonStreamOptions:
        """Structured reports, decoded into messages."""
        return JsonStreamOptions(Watch(enable=True, json_=True))

    @staticmethod
    def nmea() -> NmeaStreamOptions:
        """NMEA 0183 sentences, as text."""
        return NmeaStreamOptions(Watch(enable=True, nmea=True))

    @staticmethod
    def raw() -> RawStreamOptions:
        """Raw receiver data, as bytes. Hex dump by default."""
        return RawStreamOptions(Watch(enable=True, raw=1))


class JsonStreamOptions(StreamOptions):
    """Options for the structured (JSON) stream."""

    format = StreamFormat.JSON

    def pps(self, enable: bool) -> Self:
        """Include PPS timing reports."""
        return self._replace(pps=enable)

    def timing(self, enable: bool) -> Self:
        """Include timing information in reports."""
        return self._replace(timing=enable)


class NmeaStreamOptions(StreamOptions):
    """Options for the NMEA sentence stream."""

    format = StreamFormat.NMEA

    def device(self, path: str) -> Self:
        """Stream from a single device only."""
        return self._replace(device=path)


class RawStreamOptions(StreamOptions):
    """Options for the raw data stream."""

    format = StreamFormat.RAW

    def hex_dump(self, enable: bool) -> Self:
        """Hex-dump the data (raw=1) or pass binary through (raw=2)."""
        return self._replace(raw=1 if enable else 2)

    def device(self, path: str) -> Self:
        """Stream from a single device only."""
        return self._replace(device=path)


def sentence_text(frame: bytes) -> str:
    """Render a sentence-format frame as text without its line terminator."""
    return frame.decode(errors="replace").rstrip()

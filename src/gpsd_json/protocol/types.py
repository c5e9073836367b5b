"""Shared records used across GPSD protocol v3 messages.

Most fields are optional on the wire: an absent field means "server default"
(or "not reported"), never ``False``. Wire names that are not valid or
readable Python identifiers are mapped through pydantic aliases.
"""

import enum
import json
from datetime import UTC, datetime
from typing import Annotated, Self

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


class WireModel(BaseModel):
    """Base for records exchanged with the daemon."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, object]:
        """Wire-shaped dict with absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Compact JSON with absent fields omitted, as embedded in command lines."""
        return json.dumps(self.to_wire(), separators=(",", ":"))


class FixMode(enum.IntEnum):
    """NMEA fix mode reported in TPV."""

    NOT_SEEN = 0
    NO_FIX = 1
    FIX_2D = 2
    FIX_3D = 3


class FixStatus(enum.IntEnum):
    """GPS fix status reported in TPV."""

    UNKNOWN = 0
    GPS = 1
    DGPS = 2
    RTK_FIXED = 3
    RTK_FLOAT = 4
    DR = 5
    GNSS_DR = 6
    TIME = 7
    SIMULATED = 8
    PPS_FIX = 9


class AntennaStatus(enum.IntEnum):
    """Antenna status reported in TPV."""

    UNKNOWN = 0
    OK = 1
    OPEN = 2
    SHORT = 3


class GnssId(enum.IntEnum):
    """GNSS constellation identifier."""

    GPS = 0
    SBAS = 1
    GAL = 2
    BD = 3
    IMES = 4
    QZSS = 5
    GLO = 6
    IRNSS = 7


class SatHealth(enum.IntEnum):
    """Satellite health."""

    UNKNOWN = 0
    OK = 1
    BAD = 2


class PropertyFlags(enum.IntFlag):
    """Kinds of data a device has been seen to produce."""

    SEEN_GPS = 0x01
    SEEN_RTCM2 = 0x02
    SEEN_RTCM3 = 0x04
    SEEN_AIS = 0x08


_ALL_PROPERTY_FLAGS = PropertyFlags.SEEN_GPS | PropertyFlags.SEEN_RTCM2 | PropertyFlags.SEEN_RTCM3 | PropertyFlags.SEEN_AIS


class Parity(enum.StrEnum):
    """Serial parity setting."""

    NO = "N"
    ODD = "O"
    EVEN = "E"


def epoch_to_datetime(value: object) -> object:
    """Convert Unix epoch seconds (with fractional part) to an aware UTC datetime.

    Anything that is not a number is passed through for regular validation.
    """
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            msg = f"Timestamp out of range: {value!r}"
            raise ValueError(msg) from e
    return value


EpochDatetime = Annotated[datetime | None, BeforeValidator(epoch_to_datetime)]


def sec_nsec_to_datetime(sec: object, nsec: object) -> datetime | None:
    """Combine separate seconds and nanoseconds fields into a UTC datetime.

    Raises:
        ValueError: Either part is out of range.

    """
    if not isinstance(sec, int | float) or not isinstance(nsec, int | float):
        return None
    try:
        return datetime.fromtimestamp(int(sec), tz=UTC).replace(microsecond=int(nsec) // 1000)
    except (OverflowError, OSError, ValueError) as e:
        msg = f"Timestamp out of range: sec={sec!r}, nsec={nsec!r}"
        raise ValueError(msg) from e


class Device(WireModel):
    """A device known to the daemon, as reported in DEVICE/DEVICES and sent with ?DEVICE."""

    path: str | None = None
    activated: datetime | None = None
    flags: PropertyFlags | None = None
    driver: str | None = None
    hexdata: str | None = None
    sernum: str | None = None
    subtype: str | None = None
    subtype1: str | None = None
    native: int | None = None
    bps: int | None = None
    parity: Parity | None = None
    stopbits: int | None = None
    cycle: float | None = None
    mincycle: float | None = None

    @field_validator("activated", mode="before")
    @classmethod
    def _parse_activated(cls, value: object) -> object:
        # ISO-8601 string or Unix epoch number; an unparseable string means "unknown"
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return None
        if isinstance(value, int | float) and not isinstance(value, bool):
            return epoch_to_datetime(value)
        if value is None:
            return None
        msg = f"Invalid type for 'activated': {type(value).__name__}"
        raise ValueError(msg)

    @field_validator("flags", mode="before")
    @classmethod
    def _truncate_flags(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return PropertyFlags(value & _ALL_PROPERTY_FLAGS)
        return value


class Watch(WireModel):
    """Watch policy: what the daemon streams to this client.

    Every field is optional; ``Watch()`` carries no opinion on anything, while
    :meth:`default` is the protocol's all-off policy used to stop streaming.
    """

    device: str | None = None
    enable: bool | None = None
    json_: bool | None = Field(default=None, alias="json")
    nmea: bool | None = None
    pps: bool | None = None
    raw: int | None = Field(default=None, ge=0, le=2, description="0 = off, 1 = hex dump, 2 = binary")
    scaled: bool | None = None
    split24: bool | None = None
    timing: bool | None = None
    remote: str | None = None

    @classmethod
    def default(cls) -> Self:
        """Protocol default: watching disabled and every format off."""
        return cls(
            enable=False, json_=False, nmea=False, pps=False, raw=0, scaled=False, split24=False, timing=False
        )


class Satellite(WireModel):
    """One satellite entry of a SKY report."""

    prn: int = Field(alias="PRN")
    azimuth: float | None = Field(default=None, alias="az")
    elevation: float | None = Field(default=None, alias="el")
    freqid: int | None = None
    gnssid: GnssId | None = None
    health: SatHealth | None = None
    pr: float | None = None
    pr_rate: float | None = Field(default=None, alias="prRate")
    pr_res: float | None = Field(default=None, alias="prRes")
    ss: float | None = None
    sigid: int | None = None
    svid: int | None = None
    used: bool


class Measurement(WireModel):
    """One raw measurement of a RAW report."""

    gnssid: GnssId | None = None
    svid: int | None = None
    sigid: int | None = None
    snr: int | None = None
    freqid: int | None = None
    obs: str | None = None
    lli: int | None = None
    locktime: int | None = None
    carrierphase: float | None = None
    pseudorange: float | None = None
    doppler: float | None = None
    c2c: float | None = None
    l2c: float | None = None

"""Response and report messages sent by the daemon, and frame decoding.

Each frame is one JSON object whose ``class`` field selects the message kind::

    {"class":"VERSION","release":"3.25","rev":"3.25","proto_major":3,"proto_minor":15}
    {"class":"TPV","device":"/dev/ttyUSB0","mode":3,"lat":35.0,"lon":139.0}

Kinds this module does not know decode to :class:`Unknown` instead of failing.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from pydantic import ConfigDict, Field, ValidationError, model_validator

from gpsd_json.errors import DecodeError, IncompleteFrameError
from gpsd_json.protocol.types import (
    AntennaStatus,
    Device,
    EpochDatetime,
    FixMode,
    FixStatus,
    Measurement,
    Satellite,
    Watch,
    WireModel,
    epoch_to_datetime,
    sec_nsec_to_datetime,
)

logger = logging.getLogger(__name__)


class Report(WireModel):
    """Base for every message kind keyed by a ``class`` discriminant."""

    kind: ClassVar[str]


class Tpv(Report):
    """Time-position-velocity report."""

    kind: ClassVar[str] = "TPV"

    device: str | None = None
    mode: FixMode = FixMode.NOT_SEEN
    status: FixStatus | None = None
    time: datetime | None = None
    lat: float | None = None
    lon: float | None = None
    alt: float | None = None
    alt_hae: float | None = Field(default=None, alias="altHAE")
    alt_msl: float | None = Field(default=None, alias="altMSL")
    ant: AntennaStatus | None = None
    climb: float | None = None
    datum: str | None = None
    depth: float | None = None
    dgps_age: float | None = Field(default=None, alias="dgpsAge")
    dgps_sta: int | None = Field(default=None, alias="dgpsSta")
    epc: float | None = None
    epd: float | None = None
    eph: float | None = None
    eps: float | None = None
    ept: float | None = None
    epx: float | None = None
    epy: float | None = None
    epv: float | None = None
    geoid_sep: float | None = Field(default=None, alias="geoidSep")
    jam: int | None = None
    leapseconds: int | None = None
    magtrack: float | None = None
    magvar: float | None = None
    temp: float | None = None
    track: float | None = None
    sep: float | None = None
    speed: float | None = None
    wanglem: float | None = None
    wangler: float | None = None
    wanglet: float | None = None
    wspeedr: float | None = None
    wspeedt: float | None = None
    wtemp: float | None = None
    rtime: EpochDatetime = None
    pps: EpochDatetime = None
    sor: EpochDatetime = None
    chars: int | None = None
    sats: int | None = None
    week: int | None = None
    tow: float | None = None
    rollovers: int | None = None
    # ECEF
    ecefx: float | None = None
    ecefy: float | None = None
    ecefz: float | None = None
    ecef_p_acc: float | None = Field(default=None, alias="ecefpAcc")
    ecefvx: float | None = None
    ecefvy: float | None = None
    ecefvz: float | None = None
    ecef_v_acc: float | None = Field(default=None, alias="ecefvAcc")
    # NED
    rel_n: float | None = Field(default=None, alias="relN")
    rel_e: float | None = Field(default=None, alias="relE")
    rel_d: float | None = Field(default=None, alias="relD")
    rel_h: float | None = Field(default=None, alias="relH")
    rel_l: float | None = Field(default=None, alias="relL")
    vel_n: float | None = Field(default=None, alias="velN")
    vel_e: float | None = Field(default=None, alias="velE")
    vel_d: float | None = Field(default=None, alias="velD")
    # RTK baseline
    base_status: FixStatus | None = Field(default=None, alias="baseS")
    base_east: float | None = Field(default=None, alias="baseE")
    base_north: float | None = Field(default=None, alias="baseN")
    base_up: float | None = Field(default=None, alias="baseU")
    base_length: float | None = Field(default=None, alias="baseL")
    base_course: float | None = Field(default=None, alias="baseC")
    dgps_ratio: float | None = Field(default=None, alias="dgpsRatio")


class Sky(Report):
    """Satellite sky view report."""

    kind: ClassVar[str] = "SKY"

    device: str | None = None
    time: datetime | None = None
    n_sat: int | None = Field(default=None, alias="nSat")
    u_sat: int | None = Field(default=None, alias="uSat")
    satellites: list[Satellite] = Field(default_factory=list)
    xdop: float | None = None
    ydop: float | None = None
    pdop: float | None = None
    hdop: float | None = None
    vdop: float | None = None
    tdop: float | None = None
    gdop: float | None = None


class Gst(Report):
    """Pseudorange noise statistics."""

    kind: ClassVar[str] = "GST"

    device: str | None = None
    time: datetime | None = None
    alt: float | None = None
    lat: float | None = None
    lon: float | None = None
    major: float | None = None
    minor: float | None = None
    orient: float | None = None
    rms: float | None = None
    ve: float | None = None
    vn: float | None = None
    vu: float | None = None


class _OpaqueReport(Report):
    """Report whose payload is kept as-is, without a fixed schema."""

    model_config = ConfigDict(extra="allow")


class Attitude(_OpaqueReport):
    """Attitude/orientation report."""

    kind: ClassVar[str] = "ATT"


class Imu(_OpaqueReport):
    """Inertial measurement unit report."""

    kind: ClassVar[str] = "IMU"


class Rtcm2(_OpaqueReport):
    """RTCM2 differential correction data."""

    kind: ClassVar[str] = "RTCM2"


class Rtcm3(_OpaqueReport):
    """RTCM3 differential correction data."""

    kind: ClassVar[str] = "RTCM3"


class _ClockReport(Report):
    """Shared shape of TOFF and PPS: ``real_*``/``clock_*`` second and nanosecond pairs."""

    device: str | None = None
    real: datetime | None = None
    clock: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _combine_timestamps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in ("real", "clock"):
            sec = data.pop(f"{name}_sec", None)
            nsec = data.pop(f"{name}_nsec", None)
            if name not in data:
                data[name] = sec_nsec_to_datetime(sec, nsec)
        return data


class TimeOffset(_ClockReport):
    """Offset between the receiver clock and the system clock."""

    kind: ClassVar[str] = "TOFF"


class Pps(_ClockReport):
    """Pulse-per-second timing report."""

    kind: ClassVar[str] = "PPS"

    precision: int | None = None
    q_err: int | None = Field(default=None, alias="qErr")


class Oscillator(Report):
    """Oscillator/clock discipline status."""

    kind: ClassVar[str] = "OSC"

    device: str
    running: bool
    reference: bool
    disciplined: bool
    delta: int | None = None


class Version(Report):
    """Daemon release and protocol version, sent on connect and in reply to ?VERSION."""

    kind: ClassVar[str] = "VERSION"

    release: str
    rev: str
    proto_major: int
    proto_minor: int
    remote: str | None = None


class DeviceList(Report):
    """All devices known to the daemon."""

    kind: ClassVar[str] = "DEVICES"

    devices: list[Device] = Field(default_factory=list)
    remote: str | None = None


class DeviceReport(Device):
    """Single-device reply to ?DEVICE."""

    kind: ClassVar[str] = "DEVICE"


class WatchReport(Watch):
    """Watch policy currently in effect, confirmed by the daemon."""

    kind: ClassVar[str] = "WATCH"


class Poll(Report):
    """Snapshot of the latest fixes, in reply to ?POLL."""

    kind: ClassVar[str] = "POLL"

    active: int | None = None
    time: datetime | None = None
    tpv: list[Tpv] = Field(default_factory=list)
    gst: list[Gst] = Field(default_factory=list)
    sky: list[Sky] = Field(default_factory=list)


class Error(Report):
    """Error notification from the daemon."""

    kind: ClassVar[str] = "ERROR"

    message: str


class Raw(Report):
    """Raw receiver measurements."""

    kind: ClassVar[str] = "RAW"

    device: str | None = None
    time: datetime | None = None
    rawdata: list[Measurement] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _combine_time(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("time"), int | float):
            return data
        data = dict(data)
        nsec = data.pop("nsec", 0)
        if not isinstance(nsec, int | float) or isinstance(nsec, bool):
            msg = f"RAW nsec must be a number, got {type(nsec).__name__}"
            raise ValueError(msg)
        seconds = data["time"] + nsec / 1e9
        data["time"] = epoch_to_datetime(seconds)
        return data


@dataclass(frozen=True)
class Unknown:
    """A frame whose ``class`` this client does not recognise, kept verbatim."""

    kind: str | None
    raw: str


Message = (
    Tpv
    | Sky
    | Gst
    | Attitude
    | Imu
    | DeviceList
    | DeviceReport
    | WatchReport
    | Version
    | Rtcm2
    | Rtcm3
    | Error
    | TimeOffset
    | Pps
    | Oscillator
    | Raw
    | Poll
    | Unknown
)

MESSAGE_TYPES: dict[str, type[WireModel]] = {
    cls.kind: cls
    for cls in (
        Tpv,
        Sky,
        Gst,
        Attitude,
        Imu,
        DeviceList,
        DeviceReport,
        WatchReport,
        Version,
        Rtcm2,
        Rtcm3,
        Error,
        TimeOffset,
        Pps,
        Oscillator,
        Raw,
        Poll,
    )
}


def kind_of(message: Message) -> str:
    """Discriminant of a decoded message, for diagnostics."""
    if isinstance(message, Unknown):
        return message.kind or "<none>"
    return message.kind


def _is_truncated(text: str, err: json.JSONDecodeError) -> bool:
    """True if the JSON parser ran out of input rather than hitting bad input."""
    stripped = text.rstrip()
    return err.pos >= len(stripped) or err.msg.startswith("Unterminated string")


def decode_message(frame: bytes) -> Message:
    """Decode one frame into a message.

    Raises:
        IncompleteFrameError: JSON ended before the value was complete.
        DecodeError: Frame is not a JSON object, or a known kind has the wrong shape.

    """
    try:
        text = frame.decode()
    except UnicodeDecodeError as e:
        raise DecodeError(f"Frame is not valid UTF-8: {e}", frame=frame) from e

    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        if _is_truncated(text, e):
            raise IncompleteFrameError(f"Incomplete JSON: {e}", frame=frame) from e
        raise DecodeError(f"Malformed JSON: {e}", frame=frame) from e
    except RecursionError as e:
        raise DecodeError("JSON nested too deeply", frame=frame) from e

    if not isinstance(obj, dict):
        raise DecodeError(f"Expected a JSON object, got {type(obj).__name__}", frame=frame)

    discriminant = obj.get("class")
    kind = discriminant.upper() if isinstance(discriminant, str) else None
    model = MESSAGE_TYPES.get(kind) if kind is not None else None
    if model is None:
        logger.debug("Unrecognised message class %r", discriminant)
        return Unknown(kind=kind, raw=text.rstrip("\r\n"))

    try:
        return model.model_validate(obj)  # type: ignore[return-value]
    except ValidationError as e:
        raise DecodeError(f"Invalid {kind} message: {e}", frame=frame) from e

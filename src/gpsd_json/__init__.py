"""Client for the GPSD JSON protocol (v3)."""

from gpsd_json.client import REQUIRED_VERSION as REQUIRED_VERSION
from gpsd_json.client import AsyncGpsdClient as AsyncGpsdClient
from gpsd_json.client import GpsdClient as GpsdClient
from gpsd_json.client import ProtocolVersion as ProtocolVersion
from gpsd_json.client import StreamFormat as StreamFormat
from gpsd_json.client import StreamOptions as StreamOptions
from gpsd_json.client import WatchResult as WatchResult
from gpsd_json.errors import DecodeError as DecodeError
from gpsd_json.errors import GpsdJsonError as GpsdJsonError
from gpsd_json.errors import ProtocolError as ProtocolError
from gpsd_json.errors import UnsupportedVersionError as UnsupportedVersionError
from gpsd_json.protocol import Message as Message
from gpsd_json.protocol import Unknown as Unknown
from gpsd_json.protocol import Watch as Watch

"""Client core: session bootstrap, reply correlation, and blocking/asyncio clients."""

from gpsd_json.client.aio import AsyncGpsdClient as AsyncGpsdClient
from gpsd_json.client.blocking import GpsdClient as GpsdClient
from gpsd_json.client.correlator import WatchResult as WatchResult
from gpsd_json.client.options import StreamFormat as StreamFormat
from gpsd_json.client.options import StreamOptions as StreamOptions
from gpsd_json.client.session import REQUIRED_VERSION as REQUIRED_VERSION
from gpsd_json.client.session import ProtocolVersion as ProtocolVersion

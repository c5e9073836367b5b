"""GPSD JSON protocol v3: framing, commands, and message decoding."""

from gpsd_json.protocol.framing import END_OF_STREAM as END_OF_STREAM
from gpsd_json.protocol.framing import NEED_DATA as NEED_DATA
from gpsd_json.protocol.framing import FrameDecoder as FrameDecoder
from gpsd_json.protocol.requests import Command as Command
from gpsd_json.protocol.requests import Request as Request
from gpsd_json.protocol.requests import encode_request as encode_request
from gpsd_json.protocol.responses import Message as Message
from gpsd_json.protocol.responses import Unknown as Unknown
from gpsd_json.protocol.responses import decode_message as decode_message
from gpsd_json.protocol.types import Device as Device
from gpsd_json.protocol.types import Watch as Watch

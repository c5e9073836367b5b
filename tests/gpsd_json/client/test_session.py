"""Tests for the version handshake."""

import pytest

from gpsd_json.client.session import REQUIRED_VERSION, Handshake, ProtocolVersion, SessionState
from gpsd_json.errors import DecodeError, ProtocolError, UnsupportedVersionError
from gpsd_json.protocol.responses import Tpv, Unknown, Version


def _version(major: int, minor: int) -> Version:
    return Version(release="3.25", rev="3.25", proto_major=major, proto_minor=minor)


def _pending(required: ProtocolVersion = REQUIRED_VERSION) -> Handshake:
    handshake = Handshake(required)
    handshake.start()
    return handshake


class TestVersionGate:
    """Compatibility of the advertised protocol version."""

    @pytest.mark.parametrize(("major", "minor"), [(3, 15), (3, 20)])
    def test_compatible(self, major: int, minor: int):
        """Same major and at least the required minor is accepted."""
        handshake = _pending()
        server = handshake.receive(_version(major, minor))
        assert server.proto_minor == minor
        assert handshake.state is SessionState.READY
        assert handshake.server_version == ProtocolVersion(major=major, minor=minor)

    @pytest.mark.parametrize(("major", "minor"), [(3, 14), (4, 15), (2, 20)])
    def test_incompatible(self, major: int, minor: int):
        """An older minor or a different major is rejected."""
        handshake = _pending()
        with pytest.raises(UnsupportedVersionError) as exc_info:
            handshake.receive(_version(major, minor))
        assert (exc_info.value.major, exc_info.value.minor) == (major, minor)
        assert exc_info.value.code == "unsupported_version"
        assert handshake.state is SessionState.FAILED

    def test_custom_requirement(self):
        """The required version is a parameter, not a constant."""
        handshake = _pending(ProtocolVersion(major=3, minor=10))
        handshake.receive(_version(3, 12))
        assert handshake.state is SessionState.READY

    def test_satisfies(self):
        """Version comparison keeps major exact and minor as a lower bound."""
        required = ProtocolVersion(major=3, minor=15)
        assert ProtocolVersion(major=3, minor=15).satisfies(required)
        assert not ProtocolVersion(major=3, minor=14).satisfies(required)
        assert str(required) == "3.15"


class TestFirstFrame:
    """Anything but VERSION first fails the session."""

    def test_other_kind(self):
        """A report before VERSION is a protocol error."""
        handshake = _pending()
        with pytest.raises(ProtocolError, match="got TPV"):
            handshake.receive(Tpv(lat=1.0))
        assert handshake.state is SessionState.FAILED

    def test_unknown_kind(self):
        """An unrecognised frame first is a protocol error too."""
        handshake = _pending()
        with pytest.raises(ProtocolError, match="got FROB"):
            handshake.receive(Unknown(kind="FROB", raw='{"class":"FROB"}'))

    def test_end_of_stream(self):
        """The daemon hanging up before greeting is a protocol error."""
        handshake = _pending()
        with pytest.raises(ProtocolError, match="before version"):
            handshake.receive(None)
        assert handshake.state is SessionState.FAILED

    def test_decode_error(self):
        """An undecodable first frame fails with the decode error as cause."""
        handshake = _pending()
        error = DecodeError("Malformed JSON", frame=b"garbage\n")
        with pytest.raises(ProtocolError) as exc_info:
            handshake.receive_error(error)
        assert exc_info.value.__cause__ is error
        assert handshake.state is SessionState.FAILED


class TestStateMachine:
    """Transitions are only valid in order."""

    def test_initial_state(self):
        """A new handshake has not started."""
        assert Handshake().state is SessionState.UNESTABLISHED

    def test_start_twice(self):
        """The handshake runs once per connection."""
        handshake = _pending()
        with pytest.raises(RuntimeError):
            handshake.start()

    def test_receive_before_start(self):
        """Frames are only accepted while waiting for the greeting."""
        with pytest.raises(RuntimeError):
            Handshake().receive(_version(3, 15))

    def test_receive_after_ready(self):
        """A second VERSION is not part of the handshake."""
        handshake = _pending()
        handshake.receive(_version(3, 15))
        with pytest.raises(RuntimeError):
            handshake.receive(_version(3, 15))

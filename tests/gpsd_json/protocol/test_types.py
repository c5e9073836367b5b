"""Tests for shared protocol records."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from gpsd_json.protocol.types import Device, Parity, PropertyFlags, Watch, epoch_to_datetime, sec_nsec_to_datetime


class TestWatch:
    """Watch policy records."""

    @pytest.mark.parametrize(
        "watch",
        [
            Watch(),
            Watch.default(),
            Watch(enable=True, json_=True),
            Watch(enable=True, nmea=True, device="/dev/ttyUSB0"),
            Watch(enable=True, raw=2, scaled=True, split24=True, remote="gpsd://host"),
        ],
    )
    def test_json_round_trip(self, watch: Watch):
        """Serializing and parsing gives back an equal record."""
        assert Watch.model_validate_json(watch.to_json()) == watch

    def test_empty_has_no_opinion(self):
        """A plain Watch sends no fields."""
        assert Watch().to_wire() == {}

    def test_default_turns_everything_off(self):
        """The protocol default disables watching and every format."""
        w = Watch.default()
        assert w.enable is False
        assert w.json_ is False
        assert w.nmea is False
        assert w.raw == 0
        assert w.device is None

    def test_json_alias(self):
        """The json flag uses its wire name in both directions."""
        assert Watch(json_=True).to_wire() == {"json": True}
        assert Watch.model_validate({"json": True}).json_ is True

    def test_raw_range(self):
        """Raw mode is 0, 1 or 2."""
        with pytest.raises(ValidationError):
            Watch(raw=3)

    def test_frozen(self):
        """Records are immutable."""
        w = Watch()
        with pytest.raises(ValidationError):
            w.enable = True  # type: ignore[misc]


class TestDevice:
    """Device records."""

    def test_activated_iso(self):
        """ISO-8601 activation timestamps are parsed."""
        device = Device.model_validate({"activated": "2024-01-02T03:04:05.500Z"})
        assert device.activated == datetime(2024, 1, 2, 3, 4, 5, 500000, tzinfo=UTC)

    def test_activated_epoch(self):
        """Epoch numbers are accepted too."""
        device = Device.model_validate({"activated": 0})
        assert device.activated == datetime(1970, 1, 1, tzinfo=UTC)

    def test_activated_unparseable_string(self):
        """A string that is not a timestamp means unknown."""
        assert Device.model_validate({"activated": "never"}).activated is None

    def test_activated_wrong_type(self):
        """Other JSON types are rejected."""
        with pytest.raises(ValidationError):
            Device.model_validate({"activated": [1]})

    def test_activated_epoch_out_of_range(self):
        """An epoch no datetime can hold is rejected."""
        with pytest.raises(ValidationError, match="out of range"):
            Device.model_validate({"activated": 1e300})

    def test_flags_truncated(self):
        """Unknown capability bits are dropped."""
        device = Device.model_validate({"flags": 0x15})
        assert device.flags == PropertyFlags.SEEN_GPS | PropertyFlags.SEEN_RTCM3

    def test_parity_wire_value(self):
        """Parity travels as a single letter."""
        device = Device.model_validate({"parity": "E"})
        assert device.parity is Parity.EVEN
        assert device.to_wire() == {"parity": "E"}


class TestTimeHelpers:
    """Timestamp conversion helpers."""

    def test_epoch_passes_through_non_numbers(self):
        """Non-numeric values are left for normal validation."""
        assert epoch_to_datetime("2024-01-01T00:00:00Z") == "2024-01-01T00:00:00Z"
        assert epoch_to_datetime(True) is True

    def test_sec_nsec(self):
        """Nanoseconds are truncated to microseconds."""
        assert sec_nsec_to_datetime(1, 1999) == datetime(1970, 1, 1, 0, 0, 1, 1, tzinfo=UTC)

    def test_sec_nsec_missing(self):
        """Either half missing gives None."""
        assert sec_nsec_to_datetime(None, 0) is None
        assert sec_nsec_to_datetime(1, None) is None

    def test_epoch_out_of_range(self):
        """Unrepresentable epochs become validation errors."""
        with pytest.raises(ValueError, match="out of range"):
            epoch_to_datetime(1e300)
        with pytest.raises(ValueError, match="out of range"):
            epoch_to_datetime(float("nan"))

    def test_sec_nsec_out_of_range(self):
        """Unrepresentable second and nanosecond pairs become validation errors."""
        with pytest.raises(ValueError, match="out of range"):
            sec_nsec_to_datetime(1e300, 0)
        with pytest.raises(ValueError, match="out of range"):
            sec_nsec_to_datetime(1, 2e9)

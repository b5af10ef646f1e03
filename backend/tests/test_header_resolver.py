"""
Tests for header alias resolution and numeric parsing.
"""

import math

import numpy as np
import pytest

from flightlog.services import channels
from flightlog.services.channels import HEADER_MAPPINGS, aliases_for
from flightlog.services.header_resolver import find_key, find_value, first_row, get_value, parse_numeric


class TestParseNumeric:
    """Tests for raw cell parsing."""

    def test_hex_string(self):
        """Hex strings should parse to their integer value."""
        assert parse_numeric("0x1F") == 31
        assert parse_numeric("0X1f") == 31

    def test_signed_prefixed_integer_is_missing(self):
        assert parse_numeric("-0x1F") is None
        assert parse_numeric("+0x1F") is None
        assert parse_numeric("-0b101") is None

    def test_digit_separators_are_missing(self):
        """Underscore separators are not part of a numeric cell."""
        assert parse_numeric("1_000") is None
        assert parse_numeric("0x_1F") is None
        assert parse_numeric("1_0.5") is None

    def test_non_numeric_string_is_missing(self):
        """Non-numeric text resolves to None."""
        assert parse_numeric("abc") is None

    def test_empty_and_whitespace_are_missing(self):
        """Empty cells never become zero."""
        assert parse_numeric("") is None
        assert parse_numeric("   ") is None
        assert parse_numeric(None) is None

    def test_decimal_strings(self):
        """Decimal and exponent strings parse as floats."""
        assert parse_numeric("12.5") == pytest.approx(12.5)
        assert parse_numeric(" -3.25 ") == pytest.approx(-3.25)
        assert parse_numeric("1e3") == pytest.approx(1000.0)

    def test_numbers_pass_through(self):
        """Native and numpy numbers are accepted."""
        assert parse_numeric(7) == 7
        assert isinstance(parse_numeric(7), int)
        assert parse_numeric(2.5) == pytest.approx(2.5)
        assert parse_numeric(np.float64(4.0)) == pytest.approx(4.0)

    def test_non_finite_is_missing(self):
        """NaN and infinity are treated as not present."""
        assert parse_numeric(float("nan")) is None
        assert parse_numeric(math.inf) is None
        assert parse_numeric("inf") is None
        assert parse_numeric("nan") is None

    def test_bool_is_missing(self):
        """Booleans are not numeric readings."""
        assert parse_numeric(True) is None


class TestAliasResolution:
    """Tests for canonical channel lookup across naming conventions."""

    def test_canonical_name_first(self):
        """Every alias list starts with its canonical name."""
        for canonical, aliases in HEADER_MAPPINGS.items():
            assert aliases[0] == canonical

    def test_short_alias(self):
        """Short vendor names resolve to the canonical channel."""
        row = {"esc1_voltage": "16.4"}
        assert get_value(row, channels.ESC_VOLTAGE) == pytest.approx(16.4)

    def test_priority_order(self):
        """The first alias present wins."""
        row = {"blackbox.attitude.roll": 0.1, "roll": 0.5}
        assert get_value(row, channels.ROLL) == pytest.approx(0.1)

    def test_unparseable_alias_falls_through(self):
        """An unparseable value does not hide a later valid alias."""
        row = {"blackbox.attitude.roll": "", "roll": "0.2"}
        assert get_value(row, channels.ROLL) == pytest.approx(0.2)

    def test_missing_channel(self):
        """Channels with no matching column resolve to None."""
        assert get_value({"foo": 1}, channels.ROLL) is None

    def test_none_row(self):
        """A missing row resolves everything to None."""
        assert get_value(None, channels.ROLL) is None
        assert find_value(None, ["roll"]) is None

    def test_motor_aliases(self):
        """Motors resolve from several spellings."""
        assert get_value({"motor1": 15000}, channels.MOTORS[0]) == 15000
        assert get_value({"Motor 3": 14000}, channels.MOTORS[2]) == 14000

    def test_unknown_channel_uses_own_name(self):
        """A channel without a mapping is looked up verbatim."""
        assert aliases_for("custom_channel") == ["custom_channel"]
        assert get_value({"custom_channel": "5"}, "custom_channel") == 5.0


class TestRowHelpers:
    """Tests for first_row and find_key."""

    def test_first_row_skips_empty(self):
        """The first non-empty row is returned."""
        rows = [None, {}, {"time": 1}]
        assert first_row(rows) == {"time": 1}

    def test_first_row_none_when_all_empty(self):
        assert first_row([None, {}]) is None

    def test_find_key_ignores_none_values(self):
        """Keys whose value is None do not count as present."""
        row = {"unix_time": None, "time": 10}
        assert find_key(row, ["unix_time", "time"]) == "time"

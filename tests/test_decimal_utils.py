"""Tests for raw integer to decimal conversion."""

import pytest

from price_resolver.utils.decimal_utils import (
    format_price,
    price_from_reserves,
    to_decimal_string,
    to_float,
)


class TestToDecimalString:
    def test_digits_longer_than_decimals(self):
        assert to_decimal_string(2_500_000, 6) == "2.500000"

    def test_digits_shorter_than_decimals(self):
        assert to_decimal_string(5, 3) == "0.005"

    def test_zero(self):
        assert to_decimal_string(0, 4) == "0.0000"

    def test_zero_decimals(self):
        assert to_decimal_string(42, 0) == "42"

    def test_string_input(self):
        assert to_decimal_string("1000000000000000000", 18) == "1.000000000000000000"

    def test_preserves_every_digit_of_large_integers(self):
        raw = 123456789012345678901234567890
        assert to_decimal_string(raw, 18) == "123456789012.345678901234567890"

    def test_negative_decimals_rejected(self):
        with pytest.raises(ValueError):
            to_decimal_string(1, -1)


class TestToFloat:
    def test_parses_decimal_string_once(self):
        raw = 123456789012345678901234567890
        assert to_float(raw, 18) == float("123456789012.345678901234567890")

    def test_six_decimal_token(self):
        assert to_float(250 * 10 ** 6, 6) == 250.0


class TestPriceFromReserves:
    def test_round_price(self):
        # 100 base (18d) against 250 quote (6d)
        assert price_from_reserves(100 * 10 ** 18, 18, 250 * 10 ** 6, 6) == 2.5

    def test_matches_reference_formula(self):
        base_raw, quote_raw = 10 ** 18, 2 * 10 ** 6
        expected = (quote_raw / 10 ** 6) / (base_raw / 10 ** 18)
        assert price_from_reserves(base_raw, 18, quote_raw, 6) == expected

    def test_empty_base_reserve_is_unpriceable(self):
        assert price_from_reserves(0, 18, 250 * 10 ** 6, 6) == 0.0


def test_format_price_avoids_scientific_notation():
    assert format_price(0.00000012) == "0.00000012"
    assert format_price(2.5) == "2.5"
    assert format_price(0) == "0"

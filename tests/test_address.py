"""Tests for address validation and normalization."""

from price_resolver.utils.address import (
    ZERO_ADDRESS,
    canonicalize_address,
    is_zero_address,
    normalize_addresses,
)

USDC_MIXED = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
USDC_LOWER = USDC_MIXED.lower()


class TestCanonicalizeAddress:
    def test_lowercases_valid_address(self):
        assert canonicalize_address(USDC_MIXED) == USDC_LOWER

    def test_strips_whitespace(self):
        assert canonicalize_address(f"  {USDC_MIXED} ") == USDC_LOWER

    def test_rejects_wrong_length(self):
        assert canonicalize_address("0x1234") is None
        assert canonicalize_address(USDC_MIXED + "00") is None

    def test_rejects_non_hex(self):
        assert canonicalize_address("0x" + "zz" * 20) is None

    def test_rejects_missing_prefix(self):
        assert canonicalize_address(USDC_LOWER[2:]) is None

    def test_accepts_mixed_case_without_checksum(self):
        bad_checksum = "0x833589FCD6eDb6E08f4c7C32D4f71b54bdA02913"
        assert canonicalize_address(bad_checksum) == USDC_LOWER

    def test_rejects_non_string(self):
        assert canonicalize_address(None) is None
        assert canonicalize_address(12345) is None


class TestNormalizeAddresses:
    def test_comma_separated_input(self):
        result = normalize_addresses(f"{USDC_MIXED},0x4200000000000000000000000000000000000006")
        assert result == {USDC_LOWER, "0x4200000000000000000000000000000000000006"}

    def test_duplicates_collapse_case_insensitively(self):
        result = normalize_addresses([USDC_MIXED, USDC_LOWER, USDC_LOWER.upper().replace("0X", "0x")])
        assert result == {USDC_LOWER}

    def test_invalid_entries_are_dropped(self):
        result = normalize_addresses([USDC_MIXED, "not-an-address", "", "0xdeadbeef"])
        assert result == {USDC_LOWER}

    def test_empty_input(self):
        assert normalize_addresses("") == set()
        assert normalize_addresses([]) == set()
        assert normalize_addresses(None) == set()


def test_zero_address_detection():
    assert is_zero_address(ZERO_ADDRESS)
    assert is_zero_address(None)
    assert not is_zero_address(USDC_LOWER)

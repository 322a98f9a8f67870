"""Address validation and canonicalization."""

from typing import Iterable, Optional, Set, Union

from eth_utils import is_hex_address

ZERO_ADDRESS = "0x" + "0" * 40


def canonicalize_address(address: Optional[str]) -> Optional[str]:
    """Return the lower-case 0x form of an address, or None if malformed."""
    if not isinstance(address, str):
        return None
    candidate = address.strip()
    # is_hex_address also accepts unprefixed hex
    if not candidate.startswith("0x") or not is_hex_address(candidate):
        return None
    return candidate.lower()


def normalize_addresses(raw: Union[str, Iterable[str], None]) -> Set[str]:
    """Validate, canonicalize and dedupe a batch of addresses.

    Accepts a comma-separated string or any iterable of strings. Entries that
    are not 0x-prefixed 40-digit hex are dropped silently.
    """
    if raw is None:
        return set()
    if isinstance(raw, str):
        raw = raw.split(",")

    normalized = set()
    for entry in raw:
        address = canonicalize_address(entry)
        if address is not None:
            normalized.add(address)
    return normalized


def is_zero_address(address: Optional[str]) -> bool:
    return address is None or address.lower() == ZERO_ADDRESS

from .address import ZERO_ADDRESS, canonicalize_address, is_zero_address, normalize_addresses
from .decimal_utils import format_price, price_from_reserves, to_decimal_string, to_float

__all__ = [
    "ZERO_ADDRESS",
    "canonicalize_address",
    "is_zero_address",
    "normalize_addresses",
    "format_price",
    "price_from_reserves",
    "to_decimal_string",
    "to_float",
]

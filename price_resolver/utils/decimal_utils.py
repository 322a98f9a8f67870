"""
Fixed-point utilities for converting raw on-chain integers.
Builds the decimal representation from the integer's digit string so large
reserves are never pushed through float division before the final ratio.
"""

from decimal import Decimal
from typing import Union


class FixedPoint:
    """Utility class for raw token amount conversion."""

    @staticmethod
    def to_decimal_string(raw: Union[int, str], decimals: int) -> str:
        """
        Right-align the digits of a raw integer against its decimal precision.

        Args:
            raw: Raw integer amount (int or base-10 string)
            decimals: Token decimals

        Returns:
            Plain decimal string, e.g. (2500000, 6) -> "2.500000"
        """
        value = int(raw)
        if decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {decimals}")

        sign = "-" if value < 0 else ""
        digits = str(abs(value))

        if decimals == 0:
            return f"{sign}{digits}"

        if len(digits) > decimals:
            whole = digits[:-decimals]
            frac = digits[-decimals:]
        else:
            whole = "0"
            frac = digits.rjust(decimals, "0")

        return f"{sign}{whole}.{frac}"

    @staticmethod
    def to_float(raw: Union[int, str], decimals: int) -> float:
        """Convert a raw integer amount to a float, parsing the decimal string once."""
        return float(FixedPoint.to_decimal_string(raw, decimals))

    @staticmethod
    def price_from_reserves(
        base_reserve: Union[int, str],
        base_decimals: int,
        quote_reserve: Union[int, str],
        quote_decimals: int
    ) -> float:
        """
        Spot price of the base token denominated in the quote token.

        Returns 0.0 when the base side is empty, which callers treat as
        "unpriceable".
        """
        base_amount = FixedPoint.to_float(base_reserve, base_decimals)
        quote_amount = FixedPoint.to_float(quote_reserve, quote_decimals)

        if base_amount <= 0:
            return 0.0

        return quote_amount / base_amount

    @staticmethod
    def format_price(value: Union[float, int, str], max_decimals: int = 8) -> str:
        """Format a price for display without scientific notation."""
        try:
            if not value:
                return "0"
            formatted = format(Decimal(str(value)), f".{max_decimals}f").rstrip("0").rstrip(".")
            return formatted or "0"
        except (ValueError, ArithmeticError):
            return "0"


# Convenient functions for direct use
def to_decimal_string(raw, decimals: int) -> str:
    """Raw integer to plain decimal string."""
    return FixedPoint.to_decimal_string(raw, decimals)

def to_float(raw, decimals: int) -> float:
    """Raw integer to float."""
    return FixedPoint.to_float(raw, decimals)

def price_from_reserves(base_reserve, base_decimals: int, quote_reserve, quote_decimals: int) -> float:
    """Spot price of base in quote from raw reserves."""
    return FixedPoint.price_from_reserves(base_reserve, base_decimals, quote_reserve, quote_decimals)

def format_price(value, max_decimals: int = 8) -> str:
    """Format price value to avoid scientific notation."""
    return FixedPoint.format_price(value, max_decimals)

"""USD spot price resolution for token addresses."""

__version__ = "1.0.0"

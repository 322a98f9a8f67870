"""Exceptions raised by the resolver's upstream clients."""


class PriceResolverError(Exception):
    """Base class for resolver errors."""


class RPCError(PriceResolverError):
    """A JSON-RPC call failed on every configured endpoint."""

    def __init__(self, method: str, message: str):
        self.method = method
        super().__init__(f"{method}: {message}")


class SessionNotInitializedError(PriceResolverError):
    """The HTTP session was used before connect()."""

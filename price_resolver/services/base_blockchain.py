"""Base blockchain service with core RPC functionality."""

from typing import List, Any, Optional, Sequence
import asyncio
import aiohttp
import structlog
from eth_abi import encode
from web3 import Web3

from ..config.settings import ChainConfig, Settings
from .errors import RPCError, SessionNotInitializedError

logger = structlog.get_logger()

WORD_HEX_LENGTH = 64


def function_selector(signature: str) -> str:
    """4-byte selector for a Solidity function signature, 0x-prefixed."""
    return "0x" + bytes(Web3.keccak(text=signature))[:4].hex()


def encode_call(signature: str, arg_types: Sequence[str] = (), args: Sequence[Any] = ()) -> str:
    """Build eth_call calldata for a function signature and its arguments."""
    calldata = function_selector(signature)
    if arg_types:
        calldata += encode(list(arg_types), list(args)).hex()
    return calldata


def decode_words(result: str, count: int) -> List[int]:
    """Split an ABI-encoded return value into its first `count` uint words."""
    if not isinstance(result, str):
        raise ValueError(f"Expected hex string, got {type(result).__name__}")
    data = result[2:] if result.startswith("0x") else result
    if len(data) < count * WORD_HEX_LENGTH:
        raise ValueError(f"Expected {count} words, got {len(data) // WORD_HEX_LENGTH}")
    return [
        int(data[i * WORD_HEX_LENGTH:(i + 1) * WORD_HEX_LENGTH], 16)
        for i in range(count)
    ]


def decode_address(result: str) -> str:
    """Decode a single ABI-encoded address return value (lower-case)."""
    if not isinstance(result, str):
        raise ValueError(f"Expected hex string, got {type(result).__name__}")
    data = result[2:] if result.startswith("0x") else result
    if len(data) < WORD_HEX_LENGTH:
        raise ValueError(f"Invalid address return data: {result}")
    return "0x" + data[WORD_HEX_LENGTH - 40:WORD_HEX_LENGTH].lower()


class BaseBlockchainService:
    """Base service for blockchain RPC interactions."""

    def __init__(self, chain_config: ChainConfig, settings: Optional[Settings] = None):
        self.chain_config = chain_config
        self.settings = settings or Settings()
        self.primary_urls = chain_config.resolve_rpc_urls(self.settings)
        self.backup_urls = list(chain_config.backup_rpc_urls)
        self.session: Optional[aiohttp.ClientSession] = None
        self._rpc_index = 0

    async def connect(self) -> None:
        """Open the HTTP session used for JSON-RPC calls."""
        if self.session and not self.session.closed:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.rpc_timeout)
        )
        logger.info("RPC session opened",
                    chain_id=self.chain_config.chain_id,
                    chain_name=self.chain_config.name,
                    primary_rpcs=len(self.primary_urls),
                    backup_rpcs=len(self.backup_urls))

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None
        logger.info("Disconnected from blockchain", chain_id=self.chain_config.chain_id)

    def get_next_primary_rpc_url(self) -> str:
        """Get next RPC URL using round robin from the primary list."""
        current_url = self.primary_urls[self._rpc_index % len(self.primary_urls)]
        self._rpc_index = (self._rpc_index + 1) % len(self.primary_urls)
        return current_url

    def _candidate_urls(self) -> List[str]:
        """Every primary URL once, starting at the round-robin cursor, then backups."""
        start = self._rpc_index % len(self.primary_urls)
        self.get_next_primary_rpc_url()
        primary = self.primary_urls[start:] + self.primary_urls[:start]
        return primary + [url for url in self.backup_urls if url not in primary]

    async def _make_rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make async RPC call with failover support."""
        if not self.session:
            raise SessionNotInitializedError("Session not initialized")

        rpc_urls = self._candidate_urls()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": 1
        }

        last_error = None

        for i, rpc_url in enumerate(rpc_urls):
            try:
                async with self.session.post(
                    rpc_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.settings.rpc_timeout)
                ) as response:

                    if response.status != 200:
                        raise RPCError(method, f"HTTP {response.status}: {await response.text()}")

                    data = await response.json(content_type=None)

                    if "error" in data:
                        raise RPCError(method, f"RPC error: {data['error']}")

                    result = data.get("result")
                    if result is None:
                        raise RPCError(method, "RPC returned null result")
                    if not isinstance(result, str):
                        raise RPCError(method, f"RPC returned non-hex result: {type(result).__name__}")

                    if i > 0:
                        logger.info("RPC call succeeded after failover",
                                    method=method,
                                    attempt=i + 1)

                    return result

            except (aiohttp.ClientError, asyncio.TimeoutError, RPCError, ValueError) as e:
                last_error = e
                logger.warning("RPC call failed, trying next URL",
                               method=method,
                               rpc_url=rpc_url[:50] + "..." if len(rpc_url) > 50 else rpc_url,
                               error=str(e),
                               attempt=i + 1,
                               remaining_rpcs=len(rpc_urls) - i - 1)

                if i < len(rpc_urls) - 1 and self.settings.rpc_retry_delay > 0:
                    await asyncio.sleep(self.settings.rpc_retry_delay)

        logger.error("All RPC URLs failed",
                     method=method,
                     total_rpcs_tried=len(rpc_urls),
                     last_error=str(last_error))

        raise RPCError(method, f"All {len(rpc_urls)} RPC URLs failed. Last error: {last_error}")

    async def eth_call(self, to: str, data: str) -> str:
        """Read-only contract call against the latest block."""
        return await self._make_rpc_call("eth_call", [{"to": to, "data": data}, "latest"])

    async def get_latest_block(self) -> int:
        """Get latest block number."""
        result = await self._make_rpc_call("eth_blockNumber", [])
        return int(result, 16)

    async def health_check(self) -> dict:
        """Check RPC connectivity."""
        try:
            latest_block = await self.get_latest_block()
            return {"status": "healthy", "latest_block": latest_block}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

"""
HTTP API for the token price resolver

Serves the dashboard's price lookups plus health and reference endpoints.
"""

from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
import uvicorn
import structlog

from .config.settings import Settings, get_settings, load_chain_configs
from .models.price import PoolQuotesResponse, PriceResponse, ReferencePricesResponse
from .services.price_service import TokenPriceService


logger = structlog.get_logger()


class PriceApiServer:
    """HTTP server exposing token prices."""

    def __init__(self, service: TokenPriceService, settings: Optional[Settings] = None):
        self.service = service
        self.settings = settings or service.settings
        self.app = FastAPI(
            title="Token Price Resolver API",
            description="USD spot prices for token addresses",
            version="1.0.0",
            lifespan=self._lifespan
        )
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.service.connect()
        try:
            yield
        finally:
            await self.service.disconnect()

    def _parse_chain_id(self, chain_id: Optional[str]) -> Optional[int]:
        if chain_id is None or chain_id == "":
            return self.settings.supported_chain_id
        try:
            return int(chain_id)
        except ValueError:
            return None

    def _setup_routes(self):
        """Setup HTTP routes."""

        @self.app.get("/api/prices/token", response_class=JSONResponse)
        async def token_prices(
            chainId: Optional[str] = Query(None),
            addresses: str = Query("")
        ):
            """USD prices for a comma-separated list of token addresses."""
            try:
                chain_id = self._parse_chain_id(chainId)
                if chain_id is None:
                    chain_id = -1  # Never the supported chain

                prices = await self.service.get_prices(chain_id, addresses)

                return JSONResponse(
                    content=PriceResponse(prices=prices).model_dump(),
                    headers={
                        "Cache-Control": f"public, s-maxage={self.settings.cache_ttl_seconds}"
                    }
                )
            except Exception as e:
                logger.error("Token price request failed",
                             chain_id=chainId,
                             error=str(e),
                             error_type=type(e).__name__)
                return JSONResponse(content=PriceResponse().model_dump(), status_code=500)

        @self.app.get("/api/prices/pools", response_class=JSONResponse)
        async def pool_quotes():
            """Spot prices of the configured named pools."""
            try:
                quotes = await self.service.quote_named_pools()
                response = PoolQuotesResponse(chain_id=self.service.chain_config.chain_id, quotes=quotes)
                return JSONResponse(content=response.model_dump(mode="json"))
            except Exception as e:
                logger.error("Pool quote request failed", error=str(e))
                return JSONResponse(content={"quotes": {}}, status_code=500)

        @self.app.get("/api/prices/reference", response_class=JSONResponse)
        async def reference_prices(chainId: Optional[str] = Query(None)):
            """Reference token prices in stable units."""
            try:
                chain_id = self._parse_chain_id(chainId)
                if chain_id is None:
                    chain_id = -1

                if chain_id == self.service.chain_config.chain_id:
                    prices = await self.service.reference_prices()
                else:
                    prices = {}
                response = ReferencePricesResponse(chain_id=chain_id, prices=prices)
                return JSONResponse(content=response.model_dump(mode="json"))
            except Exception as e:
                logger.error("Reference price request failed", error=str(e))
                return JSONResponse(content={"prices": {}}, status_code=500)

        @self.app.get("/health", response_class=JSONResponse)
        async def health_check():
            """Main health check endpoint."""
            try:
                health_status = await self.service.health_check()
                status_code = 200 if health_status.get("status") == "healthy" else 503
                return JSONResponse(content=health_status, status_code=status_code)
            except Exception as e:
                logger.error("Health check failed", error=str(e))
                return JSONResponse(
                    content={"status": "unhealthy", "error": str(e)},
                    status_code=503
                )

        @self.app.get("/", response_class=JSONResponse)
        async def root():
            """Root endpoint with basic info."""
            return JSONResponse(content={
                "service": "Token Price Resolver",
                "version": "1.0.0",
                "chain_id": self.service.chain_config.chain_id,
                "endpoints": {
                    "token_prices": "/api/prices/token?chainId=&addresses=",
                    "pool_quotes": "/api/prices/pools",
                    "reference_prices": "/api/prices/reference",
                    "health": "/health"
                }
            })

    async def start(self):
        """Start the API server."""
        config = uvicorn.Config(
            self.app,
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level=self.settings.log_level.lower(),
            access_log=False
        )
        server = uvicorn.Server(config)

        logger.info("Starting API server", host=self.settings.api_host, port=self.settings.api_port)
        await server.serve()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory for uvicorn."""
    settings = settings or get_settings()
    service = TokenPriceService.from_configs(load_chain_configs(settings=settings), settings)
    return PriceApiServer(service, settings).app

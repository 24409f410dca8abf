import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .routers import health, rates
from .services.rates.cache_service import ResponseCache
from .services.rates.conversion import CurrencyConverter
from .services.rates.providers import ExchangeRateApiClient

logger = logging.getLogger("fxconvert")


def build_converter(
    settings: Settings, http_client: Optional[httpx.AsyncClient] = None
) -> CurrencyConverter:
    """Wire one cache and one rate client together.

    Called once per process run; the returned converter owns the cache for the
    rest of that run.
    """
    cache = ResponseCache(ttl_seconds=settings.rates_cache_ttl_seconds)
    client = ExchangeRateApiClient.from_settings(settings, http_client=http_client)
    return CurrencyConverter(cache, client)


def create_app(
    settings_override: Settings | None = None,
    converter: CurrencyConverter | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    converter: prebuilt converter (tests inject one backed by a mock
    transport). When omitted, one is built at startup with a shared
    httpx.AsyncClient that is closed on shutdown.
    """
    settings = settings_override or get_settings()
    init_logging(debug=settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if converter is not None:
            yield
            return
        async with httpx.AsyncClient() as http_client:
            app.state.converter = build_converter(settings, http_client)
            logger.info(
                "rate cache ready (ttl=%ss)", app.state.converter.cache.ttl
            )
            yield

    # Fail fast on a missing key rather than on the first request
    if converter is None:
        settings.require_api_key()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    if converter is not None:
        app.state.converter = converter

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.FxConvertError, errors.fxconvert_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(rates.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app

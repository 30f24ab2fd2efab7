"""
FastAPI Application - Crypto Widget Proxy API

Serves the coin functions used by the price widget. Each function proxies
CoinMarketCap, caches the normalized result in memory and answers with
permissive CORS headers so the widget can be embedded on any site.

Endpoints:
    - GET|OPTIONS /functions/coins-list                 Top 100 coins, RichQuack first
    - GET|OPTIONS /functions/crypto-data?slug=<slug>    Latest quote for one coin
    - GET /                                             API information
    - GET /health                                       Cache and configuration status

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from core.config import settings, validate_configuration
from core.logging import logger, set_log_level
from services.functions import (
    BaseFunction,
    FunctionContext,
    FunctionRequest,
    ListingsFunction,
    QuoteFunction,
)


FUNCTION_METHODS = ["GET", "POST", "OPTIONS"]


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration(app.state.context.settings)
        set_log_level(app.state.context.settings.log_level)
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutdown Complete ===")


# ============================================
# Request Adaptation
# ============================================

async def run_function(function: BaseFunction, request: Request) -> Response:
    """Run a handler for a FastAPI request and pass its response through unchanged."""
    result = await function(
        FunctionRequest(
            http_method=request.method,
            query_string_parameters=dict(request.query_params),
        )
    )
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
    )


# ============================================
# FastAPI Application
# ============================================

def create_app(context: Optional[FunctionContext] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        context: Shared caches and upstream client factory. A new context
            built from the global settings is used when omitted.

    Returns:
        Configured FastAPI instance with the context on `app.state.context`
    """
    app = FastAPI(
        title="Crypto Widget Proxy API",
        description=(
            "CoinMarketCap proxy for the embeddable crypto price widget.\n\n"
            "## Functions\n"
            "- `GET /functions/coins-list` - Top coins by market cap (RichQuack first), cached 5 minutes\n"
            "- `GET /functions/crypto-data?slug=bitcoin` - Latest quote for one coin, cached 30 seconds\n\n"
            "Both answer `OPTIONS` preflight with 204 and send "
            "`Access-Control-Allow-Origin: *` on every response.\n\n"
            "## System\n"
            "- `GET /` - API information\n"
            "- `GET /health` - Cache and configuration status"
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.context = context or FunctionContext.from_settings(settings)
    listings = ListingsFunction(app.state.context)
    quote = QuoteFunction(app.state.context)

    # ============================================
    # System Endpoints
    # ============================================

    @app.get("/", tags=["System"])
    async def root():
        """API information."""
        return {
            "name": "Crypto Widget Proxy API",
            "version": "1.0.0",
            "status": "operational",
            "docs": "/docs",
            "functions": ["/functions/coins-list", "/functions/crypto-data"]
        }

    @app.get("/health", tags=["System"])
    async def health_check():
        """Cache sizes and whether an upstream API key is configured."""
        ctx = app.state.context
        return {
            "status": "healthy" if ctx.settings.has_api_key else "degraded",
            "api_key_configured": ctx.settings.has_api_key,
            "caches": {
                "listings": {"entries": len(ctx.listings_cache), "ttl": ctx.listings_cache.ttl},
                "quotes": {"entries": len(ctx.quote_cache), "ttl": ctx.quote_cache.ttl},
            }
        }

    # ============================================
    # Function Endpoints
    # ============================================

    @app.api_route("/functions/coins-list", methods=FUNCTION_METHODS, tags=["Functions"])
    async def coins_list(request: Request):
        """Top coins by market cap with RichQuack prepended."""
        return await run_function(listings, request)

    @app.api_route("/functions/crypto-data", methods=FUNCTION_METHODS, tags=["Functions"])
    async def crypto_data(request: Request):
        """Latest quote for `?slug=<coin slug>`."""
        return await run_function(quote, request)

    # ============================================
    # Error Handlers
    # ============================================

    @app.exception_handler(404)
    async def not_found_handler(request, exc):
        """Handle 404 errors."""
        return JSONResponse(status_code=404, content={"detail": "Not found", "path": str(request.url)})

    @app.exception_handler(500)
    async def internal_error_handler(request, exc):
        """Handle 500 errors."""
        logger.error(f"Internal error: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()

"""
FastAPI application for the EdgeFinder API.

Main entry point for the REST API that exposes:
- Health check endpoints
- Normalised odds per event
- +EV prices against a baseline bookmaker
- Cross-book arbitrage opportunities
- Batch evaluation and bundled fixtures

Run with:
    uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routers import arbitrage, ev, fixtures, health, odds, opportunities
from api.state import AppState
from edgefinder.betting.errors import EdgeFinderError
from edgefinder.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


async def edgefinder_error_handler(request: Request, exc: EdgeFinderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.message}")
    else:
        logger.debug(f"{request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "query")
        messages.append(f"{location}: {error.get('msg')}")
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use instead of the environment (tests)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Initializes the feed on startup and clears it on shutdown.
        """
        logger.info("Starting EdgeFinder API...")

        state = AppState(settings)
        await state.initialize()
        app.state.app_state = state

        logger.info("EdgeFinder API started successfully")

        yield

        logger.info("Shutting down EdgeFinder API...")
        await state.shutdown()
        logger.info("EdgeFinder API shutdown complete")

    app = FastAPI(
        title="EdgeFinder API",
        description="+EV and arbitrage detection across sportsbooks",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EdgeFinderError, edgefinder_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(odds.router, prefix="/api", tags=["Odds"])
    app.include_router(ev.router, prefix="/api", tags=["Expected Value"])
    app.include_router(arbitrage.router, prefix="/api", tags=["Arbitrage"])
    app.include_router(opportunities.router, prefix="/api", tags=["Opportunities"])
    app.include_router(fixtures.router, prefix="/api", tags=["Fixtures"])

    @app.get("/")
    async def root():
        """Root endpoint with pointers to the docs."""
        return {
            "name": "EdgeFinder API",
            "version": "0.1.0",
            "docs": "/api/docs",
            "health": "/api/health",
        }

    return app


app = create_app()

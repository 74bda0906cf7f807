"""
Mail Relay API
FastAPI application that relays JSON email requests to an SMTP server.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mailrelay.config import Settings
from mailrelay.routers import send

logger = logging.getLogger(__name__)

APP_NAME = "Mail Relay API"
APP_VERSION = "0.1.0"


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": send.format_validation_errors(exc.errors())})


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app(settings: Settings) -> FastAPI:
    """
    Build the FastAPI application around an explicit Settings object.

    Settings live on ``app.state.settings`` and reach handlers through the
    ``get_settings`` dependency, so tests can build an app with fake
    credentials without touching the environment.
    """
    app = FastAPI(
        title=APP_NAME,
        description="Relay JSON email requests to an authenticated SMTP server",
        version=APP_VERSION,
    )
    app.state.settings = settings

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    app.include_router(send.router, tags=["send"])

    @app.get("/")
    async def root():
        return {"message": APP_NAME, "version": APP_VERSION}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.debug("Application created for SMTP account %s", settings.gmail_from)
    return app

"""
Gemini OpenAI Gateway Application Entry Point

Builds the FastAPI application: middleware, error handlers and the OpenAI routes.
"""

import argparse
import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gemini_gateway import __version__
from gemini_gateway.api.proxy import openai_router
from gemini_gateway.common.errors import AppError
from gemini_gateway.config import get_settings
from gemini_gateway.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Logging must be configured before the first request logger is used
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup and shutdown hooks

    The Gemini model list is fetched lazily with the first caller's key, so
    startup only reports the effective configuration.
    """
    settings = get_settings()
    logger.info(
        "Starting %s: backend=%s/%s model_mapping=%s",
        settings.APP_NAME,
        settings.GEMINI_BASE_URL,
        settings.GEMINI_API_VERSION,
        settings.model_mapping_enabled,
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="OpenAI compatible API gateway for Google Gemini",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
# ALLOWED_ORIGINS is a comma-separated list
allowed_origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Render an AppError raised outside the route bodies (e.g. by a dependency)

    Error details are only returned in debug mode.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=get_settings().DEBUG),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Render anything that escaped the routes as a 500

    The traceback is logged; clients only see it in debug mode.
    """
    logger.error(
        "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
        str(exc),
        request.url.path,
        traceback.format_exc(),
    )

    content = {
        "error": {
            "message": "Internal server error",
            "type": "server_error",
            "code": "internal_error",
        }
    }
    if get_settings().DEBUG:
        content["error"]["message"] = str(exc)
        content["error"]["traceback"] = traceback.format_exc().split("\n")
    return JSONResponse(status_code=500, content=content)


# Health Check Endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health Check

    Liveness probe; does not contact the backend.
    """
    return {"status": "healthy"}


@app.get("/", tags=["Health"])
async def root():
    """Basic service information"""
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "description": "OpenAI compatible API gateway for Google Gemini",
    }


# Register Proxy Routers
app.include_router(openai_router)


def run(argv: Optional[list[str]] = None) -> None:
    """Command line entry point: serve the gateway with uvicorn."""
    import uvicorn

    parser = argparse.ArgumentParser(description=settings.APP_NAME)
    parser.add_argument("--host", default=settings.HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Bind port")
    args = parser.parse_args(argv)

    uvicorn.run(
        "gemini_gateway.main:app",
        host=args.host,
        port=args.port,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    run()

"""
Main FastAPI application entry point
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_api.__version__ import __build_time__, __version__
from portfolio_api.api.v1.api import api_router
from portfolio_api.core.config import settings
from portfolio_api.core.logging import setup_logging
from portfolio_api.core.timing import TimingMiddleware
from portfolio_api.services.email_service import email_service

logger = logging.getLogger(__name__)

# Configure logging first
setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    debug=settings.DEBUG,
)

app.add_middleware(TimingMiddleware)

# Set up CORS so the static site can post to the API
if settings.BACKEND_CORS_ORIGINS:
    cors_origins = [str(origin).strip().rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_PREFIX)

logger.info(
    f"{settings.PROJECT_NAME} started in {settings.ENVIRONMENT} "
    f"(email transport: {email_service.mode})"
)


@app.get("/health")
def health_check():
    """Health check endpoint reporting version and email transport mode."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__,
        "build_time": __build_time__,
        "email_transport": email_service.mode,
    }


if __name__ == "__main__":
    import os

    import uvicorn

    # Use 127.0.0.1 for security unless explicitly overridden
    host = os.getenv("UVICORN_HOST", "127.0.0.1")
    port = int(os.getenv("UVICORN_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)

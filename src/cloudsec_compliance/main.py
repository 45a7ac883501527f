"""cloudsec-compliance HTTP service entry point.

Initializes the FastAPI application with:
- Rule registry and compliance engine built from settings
- boto3 fetchers for security groups, buckets, roles and clusters
- CloudWatch/SNS report publisher

Run with ``uvicorn cloudsec_compliance.main:app``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cloudsec_compliance import __version__
from cloudsec_compliance.api.router import router
from cloudsec_compliance.observability import configure_logging, get_logger
from cloudsec_compliance.settings import Settings
from cloudsec_compliance.wiring import build_check_service

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the check service on startup and store it on app state.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    settings = Settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    logger.info("Initializing check service", service=settings.service_name)
    app.state.settings = settings
    app.state.check_service = build_check_service(settings)
    logger.info("Compliance service startup complete", environment=settings.environment)

    yield

    logger.info("Compliance service shutdown complete")


def create_app() -> FastAPI:
    """Create the FastAPI application with the compliance router mounted."""
    application = FastAPI(title="cloudsec-compliance", version=__version__, lifespan=lifespan)
    application.include_router(router, prefix="/api/v1")

    @application.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app: FastAPI = create_app()

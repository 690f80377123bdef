"""
Observability hooks.
Exceptions and workflow failures are funnelled through here so a tracing
backend can be attached without touching the services.
"""

from fastapi import Request
import logging

from practicum.core.config import settings

logger = logging.getLogger(__name__)


def setup_observability() -> None:
    """
    Initialize observability.

    Only logs the configured exporter for now; the OTLP exporter is wired in
    the deployment image, not here.
    """
    logger.info(
        "Setting up observability",
        extra={
            "otel_endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            "service_name": settings.OTEL_SERVICE_NAME,
        },
    )


def record_exception(exc: Exception, request: Request) -> None:
    """
    Record an exception in the observability backend.

    Args:
        exc: The exception that occurred
        request: The FastAPI request object
    """
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={
            "exception_message": str(exc),
            "path": request.url.path,
        },
    )

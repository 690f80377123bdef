"""
Dependency injection container using dependency-injector.
Wires process-wide singletons: the health service and the notification
delivery channel. Request-scoped services are built per request from the
database session.
"""

from typing import Optional

from dependency_injector import containers, providers

from practicum.core.config import settings
from practicum.core.integrations.notification_channels import (
    LoggingChannel,
    NotificationChannel,
    WebhookChannel,
)
from practicum.services.health_service import HealthService
from practicum.controllers.health_controller import HealthController


def build_notification_channel(webhook_url: Optional[str] = None, timeout: int = 10) -> NotificationChannel:
    """Webhook delivery when a relay URL is configured, otherwise log only."""
    if webhook_url:
        return WebhookChannel(webhook_url, timeout=timeout)
    return LoggingChannel()


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Configuration
    config = providers.Configuration()

    # Services
    health_service = providers.Singleton(
        HealthService,
    )

    notification_channel = providers.Singleton(
        build_notification_channel,
        webhook_url=config.notification_webhook_url,
        timeout=config.notification_webhook_timeout,
    )

    # Controllers
    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )


def container_config() -> dict:
    return {
        "notification_webhook_url": settings.NOTIFICATION_WEBHOOK_URL,
        "notification_webhook_timeout": settings.NOTIFICATION_WEBHOOK_TIMEOUT,
    }


# Global container instance
_container: Container = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = Container()
        _container.config.from_dict(container_config())
    return _container

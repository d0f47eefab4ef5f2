"""Process start-up: logging and error reporting."""

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration
from sentry_sdk.integrations.redis import RedisIntegration

from matchcore.config import settings
from matchcore.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def setup() -> None:
    """
    Configure logging and, when a DSN is configured, Sentry.

    A Sentry initialization failure is logged and does not stop start-up.
    """
    configure_logging()

    if not settings.SENTRY_DSN:
        logger.debug("Sentry DSN not configured, error reporting disabled")
        return

    logger.info("Initializing Sentry...")
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
            integrations=[
                AsyncioIntegration(),
                HttpxIntegration(),
                RedisIntegration(),
            ],
        )
        logger.info("Sentry initialized")
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))

"""
Sentry Integration - Error Tracking

Only server-side failures are reported; client errors (4xx) are dropped
and credentials are scrubbed from request headers.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from src.core.config import settings
from src.core.logging import get_logger

logger = get_logger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")


def init_sentry() -> None:
    """Initialize Sentry SDK. No-op when no DSN is configured."""
    if not settings.sentry_dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"agridrone-backend@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        send_default_pii=False,
        before_send=before_send,
    )

    logger.info("Sentry initialized", environment=settings.environment)


def before_send(event, hint):
    """Drop client errors and scrub sensitive headers."""
    exc_info = hint.get("exc_info") if hint else None
    if "exception" in event and exc_info:
        exc_value = exc_info[1]
        status_code = getattr(exc_value, "status_code", None)
        if isinstance(status_code, int) and 400 <= status_code < 500:
            return None

    headers = event.get("request", {}).get("headers")
    if headers:
        for header in list(headers):
            if header.lower() in SENSITIVE_HEADERS:
                headers[header] = "[FILTERED]"

    return event


def set_user(user_id: str, email: str | None = None) -> None:
    """Set user context for Sentry."""
    sentry_sdk.set_user({"id": user_id, "email": email})

"""Sentry configuration and initialization for error tracking."""

import logging
import os
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """
    Initialize Sentry SDK for error tracking.

    Environment variables:
        ENABLE_SENTRY: Feature flag to enable/disable Sentry
        SENTRY_DSN: Sentry project DSN
        SENTRY_ENVIRONMENT: Environment name (development, staging, production)
        SENTRY_TRACES_SAMPLE_RATE: Share of transactions to sample (0.0-1.0)
        GIT_COMMIT_SHA: Git commit SHA for release tracking (optional)

    Returns:
        True if Sentry was initialized
    """
    from studyquest.config import (
        SENTRY_DSN,
        SENTRY_ENVIRONMENT,
        SENTRY_TRACES_SAMPLE_RATE,
        ENABLE_SENTRY,
    )

    if not ENABLE_SENTRY:
        logger.info("Sentry is disabled (ENABLE_SENTRY=false)")
        return False

    if not SENTRY_DSN:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return False

    release = os.getenv("GIT_COMMIT_SHA")
    release = f"studyquest@{release[:7]}" if release else "studyquest@dev"

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        attach_stacktrace=True,
        send_default_pii=False,
        before_send=_before_send,
    )

    logger.info(
        f"Sentry initialized: environment={SENTRY_ENVIRONMENT}, "
        f"release={release}, traces_sample_rate={SENTRY_TRACES_SAMPLE_RATE}"
    )
    return True


def _before_send(event, hint):
    """
    Drop client errors before they reach Sentry.

    4xx HTTPExceptions and input validation errors are expected traffic.
    """
    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if exc_type.__name__ == "HTTPException":
            if getattr(exc_value, "status_code", 500) < 500:
                return None
        if exc_type.__name__ == "ValidationError":
            return None

    return event

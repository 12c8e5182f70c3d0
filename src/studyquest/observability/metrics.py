"""
Prometheus metrics definitions for studyquest.

- HTTP/API metrics: request counts and latency by endpoint
- Gamification metrics: sessions logged, XP awarded, unlocks, failed steps
- Insight metrics: AI calls and fallbacks

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
import os
import sys

from prometheus_client import Counter, Histogram, Info

logger = logging.getLogger(__name__)

# =============================================================================
# HTTP/API Metrics
# =============================================================================

http_requests_total = Counter(
    "studyquest_http_requests_total",
    "Total HTTP requests handled",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "studyquest_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
)

# =============================================================================
# Gamification Metrics
# =============================================================================

study_sessions_logged_total = Counter(
    "studyquest_study_sessions_logged_total",
    "Study sessions committed to the log",
    ["area"],
)

xp_awarded_total = Counter(
    "studyquest_xp_awarded_total",
    "XP earned through study sessions",
)

achievements_unlocked_total = Counter(
    "studyquest_achievements_unlocked_total",
    "Achievements unlocked",
    ["requirement_type"],
)

gamification_step_failures_total = Counter(
    "studyquest_gamification_step_failures_total",
    "Logging actions that failed, by the step that failed",
    ["stage"],
)

gamification_duration_seconds = Histogram(
    "studyquest_gamification_duration_seconds",
    "Time to run a full logging action",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

# =============================================================================
# Insight Metrics
# =============================================================================

insight_requests_total = Counter(
    "studyquest_insight_requests_total",
    "AI insight requests",
    ["kind", "outcome"],  # outcome: success/fallback
)

app_info = Info(
    "studyquest_app",
    "Application information",
)


def init_metrics() -> None:
    """
    Set static application metadata. Call once at startup.
    """
    from studyquest.config import SENTRY_ENVIRONMENT

    app_info.info(
        {
            "version": os.getenv("GIT_COMMIT_SHA", "dev")[:7],
            "environment": SENTRY_ENVIRONMENT,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        }
    )

    logger.info("Prometheus metrics initialized")

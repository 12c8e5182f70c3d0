"""
FastAPI middleware for automatic Prometheus metrics collection.

Tracks request counts by endpoint, method and status code, and request
latency. Endpoints are labelled by their route template
("/api/v1/users/{user_id}/sessions") so per-user paths don't explode label
cardinality.
"""

import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from studyquest.observability.metrics import (
    http_requests_total,
    http_request_duration_seconds,
)

logger = logging.getLogger(__name__)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error(f"Request failed: {e}", exc_info=True)
            raise
        finally:
            endpoint = self._endpoint_label(request)
            http_requests_total.labels(
                method=method, endpoint=endpoint, status=status_code
            ).inc()
            http_request_duration_seconds.labels(
                method=method, endpoint=endpoint
            ).observe(time.time() - start_time)

        return response

    @staticmethod
    def _endpoint_label(request: Request) -> str:
        """Route template when a route matched, 'unmatched' otherwise"""
        route = request.scope.get("route")
        path = getattr(route, "path", None)
        return path or "unmatched"


def setup_metrics_middleware(app) -> None:
    """Add Prometheus metrics middleware to FastAPI application."""
    app.add_middleware(PrometheusMiddleware)
    logger.info("Prometheus metrics middleware added to FastAPI")

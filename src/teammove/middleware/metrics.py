# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Prometheus metrics for the TeamMove API.

HTTP metrics are collected by a pure ASGI middleware; business counters
are incremented by the subscription and email services.
"""

import re
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.responses import Response as StarletteResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import settings

METRICS_PREFIX = "teammove"


# =============================================================================
# HTTP Metrics
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    f"{METRICS_PREFIX}_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    f"{METRICS_PREFIX}_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    f"{METRICS_PREFIX}_http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

SERVICE_INFO = Info(f"{METRICS_PREFIX}_service", "Service information")
SERVICE_INFO.info({"name": settings.app_name, "version": settings.version})


# =============================================================================
# Business Metrics
# =============================================================================

ENTITLEMENT_CHECKS_TOTAL = Counter(
    f"{METRICS_PREFIX}_entitlement_checks_total",
    "Plan entitlement checks",
    ["operation", "result"],
)

SUBSCRIPTION_TRANSITIONS_TOTAL = Counter(
    f"{METRICS_PREFIX}_subscription_transitions_total",
    "Subscription state transitions",
    ["transition"],
)

USAGE_RECORDED_TOTAL = Counter(
    f"{METRICS_PREFIX}_usage_recorded_total",
    "Metered usage recorded against organization plans",
    ["resource", "subscription_type"],
)

EMAILS_SENT_TOTAL = Counter(
    f"{METRICS_PREFIX}_emails_sent_total",
    "Transactional emails",
    ["kind", "result"],
)

MAINTENANCE_RUNS_TOTAL = Counter(
    f"{METRICS_PREFIX}_subscription_maintenance_runs_total",
    "Subscription maintenance cycles",
    ["result"],
)

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
# Invitation tokens are 43 chars of URL-safe base64
TOKEN_PATTERN = re.compile(r"/invitations/[A-Za-z0-9_-]{20,}(?=/|$)")


class MetricsMiddleware:
    """Pure ASGI middleware for collecting HTTP metrics."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path == "/metrics":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        endpoint = self._normalize_path(path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 200)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=endpoint).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code),
            ).inc()
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()

    def _normalize_path(self, path: str) -> str:
        """Replace ids and tokens with placeholders to keep label cardinality low."""
        path = UUID_PATTERN.sub("{id}", path)
        return TOKEN_PATTERN.sub("/invitations/{token}", path)


def get_metrics() -> StarletteResponse:
    """Generate Prometheus metrics response."""
    return StarletteResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

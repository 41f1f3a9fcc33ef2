# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""HTTP access logging.

Pure ASGI middleware so responses are never buffered. Each request gets an
id (taken from ``x-request-id`` when the caller sends one) that is bound to
the structlog context and echoed back in the response headers.

Invitation tokens appear in public URLs and act as bearer secrets, so they
are redacted from logged paths.
"""

import re
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import settings
from ..logging_config import bind_request_context, clear_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = b"x-request-id"
_INVITATION_TOKEN = re.compile(r"(/invitations/)[A-Za-z0-9_-]{16,}")


def redact_path(path: str) -> str:
    return _INVITATION_TOKEN.sub(r"\1***", path)


def client_ip(scope: Scope, headers: dict[bytes, bytes]) -> str:
    forwarded = headers.get(b"x-forwarded-for", b"").decode("latin-1")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = headers.get(b"x-real-ip", b"").decode("latin-1")
    if real_ip:
        return real_ip
    client = scope.get("client")
    return client[0] if client else "unknown"


class HTTPLoggingMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app
        self.exclude_paths = frozenset(settings.log_exclude_paths_list)
        self.slow_ms = settings.log_slow_request_threshold_ms

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = bind_request_context(
            request_id=headers.get(REQUEST_ID_HEADER, b"").decode("latin-1") or str(uuid.uuid4())
        )
        method = scope.get("method", "GET")
        path = redact_path(scope.get("path", ""))
        started = time.perf_counter()
        status_code = 500

        logger.info("http_request", method=method, path=path, client_ip=client_ip(scope, headers))

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 200)
                message = {
                    **message,
                    "headers": [
                        *message.get("headers", []),
                        (REQUEST_ID_HEADER, request_id.encode("latin-1")),
                    ],
                }
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                self._log_response(method, path, status_code, started)

        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception as e:
            logger.error(
                "http_request_failed",
                method=method,
                path=path,
                duration_ms=_elapsed_ms(started),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        finally:
            clear_context()

    def _log_response(self, method: str, path: str, status_code: int, started: float) -> None:
        duration_ms = _elapsed_ms(started)
        slow = duration_ms > self.slow_ms
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400 or slow:
            log = logger.warning
        else:
            log = logger.info
        log(
            "http_response",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            slow_request=slow,
        )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)

from __future__ import annotations

import hmac
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp

from .logging_setup import get_logger

REQUEST_ID_HEADER = "X-Request-Id"

access_logger = get_logger("autotracker.http")


def next_request_id() -> str:
    return str(time.time_ns())


class TracingMiddleware(BaseHTTPMiddleware):
    """Attach a request id to every request and echo it in the response."""

    def __init__(self, app: ASGIApp, id_factory: Callable[[], str] = next_request_id):
        super().__init__(app)
        self.id_factory = id_factory

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or self.id_factory()
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Write one access log line per request once it has been handled."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        try:
            return await call_next(request)
        finally:
            request_id = getattr(request.state, "request_id", None) or "unknown"
            access_logger.info(
                "%s %s %s %s %s",
                request_id,
                request.method,
                request.url.path,
                self._remote_addr(request),
                request.headers.get("User-Agent", ""),
            )

    @staticmethod
    def _remote_addr(request: Request) -> str:
        if request.client is None:
            return "-"
        return f"{request.client.host}:{request.client.port}"


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject requests whose ``auth`` query parameter does not match the shared key."""

    def __init__(self, app: ASGIApp, key: str):
        super().__init__(app)
        self.key = key

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        supplied = request.query_params.getlist("auth")
        if not supplied or not hmac.compare_digest(supplied[0].encode(), self.key.encode()):
            return PlainTextResponse("Unauthorized.\n", status_code=401)
        return await call_next(request)

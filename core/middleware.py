"""
Middleware: request timing, secure headers, per-client rate limiting.
Added in main.create_app; the last one added runs first (rate limit outermost).
"""

import time
from collections import deque
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import get_settings
from core.errors import ErrorCode
from models.schemas import ErrorEnvelope
from utils.logging import get_logger

logger = get_logger(__name__)

SLOW_REQUEST_MS = 500


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Records request duration in a header and logs slow requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                "slow_request",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": round(duration_ms, 2),
                    "status": response.status_code,
                },
            )
        return response


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers. A fronting proxy may override them."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window limit per client IP. Uses X-Forwarded-For when TRUST_PROXY.
    The store is per process; each worker counts on its own.
    """

    def __init__(self, app, max_requests: int | None = None, window_seconds: int | None = None):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, deque[float]] = {}
        self._next_sweep = 0.0

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        max_requests = self.max_requests or settings.RATE_LIMIT_REQUESTS
        window = self.window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        client_ip = client_ip_for(request)
        now = time.monotonic()

        self.evict_idle_clients(now, window)
        hits = self._hits.setdefault(client_ip, deque())
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= max_requests:
            retry_after = max(1, int(window - (now - hits[0])))
            logger.warning("rate_limit_exceeded", extra={"client_ip": client_ip})
            envelope = ErrorEnvelope(
                error="Too many requests. Please try again later.",
                code=ErrorCode.RATE_LIMITED.value,
            )
            return JSONResponse(
                status_code=429,
                content=envelope.to_content(),
                headers={"Retry-After": str(retry_after)},
            )
        hits.append(now)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(max_requests)
        response.headers["X-RateLimit-Remaining"] = str(max(0, max_requests - len(hits)))
        return response

    @property
    def tracked_clients(self) -> int:
        return len(self._hits)

    def evict_idle_clients(self, now: float, window: float) -> None:
        """Drop clients with no hit inside the window. Runs at most once per window."""
        if now < self._next_sweep:
            return
        self._next_sweep = now + window
        idle = [ip for ip, hits in self._hits.items() if not hits or now - hits[-1] >= window]
        for ip in idle:
            del self._hits[ip]


def client_ip_for(request: Request) -> str:
    """Resolve client IP; respect X-Forwarded-For when behind proxy."""
    settings = get_settings()
    if settings.TRUST_PROXY:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            parts = [p.strip() for p in forwarded.split(",") if p.strip()]
            if parts:
                idx = max(0, len(parts) - settings.PROXY_HEADER_COUNT)
                return parts[min(idx, len(parts) - 1)]
    return request.client.host if request.client else "unknown"

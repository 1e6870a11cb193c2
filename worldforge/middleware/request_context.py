"""Request context middleware: request ids, timing, access logs and rate limiting.

One pass per request:
- Generate or propagate ``X-Request-ID``
- Measure request duration (``X-Response-Time``)
- Log every request/response with structured ``extra`` fields
- Enforce per-client rate limiting via token bucket

``check_rate_limit`` is a pure function over a caller-owned bucket dict.
"""

import logging
import threading
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

Bucket = dict[str, tuple[float, float]]  # client_key -> (tokens, last_refill)

_EVICT_THRESHOLD = 1000  # sweep once the bucket holds this many clients
_EVICT_AGE = 120.0       # seconds without traffic before a client is forgotten


def _evict_stale(bucket: Bucket, now: float) -> None:
    cutoff = now - _EVICT_AGE
    for key in [k for k, (_, ts) in bucket.items() if ts < cutoff]:
        del bucket[key]


def check_rate_limit(
    bucket: Bucket,
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> tuple[bool, float]:
    """Check whether a request from *key* is allowed under the token bucket.

    Args:
        bucket: Mutable per-key state. Modified in place.
        key: Client identifier (IP address).
        max_per_minute: Sustained rate cap; ``<= 0`` disables limiting.
        now: Current timestamp (injectable for testing). Defaults to ``time.monotonic()``.

    Returns:
        ``(allowed, retry_after)``. *retry_after* is 0.0 when allowed, otherwise
        the number of seconds until the next token becomes available.
    """
    if max_per_minute <= 0:
        return True, 0.0

    if now is None:
        now = time.monotonic()

    if len(bucket) >= _EVICT_THRESHOLD:
        _evict_stale(bucket, now)

    refill_rate = max_per_minute / 60.0  # tokens per second

    if key in bucket:
        tokens, last_refill = bucket[key]
        tokens = min(float(max_per_minute), tokens + (now - last_refill) * refill_rate)
    else:
        tokens = float(max_per_minute)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / refill_rate


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

# Paths that bypass rate limiting (health probes should never be throttled).
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _client_key(request: Request) -> str:
    """Derive a rate-limit key from the request.

    Uses the ``X-Forwarded-For`` header when behind a proxy, otherwise the
    direct client IP.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Single middleware handling request-id, timing, logging, and rate limiting.

    Each app instance gets its own bucket, so apps built side by side (tests)
    never throttle each other.
    """

    def __init__(self, app: ASGIApp, rate_limit_per_minute: int = 0):
        super().__init__(app)
        self.rate_limit_per_minute = rate_limit_per_minute
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # --- Request ID ---
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        # --- Rate limiting ---
        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            with self._lock:
                allowed, retry_after = check_rate_limit(
                    self._buckets, key, self.rate_limit_per_minute
                )
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": ErrorCode.RATE_LIMITED.value,
                        "message": "Too many requests",
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={
                        "Retry-After": str(int(retry_after) + 1),
                        "X-Request-ID": rid,
                    },
                )

        # --- Timing ---
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        # --- Response headers ---
        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        # --- Structured request log ---
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response

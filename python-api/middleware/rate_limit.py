"""
Rate Limiting Middleware

Fixed-window request counters per caller. Authenticated requests are
counted per account (``user:<id>``), anonymous ones per client IP, and
``/api/auth`` requests always per IP with a much lower limit.

Counters live in Redis when it is configured so that every instance shares
them; otherwise they are kept in this process.
"""
import logging
import time
from typing import Optional

import redis.asyncio as redis
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.responses import error_body
from config import settings
from integrations.redis_client import get_redis
from services.auth_exceptions import AuthError
from services.security import decode_access_token

logger = logging.getLogger(__name__)

AUTH_PATH_PREFIX = "/api/auth"


class RateLimitStore:
    """Counter backend: ``hit`` returns (count in window, seconds until reset)."""

    async def hit(self, key: str, window: int) -> tuple[int, int]:
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    """In-process counters with periodic cleanup of expired windows."""

    def __init__(self) -> None:
        # key -> (window start, count)
        self.windows: dict[str, tuple[float, int]] = {}
        self.last_cleanup = time.time()

    def _cleanup_old_entries(self, window: int) -> None:
        current_time = time.time()
        if current_time - self.last_cleanup < window:
            return

        expired = [k for k, (start, _) in self.windows.items() if current_time - start >= window]
        for key in expired:
            del self.windows[key]
        self.last_cleanup = current_time

        if expired:
            logger.debug(
                f"Cleaned up {len(expired)} rate limit windows",
                extra={"event": "rate_limit_cleanup", "expired_count": len(expired)},
            )

    async def hit(self, key: str, window: int) -> tuple[int, int]:
        self._cleanup_old_entries(window)
        current_time = time.time()
        start, count = self.windows.get(key, (current_time, 0))
        if current_time - start >= window:
            start, count = current_time, 0

        count += 1
        self.windows[key] = (start, count)
        return count, max(1, int(start + window - current_time))


class RedisRateLimitStore(RateLimitStore):
    """Shared counters: INCR, with EXPIRE set when the window opens."""

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit:") -> None:
        self.client = client
        self.prefix = prefix

    async def hit(self, key: str, window: int) -> tuple[int, int]:
        redis_key = f"{self.prefix}{key}"
        count = await self.client.incr(redis_key)
        if count == 1:
            await self.client.expire(redis_key, window)
            return count, window

        ttl = await self.client.ttl(redis_key)
        if ttl < 0:
            # key lost its expiry; restart the window
            await self.client.expire(redis_key, window)
            ttl = window
        return count, ttl


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware

    Returns 429 with ``Retry-After`` once a caller exceeds its limit in the
    current window. ``X-RateLimit-Limit``, ``X-RateLimit-Remaining`` and
    ``X-RateLimit-Reset`` are sent on every counted response. Health checks
    and the API docs are not counted.
    """

    def __init__(
        self,
        app,
        limit: int = 100,
        window: int = 900,
        auth_limit: int = 5,
        user_limit: int = 500,
        store: Optional[RateLimitStore] = None,
    ):
        """
        Initialize rate limiting middleware

        Args:
            app: FastAPI application instance
            limit: Requests per window for anonymous callers
            window: Window length in seconds
            auth_limit: Requests per window per IP on /api/auth
            user_limit: Requests per window for authenticated callers
            store: Counter backend; resolved on first use when omitted
        """
        super().__init__(app)
        self.limit = limit
        self.window = window
        self.auth_limit = auth_limit
        self.user_limit = user_limit
        self.store = store
        self.exempt_paths = {
            "/health",
            f"/{settings.API_VERSION}/docs",
            f"/{settings.API_VERSION}/redoc",
            f"/{settings.API_VERSION}/openapi.json",
        }

    def _get_store(self) -> RateLimitStore:
        # Redis is connected on startup, after the middleware stack is built
        if self.store is None:
            client = get_redis()
            if client is not None:
                self.store = RedisRateLimitStore(client)
            else:
                self.store = MemoryRateLimitStore()
        return self.store

    def _identify(self, request: Request) -> tuple[str, int]:
        """Return the counter key and limit for a request."""
        client_ip = request.client.host if request.client else "unknown"
        if request.url.path.startswith(AUTH_PATH_PREFIX):
            return f"auth:{client_ip}", self.auth_limit

        authorization = request.headers.get("authorization", "")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            try:
                payload = decode_access_token(token)
            except AuthError:
                # Rejected later by the route; count it against the IP
                payload = None
            if payload:
                return f"user:{payload['sub']}", self.user_limit

        return f"ip:{client_ip}", self.limit

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths or request.method == "OPTIONS":
            return await call_next(request)

        key, limit = self._identify(request)
        count, reset_in = await self._get_store().hit(key, self.window)
        reset_at = str(int(time.time()) + reset_in)

        if count > limit:
            logger.warning(
                f"Rate limit exceeded for {key}",
                extra={
                    "event": "rate_limit_exceeded",
                    "key": key,
                    "path": request.url.path,
                    "limit": limit,
                    "window": self.window,
                },
            )
            return JSONResponse(
                status_code=429,
                content=error_body(
                    "Too many requests, please try again later",
                    request.url.path,
                    error_code="RATE_LIMIT_EXCEEDED",
                    details={"retry_after": reset_in},
                ),
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": reset_at,
                    "Retry-After": str(reset_in),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        response.headers["X-RateLimit-Reset"] = reset_at
        return response


def rate_limit_middleware(app, store: Optional[RateLimitStore] = None):
    """
    Add rate limiting to a FastAPI app using the configured limits.

    Example:
        >>> from fastapi import FastAPI
        >>> from middleware.rate_limit import rate_limit_middleware
        >>>
        >>> app = FastAPI()
        >>> rate_limit_middleware(app)
    """
    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.RATE_LIMIT_MAX_REQUESTS,
        window=settings.RATE_LIMIT_WINDOW_SECONDS,
        auth_limit=settings.AUTH_RATE_LIMIT_MAX_REQUESTS,
        user_limit=settings.USER_RATE_LIMIT_MAX_REQUESTS,
        store=store,
    )

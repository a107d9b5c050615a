"""Redis-backed fixed-window rate limiter.

Uses INCR + EXPIRE for simple, performant rate limiting. Exposed to routes
as FastAPI dependencies keyed by client IP, so checks run before any DB work.

Usage:
    @router.get("/{token}", dependencies=[Depends(limit_public)])
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from nullvault.access import extract_ip
from nullvault.config import settings
from nullvault.db.engine import get_redis

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window rate limiter backed by Redis INCR + EXPIRE."""

    def __init__(self, redis: object | None = None) -> None:
        self._client = redis

    @property
    def _redis(self):
        # Shared client is resolved on first check, not at import
        if self._client is None:
            self._client = get_redis()
        return self._client

    async def check(self, key: str, limit: int, window: int) -> tuple[bool, int]:
        """Check if a request is within the rate limit.

        Args:
            key: Redis key (e.g. "rate:public:203.0.113.7").
            limit: Max requests allowed in the window.
            window: Window size in seconds.

        Returns:
            (allowed, retry_after) — allowed is True if under limit,
            retry_after is seconds until window resets (0 if allowed).
        """
        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, window)

            if count > limit:
                ttl = await self._redis.ttl(key)
                return False, max(ttl, 1)

            return True, 0
        except Exception:
            logger.exception("Rate limiter Redis error for key %s", key)
            # Fail open on Redis errors
            return True, 0


# Module-level singleton
rate_limiter = RateLimiter()


async def _enforce(request: Request, scope: str, limit: int, window: int) -> None:
    ip = extract_ip(request) or "unknown"
    allowed, retry_after = await rate_limiter.check(f"rate:{scope}:{ip}", limit=limit, window=window)
    if not allowed:
        logger.info("Rate limit hit: scope=%s retry_after=%ds", scope, retry_after)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests.",
            headers={"Retry-After": str(retry_after)},
        )


async def limit_public(request: Request) -> None:
    """FastAPI dependency for the public secret page and reveal."""
    cfg = settings.rate_limit
    await _enforce(request, "public", cfg.rate_limit_max, cfg.rate_limit_window)


async def limit_create(request: Request) -> None:
    """FastAPI dependency for secret creation."""
    cfg = settings.rate_limit
    await _enforce(request, "create", cfg.create_limit_max, cfg.create_limit_window)

"""
Per-client request limits for the public booking and payment endpoints.

Counts live in process memory and are mirrored to Redis every few seconds,
so several API workers converge on one count without a Redis round trip per
request.
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import RATE_LIMIT_ENABLED, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
windows: dict[str, dict] = {}
windows_lock = Lock()

REDIS_SYNC_INTERVAL = 10
PRUNE_INTERVAL = 60
# After a failed connect, fail fast for this long instead of waiting on timeouts
REDIS_RETRY_INTERVAL = 30
_last_prune = 0
_redis_failed_at: Optional[float] = None


def get_redis_client() -> redis.Redis:
    """Lazily connect to Redis; raises if the server is unreachable"""
    global redis_client, _redis_failed_at

    if redis_client is None:
        if _redis_failed_at is not None and time.monotonic() - _redis_failed_at < REDIS_RETRY_INTERVAL:
            raise redis.ConnectionError("Redis unavailable, retrying later")
        host = REDIS_URL.split("@")[-1]
        logger.info(f"🔄 Connecting to Redis for rate limiting at {host}")
        try:
            client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            client.ping()
        except redis.RedisError as e:
            _redis_failed_at = time.monotonic()
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise
        redis_client = client
        _redis_failed_at = None
        logger.info("✅ Redis connected")

    return redis_client


def _prune_windows(now: int) -> None:
    global _last_prune
    if now - _last_prune < PRUNE_INTERVAL:
        return
    with windows_lock:
        for key in [k for k, w in windows.items() if now >= w["reset_time"]]:
            del windows[key]
    _last_prune = now


def _load_window(key: str, window_seconds: int, client: redis.Redis, now: int) -> dict:
    """Start a window from the count another worker may have mirrored to Redis"""
    try:
        count = client.get(key)
        ttl = client.ttl(key)
    except redis.RedisError as e:
        logger.warning(f"⚠️ Could not read {key} from Redis, counting locally: {e}")
        count, ttl = None, -1
    if count and ttl > 0:
        return {"count": int(count), "reset_time": now + ttl, "last_redis_sync": now}
    return {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": now}


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Count one request against ``key``.

    Returns:
        Tuple of (is_allowed, current_count, seconds_until_reset)
    """
    now = int(time.time())
    _prune_windows(now)

    with windows_lock:
        window = windows.get(key)
        if window is None:
            window = windows[key] = _load_window(key, window_seconds, client, now)

        if now >= window["reset_time"]:
            window.update(count=0, reset_time=now + window_seconds, last_redis_sync=0)

        is_allowed = window["count"] < limit
        if is_allowed:
            window["count"] += 1

        if now - window["last_redis_sync"] >= REDIS_SYNC_INTERVAL:
            try:
                client.set(key, window["count"], ex=window_seconds)
                window["last_redis_sync"] = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to mirror {key} to Redis: {e}")

        return is_allowed, window["count"], max(0, window["reset_time"] - now)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request, limit: int, window_seconds: int, key_prefix: str):
    """Raise 429 once the caller's IP used up its window; 503 when Redis is down"""
    if not RATE_LIMIT_ENABLED:
        return

    key = f"{key_prefix}:{client_ip(request)}"
    try:
        client = get_redis_client()
    except redis.RedisError as e:
        logger.warning(f"🔒 Rejecting {key}: rate limiting backend unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    is_allowed, count, retry_after = check_rate_limit(key, limit, window_seconds, client)
    if not is_allowed:
        logger.warning(f"🚫 Rate limit exceeded for {key} - {count}/{limit}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": f"Too many requests. Maximum {limit} per {window_seconds} seconds.",
                "retryAfter": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str):
    """
    Build a per-IP rate limit dependency.

    Example usage:
        booking_rate_limit = create_rate_limiter(limit=10, window_seconds=60, key_prefix="bookings")

        @router.post("")
        async def create_booking(_: None = Depends(booking_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        await enforce_rate_limit(request, limit, window_seconds, key_prefix)

    return rate_limiter

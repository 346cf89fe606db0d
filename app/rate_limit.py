import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from redis.exceptions import RedisError

from app.config import RATE_LIMIT, RATE_LIMIT_NAMESPACE
from app.errors import BackendUnavailable

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: datetime


def rate_limit_key(identifier: str, namespace: str = RATE_LIMIT_NAMESPACE) -> str:
    return f"rate-limit:{namespace}:{identifier}"


def next_midnight(now: datetime) -> datetime:
    """Start of the next local day for a naive local ``now``."""
    return datetime.combine(now.date() + timedelta(days=1), time.min)


def end_of_day(now: datetime) -> datetime:
    """Last millisecond of the local day, as an aware datetime."""
    return (next_midnight(now) - timedelta(milliseconds=1)).astimezone()


async def check_rate_limit(
    redis,
    identifier: str,
    *,
    limit: int = RATE_LIMIT,
    namespace: str = RATE_LIMIT_NAMESPACE,
    now: Optional[datetime] = None,
) -> RateLimitResult:
    """Count one request for ``identifier`` against its daily quota.

    The counter lives in a single key that expires at local midnight, so the
    quota resets exactly once per day. Each call counts with one mutation: SET
    for the first request of the day, INCR afterwards. Rejected calls do not
    change the count. A key found without an expiry is given one.
    """
    now = now or datetime.now()
    key = rate_limit_key(identifier, namespace)

    try:
        count = await redis.get(key)

        if count is None:
            await redis.set(key, 1, exat=int(next_midnight(now).timestamp()))
            return RateLimitResult(allowed=True, remaining=limit - 1, reset_at=end_of_day(now))

        if int(count) >= limit:
            ttl = await redis.ttl(key)
            if ttl is not None and ttl >= 0:
                reset_at = (now + timedelta(seconds=ttl)).astimezone()
            else:
                # a counter must never outlive the day it counts
                if ttl == -1:
                    await redis.expireat(key, int(next_midnight(now).timestamp()))
                reset_at = end_of_day(now)
            logger.info("Rate limit reached for %s (resets %s)", identifier, reset_at.isoformat())
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

        count = await redis.incr(key)
        if count == 1:
            # the key expired between GET and INCR, so INCR created it without a TTL
            await redis.expireat(key, int(next_midnight(now).timestamp()))
    except RedisError as e:
        logger.error("Rate limit backend error for %s: %s", identifier, e)
        raise BackendUnavailable("Failed to process your request. Please try again.") from e

    return RateLimitResult(allowed=True, remaining=max(limit - count, 0), reset_at=end_of_day(now))

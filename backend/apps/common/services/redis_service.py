from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import redis
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)


@dataclass
class RedisClient:
    url: Optional[str] = None
    _client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self.url or settings.REDIS_URL, decode_responses=True)
        return self._client


redis_client = RedisClient()


def _safe_execute(func, default=None):
    try:
        return func()
    except redis.RedisError as exc:
        logger.warning("redis_unavailable", error=str(exc))
        return default


def rate_limit_hit(scope: str, identifier: str) -> bool:
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    max_requests = settings.RATE_LIMIT_MAX_REQUESTS
    key = f"ratelimit:{scope}:{identifier}:{window}"
    result = _safe_execute(
        lambda: redis_client.client.pipeline().incr(key, 1).expire(key, window, nx=True).execute(),
        default=[1, None],
    )
    current = result[0] if isinstance(result, (list, tuple)) else 1
    return int(current) > max_requests


def anti_spam_check(author: str, max_events: Optional[int] = None, window: Optional[int] = None) -> bool:
    """Record one review by ``author`` and report whether the window is exceeded."""
    max_events = max_events or settings.REVIEW_SPAM_MAX_EVENTS
    window = window or settings.REVIEW_SPAM_WINDOW_SECONDS
    key = f"antispam:reviews:{author.strip().lower()}"
    result = _safe_execute(
        lambda: redis_client.client.pipeline()
        .lpush(key, "1")
        .ltrim(key, 0, max_events)
        .expire(key, window, nx=True)
        .llen(key)
        .execute(),
        default=[0, None, None, 0],
    )
    events_count = result[-1] if isinstance(result, (list, tuple)) else 0
    return int(events_count) > max_events

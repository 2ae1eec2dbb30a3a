import time
import logging
from typing import Optional

import redis

from ...application.ports.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class RedisRateLimiter(RateLimiter):
    """Fixed-window counter shared by every worker pointed at the same Redis."""

    def __init__(self, url: Optional[str] = None, prefix: str = "agri:rl:", client=None) -> None:
        self.client = client if client is not None else redis.Redis.from_url(url)
        self.prefix = prefix

    def window_key(self, key: str, window_seconds: int, now: Optional[float] = None) -> str:
        window = int((now if now is not None else time.time()) // window_seconds)
        return f"{self.prefix}{key}:{window}"

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        rk = self.window_key(key, window_seconds)
        # INCR with EXPIRE; the key dies with its window
        pipe = self.client.pipeline()
        pipe.incr(rk, 1)
        pipe.expire(rk, window_seconds)
        count, _ = pipe.execute()
        if int(count) > int(max_requests):
            logger.warning(f"Rate limit hit for {key}")
            return False
        return True

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis

from ...application.ports.otp_store import OTPStore, PendingOTP

logger = logging.getLogger(__name__)


class RedisOTPStore(OTPStore):
    """OTP store shared by every app instance. Expiry is enforced by key TTLs."""

    def __init__(self, url: Optional[str] = None, expiry_minutes: int = 10, prefix: str = "otp:", client=None) -> None:
        if client is None:
            if not url:
                raise RuntimeError("REDIS_URL is required for the redis OTP store")
            client = redis.Redis.from_url(url, decode_responses=True)
        self.client = client
        self.prefix = prefix
        self.expiry = timedelta(minutes=expiry_minutes)

    def _key(self, phone: str) -> str:
        return f"{self.prefix}{phone}"

    def _verified_key(self, phone: str) -> str:
        return f"{self.prefix}verified:{phone}"

    def put(self, phone: str, code: str) -> None:
        key = self._key(phone)
        expires_at = datetime.now(timezone.utc) + self.expiry
        pipe = self.client.pipeline()
        pipe.delete(key)
        pipe.hset(key, mapping={"code": code, "expires_at": expires_at.isoformat(), "attempts": 0})
        pipe.expire(key, int(self.expiry.total_seconds()))
        pipe.execute()

    def get(self, phone: str) -> Optional[PendingOTP]:
        data = self.client.hgetall(self._key(phone))
        # a hash without its code is a leftover, not a live entry
        if not data or "code" not in data or "expires_at" not in data:
            return None
        return PendingOTP(
            phone=phone,
            code=data["code"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
            attempt_count=int(data.get("attempts", 0)),
        )

    def delete(self, phone: str) -> None:
        self.client.delete(self._key(phone))

    def _increment_attempts(self, key: str) -> int:
        """HINCRBY only while the key exists, so an expired entry is never recreated. 0 when it is gone."""
        with self.client.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(key)
                    if not pipe.exists(key):
                        pipe.unwatch()
                        return 0
                    pipe.multi()
                    pipe.hincrby(key, "attempts", 1)
                    (attempts,) = pipe.execute()
                    return int(attempts)
                except redis.WatchError:
                    # deleted, expired or re-issued after WATCH; look again
                    continue

    def record_failed_attempt(self, phone: str) -> int:
        return self._increment_attempts(self._key(phone))

    def _compare_and_delete(self, key: str, code: str) -> bool:
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                stored = pipe.hget(key, "code")
                if stored is None or not hmac.compare_digest(stored, code):
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(key)
                pipe.execute()
                return True
            except redis.WatchError:
                logger.info("OTP entry changed during compare-and-delete")
                return False

    def pop_if_match(self, phone: str, code: str) -> bool:
        return self._compare_and_delete(self._key(phone), code)

    def mark_verified(self, phone: str, code: str) -> None:
        key = self._verified_key(phone)
        pipe = self.client.pipeline()
        pipe.delete(key)
        pipe.hset(key, mapping={"code": code, "attempts": 0})
        pipe.expire(key, int(self.expiry.total_seconds()))
        pipe.execute()

    def consume_verified(self, phone: str, code: str, max_attempts: int = 3) -> bool:
        key = self._verified_key(phone)
        if self._compare_and_delete(key, code):
            return True
        if self._increment_attempts(key) >= max_attempts:
            self.client.delete(key)
        return False

    def sweep_expired(self) -> int:
        return 0

import hmac
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from ...application.ports.otp_store import OTPStore, PendingOTP


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryOTPStore(OTPStore):
    """Process-local OTP store. One instance is owned by the app and injected where needed."""

    def __init__(self, expiry_minutes: int = 10, clock: Callable[[], datetime] = utc_now) -> None:
        self.expiry = timedelta(minutes=expiry_minutes)
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingOTP] = {}
        # phones proven by OTP but not yet registered
        self._verified: Dict[str, PendingOTP] = {}

    def put(self, phone: str, code: str) -> None:
        entry = PendingOTP(phone=phone, code=code, expires_at=self._clock() + self.expiry, attempt_count=0)
        with self._lock:
            self._pending[phone] = entry

    def get(self, phone: str) -> Optional[PendingOTP]:
        with self._lock:
            entry = self._pending.get(phone)
            if entry is None:
                return None
            return PendingOTP(entry.phone, entry.code, entry.expires_at, entry.attempt_count)

    def delete(self, phone: str) -> None:
        with self._lock:
            self._pending.pop(phone, None)

    def record_failed_attempt(self, phone: str) -> int:
        with self._lock:
            entry = self._pending.get(phone)
            if entry is None:
                return 0
            entry.attempt_count += 1
            return entry.attempt_count

    def pop_if_match(self, phone: str, code: str) -> bool:
        with self._lock:
            entry = self._pending.get(phone)
            if entry is None or not hmac.compare_digest(entry.code, code):
                return False
            del self._pending[phone]
            return True

    def mark_verified(self, phone: str, code: str) -> None:
        with self._lock:
            self._verified[phone] = PendingOTP(phone=phone, code=code, expires_at=self._clock() + self.expiry)

    def consume_verified(self, phone: str, code: str, max_attempts: int = 3) -> bool:
        with self._lock:
            marker = self._verified.get(phone)
            if marker is None:
                return False
            if self._clock() > marker.expires_at:
                del self._verified[phone]
                return False
            if not hmac.compare_digest(marker.code, code):
                marker.attempt_count += 1
                if marker.attempt_count >= max_attempts:
                    del self._verified[phone]
                return False
            del self._verified[phone]
            return True

    def sweep_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [phone for phone, entry in self._pending.items() if now > entry.expires_at]
            stale = [phone for phone, marker in self._verified.items() if now > marker.expires_at]
        removed = 0
        # re-check under the lock: a phone may have been re-issued since the scan
        for phone in expired:
            with self._lock:
                entry = self._pending.get(phone)
                if entry is not None and now > entry.expires_at:
                    del self._pending[phone]
                    removed += 1
        for phone in stale:
            with self._lock:
                marker = self._verified.get(phone)
                if marker is not None and now > marker.expires_at:
                    del self._verified[phone]
        return removed

from typing import Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class PendingOTP:
    phone: str
    code: str
    expires_at: datetime
    attempt_count: int = 0


class OTPStore(Protocol):
    def put(self, phone: str, code: str) -> None:
        ...

    def get(self, phone: str) -> Optional[PendingOTP]:
        ...

    def delete(self, phone: str) -> None:
        ...

    def record_failed_attempt(self, phone: str) -> int:
        ...

    def pop_if_match(self, phone: str, code: str) -> bool:
        ...

    def mark_verified(self, phone: str, code: str) -> None:
        ...

    def consume_verified(self, phone: str, code: str, max_attempts: int = 3) -> bool:
        """Take the marker when ``code`` matches. A wrong code counts against the marker, which is dropped after ``max_attempts`` misses."""
        ...

    def sweep_expired(self) -> int:
        ...

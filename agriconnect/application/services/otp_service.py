import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool

from ..ports.otp_store import OTPStore
from ..ports.sms_sender import SMSSender
from ..ports.rate_limiter import RateLimiter
from ...core.messages import get_message, render_otp_sms
from ...exceptions import (
    ValidationError, OTPError, OTPFailure, InternalError, RateLimitError, SMSDeliveryError,
)
from ...utils import normalize_phone, validate_phone_number, generate_otp, is_otp_shaped, to_e164

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OTPService:
    """Issues one-time codes over SMS and checks them against the store.

    Verification precedence is fixed: missing entry, then the attempt cap
    (checked even on an expired entry), then expiry, then a wrong code.
    """

    store: OTPStore
    sms_sender: SMSSender
    expiry_minutes: int = 10
    max_attempts: int = 3
    otp_length: int = 6
    rate_limiter: Optional[RateLimiter] = None
    send_max_per_window: int = 5
    send_window_seconds: int = 900
    clock: Callable[[], datetime] = _utc_now

    async def issue(self, phone: str, language: str = "en") -> str:
        """Generate, store and send a code. Returns the normalized phone."""
        if not phone or not validate_phone_number(phone):
            raise ValidationError(get_message("invalid_phone", language))
        phone = normalize_phone(phone)

        if self.rate_limiter is not None and not await run_in_threadpool(
            self.rate_limiter.allow, f"send-otp:{phone}", self.send_max_per_window, self.send_window_seconds
        ):
            logger.warning("OTP send rate limit exceeded")
            raise RateLimitError(get_message("otp_rate_limited", language))

        code = generate_otp(self.otp_length)
        await run_in_threadpool(self.store.put, phone, code)

        try:
            await self.sms_sender.send(to_e164(phone), render_otp_sms(code, self.expiry_minutes, language))
        except SMSDeliveryError as e:
            logger.error(f"Failed to send OTP SMS: {e}")
            raise InternalError(get_message("otp_send_failed", language))
        return phone

    async def verify(self, phone: str, code: str) -> str:
        """Consume the pending code for ``phone``. Returns the normalized phone or raises OTPError."""
        if not phone or not validate_phone_number(phone):
            raise ValidationError(get_message("invalid_phone"))
        if not is_otp_shaped(code or "", self.otp_length):
            raise ValidationError(f"OTP must be {self.otp_length} digits")
        phone = normalize_phone(phone)
        # store backends are blocking clients
        await run_in_threadpool(self._consume, phone, code)
        return phone

    def _consume(self, phone: str, code: str) -> None:
        entry = self.store.get(phone)
        if entry is None:
            raise OTPError(OTPFailure.NOT_FOUND)

        if entry.attempt_count >= self.max_attempts:
            self.store.delete(phone)
            raise OTPError(OTPFailure.TOO_MANY_ATTEMPTS)

        if self.clock() > entry.expires_at:
            self.store.delete(phone)
            raise OTPError(OTPFailure.EXPIRED)

        if not hmac.compare_digest(entry.code, code):
            attempts = self.store.record_failed_attempt(phone)
            logger.info(f"OTP mismatch, attempt {attempts} of {self.max_attempts}")
            raise OTPError(OTPFailure.MISMATCH)

        # A concurrent verify may have consumed the entry first
        if not self.store.pop_if_match(phone, code):
            raise OTPError(OTPFailure.NOT_FOUND)

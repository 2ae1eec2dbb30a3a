import threading

import pytest

from agriconnect.application.services.otp_service import OTPService
from agriconnect.exceptions import (
    OTPError, OTPFailure, ValidationError, InternalError, RateLimitError, SMSDeliveryError,
)
from agriconnect.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter

PHONE = "9876543210"


class FailingSender:
    async def send(self, phone, message):
        raise SMSDeliveryError("provider down")


@pytest.mark.asyncio
async def test_issue_stores_code_and_sends_to_e164(otp_service, otp_store, sms, last_code):
    phone = await otp_service.issue("98765 43210", "en")
    assert phone == PHONE
    to, message = sms.sent[-1]
    assert to == "+919876543210"
    assert "Valid for 10 minutes" in message
    assert otp_store.get(PHONE).code == last_code()


@pytest.mark.asyncio
async def test_issue_renders_sms_in_requested_language(otp_service, sms):
    await otp_service.issue(PHONE, "hi")
    assert "सत्यापन कोड" in sms.sent[-1][1]


@pytest.mark.asyncio
async def test_issue_rejects_invalid_phone_with_localized_message(otp_service, sms):
    with pytest.raises(ValidationError) as exc:
        await otp_service.issue("12345", "mr")
    assert exc.value.status_code == 400
    assert exc.value.detail == "कृपया वैध फोन नंबर टाका"
    assert sms.sent == []


@pytest.mark.asyncio
async def test_issue_reports_delivery_failure_as_500(otp_store, clock):
    svc = OTPService(store=otp_store, sms_sender=FailingSender(), clock=clock)
    with pytest.raises(InternalError) as exc:
        await svc.issue(PHONE, "en")
    assert exc.value.status_code == 500
    assert exc.value.detail == "Failed to send OTP. Please try again."


@pytest.mark.asyncio
async def test_issue_rate_limited_per_phone(otp_store, sms, clock):
    svc = OTPService(
        store=otp_store, sms_sender=sms, clock=clock,
        rate_limiter=InMemoryRateLimiter(), send_max_per_window=2, send_window_seconds=60,
    )
    await svc.issue(PHONE)
    await svc.issue(PHONE)
    with pytest.raises(RateLimitError):
        await svc.issue(PHONE)
    # a different phone has its own budget
    await svc.issue("9123456789")


@pytest.mark.asyncio
async def test_verify_is_single_use(otp_service, last_code):
    await otp_service.issue(PHONE)
    code = last_code()
    assert await otp_service.verify(PHONE, code) == PHONE
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, code)
    assert exc.value.kind == OTPFailure.NOT_FOUND
    assert exc.value.detail == "OTP not found or expired"


@pytest.mark.asyncio
async def test_reissue_invalidates_previous_code(otp_service, last_code):
    await otp_service.issue(PHONE)
    first = last_code()
    await otp_service.issue(PHONE)
    second = last_code()
    if first != second:
        with pytest.raises(OTPError):
            await otp_service.verify(PHONE, first)
    assert await otp_service.verify(PHONE, second) == PHONE


@pytest.mark.asyncio
async def test_verify_without_pending_code(otp_service):
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, "123456")
    assert exc.value.kind == OTPFailure.NOT_FOUND


@pytest.mark.asyncio
async def test_wrong_code_counts_attempts_then_locks_out(otp_service, otp_store):
    otp_store.put(PHONE, "111111")
    for _ in range(3):
        with pytest.raises(OTPError) as exc:
            await otp_service.verify(PHONE, "222222")
        assert exc.value.kind == OTPFailure.MISMATCH
    assert otp_store.get(PHONE).attempt_count == 3

    # the correct code no longer helps once the cap is reached
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, "111111")
    assert exc.value.kind == OTPFailure.TOO_MANY_ATTEMPTS
    assert otp_store.get(PHONE) is None


@pytest.mark.asyncio
async def test_attempt_cap_checked_before_expiry(otp_service, otp_store, clock):
    otp_store.put(PHONE, "111111")
    for _ in range(3):
        otp_store.record_failed_attempt(PHONE)
    clock.advance(minutes=30)
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, "111111")
    assert exc.value.kind == OTPFailure.TOO_MANY_ATTEMPTS


@pytest.mark.asyncio
async def test_expired_code_is_rejected_and_removed(otp_service, otp_store, clock):
    otp_store.put(PHONE, "111111")
    clock.advance(minutes=10, seconds=1)
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, "111111")
    assert exc.value.kind == OTPFailure.EXPIRED
    assert exc.value.detail == "OTP has expired"
    assert otp_store.get(PHONE) is None


@pytest.mark.asyncio
async def test_code_still_valid_at_expiry_boundary(otp_service, otp_store, clock):
    otp_store.put(PHONE, "111111")
    clock.advance(minutes=10)
    assert await otp_service.verify(PHONE, "111111") == PHONE


@pytest.mark.asyncio
async def test_verify_rejects_malformed_code(otp_service, otp_store):
    otp_store.put(PHONE, "111111")
    with pytest.raises(ValidationError):
        await otp_service.verify(PHONE, "12ab56")
    assert otp_store.get(PHONE).attempt_count == 0


@pytest.mark.asyncio
async def test_lost_race_reports_not_found(otp_service, otp_store, monkeypatch):
    otp_store.put(PHONE, "111111")
    original = otp_store.pop_if_match

    def consumed_elsewhere(phone, code):
        original(phone, code)
        return False

    monkeypatch.setattr(otp_store, "pop_if_match", consumed_elsewhere)
    with pytest.raises(OTPError) as exc:
        await otp_service.verify(PHONE, "111111")
    assert exc.value.kind == OTPFailure.NOT_FOUND


@pytest.mark.asyncio
async def test_store_is_called_off_the_event_loop_thread(otp_service, otp_store, monkeypatch):
    otp_store.put(PHONE, "111111")
    loop_thread = threading.get_ident()
    seen = []
    original = otp_store.get

    def recording_get(phone):
        seen.append(threading.get_ident())
        return original(phone)

    monkeypatch.setattr(otp_store, "get", recording_get)
    assert await otp_service.verify(PHONE, "111111") == PHONE
    assert seen and loop_thread not in seen

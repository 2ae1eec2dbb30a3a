import logging
from dataclasses import dataclass
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from ..ports.user_repo import UserRepository, UserDto
from ..ports.otp_store import OTPStore
from ..ports.audit_logger import AuditLogger
from .otp_service import OTPService
from .token_service import TokenService, SessionClaims
from ...exceptions import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    token: str
    user: UserDto

    def to_response_data(self) -> dict:
        return {"token": self.token, "user": self.user.public_view()}


def issue_session(token_service: TokenService, user: UserDto) -> AuthResult:
    token = token_service.issue(SessionClaims(user_id=user.id, phone=user.phone, role=user.role))
    return AuthResult(token=token, user=user)


@dataclass
class LoginService:
    user_repo: UserRepository
    otp_service: OTPService
    otp_store: OTPStore
    token_service: TokenService
    audit: Optional[AuditLogger] = None

    async def send_otp(self, phone: str, language: str = "en") -> str:
        phone = await self.otp_service.issue(phone, language)
        if self.audit:
            self.audit.log("otp_sent", phone, details={"language": language})
        return phone

    async def verify_otp(self, phone: str, code: str) -> AuthResult:
        """Log in with a phone/OTP pair.

        An unknown phone is not an error for the caller: the phone is
        remembered as proven so ``/auth/register`` can accept the same code,
        and a NotFoundError carrying the register redirect is raised.
        """
        phone = await self.otp_service.verify(phone, code)

        user = await self.user_repo.get_by_phone(phone)
        if user is None:
            await run_in_threadpool(self.otp_store.mark_verified, phone, code)
            if self.audit:
                self.audit.log("login_unknown_phone", phone, success=False)
            raise NotFoundError("User not found. Please register first.", redirect_to="/register")

        if not user.is_verified:
            await self.user_repo.mark_verified(user.id)
            user.is_verified = True

        if self.audit:
            self.audit.log("login_success", phone, user_id=user.id)
        logger.info(f"User {user.id} logged in")
        return issue_session(self.token_service, user)

import logging
from dataclasses import dataclass, field
from typing import Optional, List

from fastapi.concurrency import run_in_threadpool

from ..ports.user_repo import (
    UserRepository, Profile, FarmerProfile, LabourerProfile, Location, FarmDetails, Availability,
)
from ..ports.otp_store import OTPStore
from ..ports.audit_logger import AuditLogger
from .otp_service import OTPService
from .token_service import TokenService
from .login_service import AuthResult, issue_session
from ...core.messages import SUPPORTED_LANGUAGES
from ...exceptions import ValidationError, ConflictError, DuplicatePhoneError
from ...utils import normalize_phone, validate_phone_number, is_otp_shaped

logger = logging.getLogger(__name__)

REGISTRABLE_ROLES = ("farmer", "labourer")
DEFAULT_MAX_TRAVEL_DISTANCE = 50


@dataclass
class RegistrationInput:
    phone: str
    otp: str
    role: str
    language: str
    name: str
    location: Location
    farm_details: Optional[FarmDetails] = None
    skills: List[str] = field(default_factory=list)
    experience: Optional[int] = None
    max_travel_distance: Optional[int] = None


def build_profile(data: RegistrationInput) -> Profile:
    """Role-specific profile with the counters a new account starts from."""
    name = data.name.strip()
    if data.role == "farmer":
        return FarmerProfile(
            name=name,
            location=data.location,
            farm_details=data.farm_details or FarmDetails(),
        )
    skills = list(data.skills or [])
    return LabourerProfile(
        name=name,
        location=data.location,
        skills=skills,
        experience=data.experience or 0,
        availability=Availability(
            is_available=True,
            preferred_work_types=list(skills),
            max_travel_distance=data.max_travel_distance or DEFAULT_MAX_TRAVEL_DISTANCE,
        ),
    )


def _validate(data: RegistrationInput, otp_length: int) -> None:
    missing: List[str] = []
    for name in ("phone", "otp", "role", "language", "name"):
        value = getattr(data, name)
        if not value or not str(value).strip():
            missing.append(name)
    loc = data.location
    if loc is None or not all([loc.state and loc.state.strip(), loc.district and loc.district.strip(), loc.village and loc.village.strip()]):
        missing.append("location")
    if missing:
        raise ValidationError("Missing required fields: " + ", ".join(missing))
    if not validate_phone_number(data.phone):
        raise ValidationError("Please enter a valid phone number")
    if not is_otp_shaped(data.otp, otp_length):
        raise ValidationError(f"OTP must be {otp_length} digits")
    if data.role not in REGISTRABLE_ROLES:
        raise ValidationError("Role must be either farmer or labourer")
    if data.language not in SUPPORTED_LANGUAGES:
        raise ValidationError("Unsupported language")
    if data.experience is not None and data.experience < 0:
        raise ValidationError("Experience cannot be negative")
    if data.max_travel_distance is not None and data.max_travel_distance <= 0:
        raise ValidationError("Max travel distance must be positive")


@dataclass
class RegistrationService:
    user_repo: UserRepository
    otp_service: OTPService
    otp_store: OTPStore
    token_service: TokenService
    audit: Optional[AuditLogger] = None

    async def _prove_phone(self, phone: str, code: str) -> None:
        # verify-otp leaves a marker when the phone had no account yet
        if await run_in_threadpool(
            self.otp_store.consume_verified, phone, code, self.otp_service.max_attempts
        ):
            return
        await self.otp_service.verify(phone, code)

    async def register(self, data: RegistrationInput) -> AuthResult:
        _validate(data, self.otp_service.otp_length)
        phone = normalize_phone(data.phone)
        await self._prove_phone(phone, data.otp)

        profile = build_profile(data)
        try:
            user = await self.user_repo.create_if_absent(
                phone=phone,
                role=data.role,
                language=data.language,
                is_verified=True,
                profile=profile,
            )
        except DuplicatePhoneError:
            if self.audit:
                self.audit.log("register_conflict", phone, success=False)
            raise ConflictError("User already exists. Please login instead.", redirect_to="/login")

        if self.audit:
            self.audit.log("register_success", phone, user_id=user.id, details={"role": user.role})
        logger.info(f"Registered {user.role} {user.id}")
        return issue_session(self.token_service, user)

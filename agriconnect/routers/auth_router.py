# agriconnect/routers/auth_router.py
import logging

from fastapi import APIRouter, Depends

from ..schemas.auth.auth import (
    SendOTPRequest, VerifyOTPRequest, RegisterRequest, AuthResponse, MessageResponse,
)
from ..application.ports.user_repo import (
    UserRepository, Location, FarmDetails, profile_to_dict,
)
from ..application.services.login_service import LoginService
from ..application.services.registration_service import RegistrationService, RegistrationInput
from ..application.services.token_service import SessionClaims
from ..core.messages import get_message
from ..dependencies import (
    get_login_service, get_registration_service, get_user_repo, get_current_claims,
)
from ..exceptions import NotFoundError, create_success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _registration_input(body: RegisterRequest) -> RegistrationInput:
    loc = body.location
    location = Location(
        state=loc.state,
        district=loc.district,
        village=loc.village,
        coordinates=loc.coordinates.model_dump() if loc.coordinates else None,
    )
    farm_details = None
    if body.farmDetails is not None:
        farm_details = FarmDetails(
            farm_size=body.farmDetails.farmSize,
            primary_crops=list(body.farmDetails.primaryCrops),
            farming_experience=body.farmDetails.farmingExperience,
        )
    return RegistrationInput(
        phone=body.phone,
        otp=body.otp,
        role=body.role,
        language=body.language,
        name=body.name,
        location=location,
        farm_details=farm_details,
        skills=list(body.skills or []),
        experience=body.experience,
        max_travel_distance=body.maxTravelDistance,
    )


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(body: SendOTPRequest, login_service: LoginService = Depends(get_login_service)):
    language = body.language or "en"
    await login_service.send_otp(body.phone, language)
    return create_success_response(get_message("otp_sent", language))


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(body: VerifyOTPRequest, login_service: LoginService = Depends(get_login_service)):
    result = await login_service.verify_otp(body.phone, body.otp)
    return create_success_response("Login successful", result.to_response_data())


@router.post("/register", response_model=AuthResponse)
async def register(body: RegisterRequest, registration_service: RegistrationService = Depends(get_registration_service)):
    result = await registration_service.register(_registration_input(body))
    return create_success_response("Registration successful", result.to_response_data())


@router.get("/me")
async def me(
    claims: SessionClaims = Depends(get_current_claims),
    user_repo: UserRepository = Depends(get_user_repo),
):
    user = await user_repo.get_by_id(claims.user_id)
    if user is None:
        raise NotFoundError("User not found")
    profile = profile_to_dict(user.profile)
    profile.pop("kind", None)
    data = {**user.public_view(), "profile": profile, "createdAt": user.created_at}
    return {"success": True, "data": {"user": data}}

# agriconnect/dependencies.py
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase

from .core.config import settings
from .exceptions import AuthError, ForbiddenError, InternalError
from .application.ports.otp_store import OTPStore
from .application.ports.sms_sender import SMSSender
from .application.ports.rate_limiter import RateLimiter
from .application.ports.audit_logger import AuditLogger
from .application.ports.user_repo import UserRepository
from .application.ports.job_repo import JobRepository
from .application.ports.application_repo import ApplicationRepository
from .application.ports.chat_repo import ChatRepository
from .application.ports.rating_repo import RatingRepository
from .application.services.otp_service import OTPService
from .application.services.token_service import TokenService, SessionClaims
from .application.services.login_service import LoginService
from .application.services.registration_service import RegistrationService
from .application.services.job_service import JobService
from .application.services.chat_service import ChatService
from .application.services.rating_service import RatingService
from .infrastructure.persistence.mongo.repositories.user_repository_mongo import MongoUserRepository
from .infrastructure.persistence.mongo.repositories.job_repository_mongo import MongoJobRepository
from .infrastructure.persistence.mongo.repositories.application_repository_mongo import MongoApplicationRepository
from .infrastructure.persistence.mongo.repositories.chat_repository_mongo import MongoChatRepository
from .infrastructure.persistence.mongo.repositories.rating_repository_mongo import MongoRatingRepository

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)


# Process-wide components live on app.state (see main.py)

def get_otp_store(request: Request) -> OTPStore:
    return request.app.state.otp_store


def get_sms_sender(request: Request) -> SMSSender:
    return request.app.state.sms_sender


def get_rate_limiter(request: Request) -> Optional[RateLimiter]:
    return getattr(request.app.state, "rate_limiter", None)


def get_audit_logger(request: Request) -> Optional[AuditLogger]:
    return getattr(request.app.state, "audit_logger", None)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_db(request: Request) -> AsyncIOMotorDatabase:
    db = getattr(request.app.state, "db", None)
    if db is None:
        logger.error("Database requested before startup completed")
        raise InternalError("Database unavailable")
    return db


# Repositories

def get_user_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> UserRepository:
    return MongoUserRepository(db)


def get_job_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> JobRepository:
    return MongoJobRepository(db)


def get_application_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ApplicationRepository:
    return MongoApplicationRepository(db)


def get_chat_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ChatRepository:
    return MongoChatRepository(db)


def get_rating_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> RatingRepository:
    return MongoRatingRepository(db)


# Services

def get_otp_service(
    store: OTPStore = Depends(get_otp_store),
    sms_sender: SMSSender = Depends(get_sms_sender),
    rate_limiter: Optional[RateLimiter] = Depends(get_rate_limiter),
) -> OTPService:
    return OTPService(
        store=store,
        sms_sender=sms_sender,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        otp_length=settings.OTP_LENGTH,
        rate_limiter=rate_limiter,
        send_max_per_window=settings.OTP_SEND_MAX_PER_WINDOW,
        send_window_seconds=settings.OTP_SEND_WINDOW_SECONDS,
    )


def get_login_service(
    user_repo: UserRepository = Depends(get_user_repo),
    otp_service: OTPService = Depends(get_otp_service),
    store: OTPStore = Depends(get_otp_store),
    token_service: TokenService = Depends(get_token_service),
    audit: Optional[AuditLogger] = Depends(get_audit_logger),
) -> LoginService:
    return LoginService(user_repo, otp_service, store, token_service, audit)


def get_registration_service(
    user_repo: UserRepository = Depends(get_user_repo),
    otp_service: OTPService = Depends(get_otp_service),
    store: OTPStore = Depends(get_otp_store),
    token_service: TokenService = Depends(get_token_service),
    audit: Optional[AuditLogger] = Depends(get_audit_logger),
) -> RegistrationService:
    return RegistrationService(user_repo, otp_service, store, token_service, audit)


def get_job_service(
    job_repo: JobRepository = Depends(get_job_repo),
    application_repo: ApplicationRepository = Depends(get_application_repo),
    user_repo: UserRepository = Depends(get_user_repo),
) -> JobService:
    return JobService(job_repo, application_repo, user_repo)


def get_chat_service(
    chat_repo: ChatRepository = Depends(get_chat_repo),
    user_repo: UserRepository = Depends(get_user_repo),
) -> ChatService:
    return ChatService(chat_repo, user_repo)


def get_rating_service(
    rating_repo: RatingRepository = Depends(get_rating_repo),
    user_repo: UserRepository = Depends(get_user_repo),
    job_repo: JobRepository = Depends(get_job_repo),
) -> RatingService:
    return RatingService(rating_repo, user_repo, job_repo)


# Authentication

def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> SessionClaims:
    if not credentials or not credentials.credentials:
        raise AuthError("Authentication required")
    claims = token_service.verify(credentials.credentials)
    if claims is None:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise AuthError()
    return claims


def require_role(*roles: str):
    """Dependency factory: the caller's token must carry one of ``roles``."""
    def checker(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
        if claims.role not in roles:
            raise ForbiddenError()
        return claims
    return checker

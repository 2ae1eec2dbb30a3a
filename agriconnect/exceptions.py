import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str, redirect_to: Optional[str] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.redirect_to = redirect_to


class ValidationError(APIException):
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(400, detail)


class OTPFailure(str, Enum):
    NOT_FOUND = "not_found"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


OTP_FAILURE_MESSAGES = {
    OTPFailure.NOT_FOUND: "OTP not found or expired",
    OTPFailure.TOO_MANY_ATTEMPTS: "Too many attempts. Please request a new OTP.",
    OTPFailure.EXPIRED: "OTP has expired",
    OTPFailure.MISMATCH: "Invalid OTP",
}


class OTPError(APIException):
    def __init__(self, kind: OTPFailure):
        super().__init__(400, OTP_FAILURE_MESSAGES[kind])
        self.kind = kind


class AuthError(APIException):
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(401, detail)


class ForbiddenError(APIException):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(403, detail)


class NotFoundError(APIException):
    def __init__(self, detail: str = "Not found", redirect_to: Optional[str] = None):
        super().__init__(404, detail, redirect_to)


class ConflictError(APIException):
    def __init__(self, detail: str = "Conflict", redirect_to: Optional[str] = None):
        super().__init__(409, detail, redirect_to)


class RateLimitError(APIException):
    def __init__(self, detail: str = "Too many requests"):
        super().__init__(429, detail)


class InternalError(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(500, detail)


class SMSDeliveryError(Exception):
    """Raised by SMS senders when the provider rejects or cannot be reached."""


class DuplicatePhoneError(Exception):
    """Raised by the user repository when the phone is already registered."""


class DuplicateRatingError(Exception):
    pass


def create_error_response(message: str, redirect_to: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    content = {"success": False, "message": message}
    if redirect_to:
        content["redirectTo"] = redirect_to
    return content


def create_success_response(message: str, data: Optional[dict] = None) -> dict:
    """Create a standardized success response"""
    content = {"success": True, "message": message}
    if data is not None:
        content["data"] = data
    return content


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render every HTTPException in the {success, message} envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), getattr(exc, "redirect_to", None)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    missing = [".".join(str(p) for p in e["loc"][1:]) for e in errors if e.get("type") == "missing"]
    if missing:
        message = "Missing required fields: " + ", ".join(missing)
    elif errors:
        first = errors[0]
        field = ".".join(str(p) for p in first["loc"][1:])
        message = f"{field}: {first['msg']}" if field else first["msg"]
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=create_error_response(message))

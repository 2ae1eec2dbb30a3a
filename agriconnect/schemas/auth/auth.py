# agriconnect/schemas/auth/auth.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Dict, Any, List


class SendOTPRequest(BaseModel):
    # phone is checked by the OTP service so the error can be localized
    phone: Optional[str] = Field(None, description="10-digit Indian mobile number")
    language: Optional[str] = Field("en", description="en, hi or mr")


class VerifyOTPRequest(BaseModel):
    phone: str = Field(..., description="10-digit Indian mobile number")
    otp: str = Field(..., description="6-digit OTP")


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class LocationIn(BaseModel):
    state: str
    district: str
    village: str
    coordinates: Optional[Coordinates] = None


class FarmDetailsIn(BaseModel):
    farmSize: float = Field(0, ge=0, description="Farm size in acres")
    primaryCrops: List[str] = Field(default_factory=list)
    farmingExperience: int = Field(0, ge=0, description="Years of farming")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: str
    otp: str
    role: str = Field(..., description="farmer or labourer")
    language: str = Field(..., description="en, hi or mr")
    name: str = Field(..., max_length=100)
    location: LocationIn
    farmDetails: Optional[FarmDetailsIn] = None
    skills: Optional[List[str]] = None
    experience: Optional[int] = None
    maxTravelDistance: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class AuthResponse(BaseModel):
    success: bool
    message: str
    data: Dict[str, Any]


class MessageResponse(BaseModel):
    success: bool
    message: str

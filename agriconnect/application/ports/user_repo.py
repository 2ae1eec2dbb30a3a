from typing import Protocol, Optional, List, Dict, Any, Union
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Location:
    state: str
    district: str
    village: str
    coordinates: Optional[Dict[str, float]] = None


@dataclass
class FarmDetails:
    farm_size: float = 0
    primary_crops: List[str] = field(default_factory=list)
    farming_experience: int = 0


@dataclass
class Availability:
    is_available: bool = True
    preferred_work_types: List[str] = field(default_factory=list)
    max_travel_distance: int = 50


@dataclass
class FarmerProfile:
    name: str
    location: Location
    farm_details: FarmDetails = field(default_factory=FarmDetails)
    jobs_posted: int = 0
    total_spent: float = 0
    rating: float = 0
    total_ratings: int = 0
    avatar: Optional[str] = None
    kind: str = field(default="farmer", init=False)


@dataclass
class LabourerProfile:
    name: str
    location: Location
    skills: List[str] = field(default_factory=list)
    experience: int = 0
    availability: Availability = field(default_factory=Availability)
    jobs_completed: int = 0
    total_earned: float = 0
    rating: float = 0
    total_ratings: int = 0
    avatar: Optional[str] = None
    kind: str = field(default="labourer", init=False)


Profile = Union[FarmerProfile, LabourerProfile]


@dataclass
class UserDto:
    id: str
    phone: str
    role: str
    language: str
    is_verified: bool
    profile: Profile
    created_at: datetime
    updated_at: datetime

    def public_view(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "phone": self.phone,
            "role": self.role,
            "name": self.profile.name,
            "language": self.language,
            "isVerified": self.is_verified,
        }


def _location_to_dict(location: Location) -> Dict[str, Any]:
    doc = {"state": location.state, "district": location.district, "village": location.village}
    if location.coordinates:
        doc["coordinates"] = dict(location.coordinates)
    return doc


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    """Document form of a profile (camelCase, with the ``kind`` discriminant)."""
    doc: Dict[str, Any] = {
        "kind": profile.kind,
        "name": profile.name,
        "location": _location_to_dict(profile.location),
        "rating": profile.rating,
        "totalRatings": profile.total_ratings,
    }
    if profile.avatar:
        doc["avatar"] = profile.avatar
    if isinstance(profile, FarmerProfile):
        doc.update({
            "farmDetails": {
                "farmSize": profile.farm_details.farm_size,
                "primaryCrops": list(profile.farm_details.primary_crops),
                "farmingExperience": profile.farm_details.farming_experience,
            },
            "jobsPosted": profile.jobs_posted,
            "totalSpent": profile.total_spent,
        })
    else:
        doc.update({
            "skills": list(profile.skills),
            "experience": profile.experience,
            "availability": {
                "isAvailable": profile.availability.is_available,
                "preferredWorkTypes": list(profile.availability.preferred_work_types),
                "maxTravelDistance": profile.availability.max_travel_distance,
            },
            "jobsCompleted": profile.jobs_completed,
            "totalEarned": profile.total_earned,
        })
    return doc


def profile_from_dict(doc: Dict[str, Any], role: Optional[str] = None) -> Profile:
    kind = doc.get("kind") or role
    loc = doc.get("location") or {}
    location = Location(
        state=loc.get("state", ""),
        district=loc.get("district", ""),
        village=loc.get("village", ""),
        coordinates=loc.get("coordinates"),
    )
    common = {
        "name": doc.get("name", ""),
        "location": location,
        "rating": doc.get("rating", 0),
        "total_ratings": doc.get("totalRatings", 0),
        "avatar": doc.get("avatar"),
    }
    if kind == "farmer":
        fd = doc.get("farmDetails") or {}
        return FarmerProfile(
            farm_details=FarmDetails(
                farm_size=fd.get("farmSize", 0),
                primary_crops=list(fd.get("primaryCrops", [])),
                farming_experience=fd.get("farmingExperience", 0),
            ),
            jobs_posted=doc.get("jobsPosted", 0),
            total_spent=doc.get("totalSpent", 0),
            **common,
        )
    av = doc.get("availability") or {}
    return LabourerProfile(
        skills=list(doc.get("skills", [])),
        experience=doc.get("experience", 0),
        availability=Availability(
            is_available=av.get("isAvailable", True),
            preferred_work_types=list(av.get("preferredWorkTypes", [])),
            max_travel_distance=av.get("maxTravelDistance", 50),
        ),
        jobs_completed=doc.get("jobsCompleted", 0),
        total_earned=doc.get("totalEarned", 0),
        **common,
    )


class UserRepository(Protocol):
    async def create_if_absent(self, phone: str, role: str, language: str, is_verified: bool, profile: Profile) -> UserDto:
        """Insert a user; raises DuplicatePhoneError when the phone is taken."""
        ...

    async def get_by_phone(self, phone: str) -> Optional[UserDto]:
        ...

    async def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    async def mark_verified(self, user_id: str) -> None:
        ...

    async def increment_profile_field(self, user_id: str, field: str, amount: float = 1) -> None:
        ...

    async def set_rating(self, user_id: str, rating: float, total_ratings: int) -> None:
        ...

# agriconnect/schemas/ratings/rating.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from ...application.ports.rating_repo import RatingDto


class RatingRequest(BaseModel):
    ratedUserId: str
    jobId: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


def serialize_rating(rating: RatingDto) -> Dict[str, Any]:
    return {
        "id": rating.id,
        "raterId": rating.rater_id,
        "ratedUserId": rating.rated_user_id,
        "jobId": rating.job_id,
        "rating": rating.rating,
        "comment": rating.comment,
        "createdAt": rating.created_at,
    }

# agriconnect/routers/ratings_router.py
from fastapi import APIRouter, Depends

from ..schemas.ratings.rating import RatingRequest, serialize_rating
from ..application.services.rating_service import RatingService
from ..application.services.token_service import SessionClaims
from ..dependencies import get_rating_service, get_current_claims
from ..exceptions import create_success_response

router = APIRouter(prefix="/ratings", tags=["Ratings"])


@router.post("")
async def rate_user(
    body: RatingRequest,
    rater: SessionClaims = Depends(get_current_claims),
    rating_service: RatingService = Depends(get_rating_service),
):
    rating = await rating_service.rate(rater, body.ratedUserId, body.jobId, body.rating, body.comment)
    return create_success_response("Rating submitted", {"rating": serialize_rating(rating)})


@router.get("/users/{user_id}")
async def ratings_for_user(
    user_id: str,
    _: SessionClaims = Depends(get_current_claims),
    rating_service: RatingService = Depends(get_rating_service),
):
    ratings = await rating_service.ratings_for(user_id)
    return {"success": True, "data": {"ratings": [serialize_rating(r) for r in ratings]}}

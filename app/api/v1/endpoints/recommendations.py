from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id, get_recommendation_service
from app.core.messages import SuccessMessages
from app.schemas.recommendation import RecommendationRequest, RecommendationResponse
from app.schemas.responses import Envelope
from app.services.recommendation_service import RecommendationService

router = APIRouter()


@router.post("/sections", response_model=Envelope[RecommendationResponse])
async def recommend_sections(
    body: RecommendationRequest,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Rank the caller's stored sections against a job description.

    Uses a hosted Gemini model; scores below the configured minimum are left out.
    """
    result = await service.recommend(user_id, body)
    return {"status": 200, "message": SuccessMessages.RECOMMENDATIONS_READY, "data": result}

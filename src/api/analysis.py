"""Image analysis endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_analysis_service, get_optional_user
from src.models.analysis import AnalyzeImageRequest, ImageAnalysisResponse
from src.models.user import User
from src.services.analysis_service import AnalysisService

router = APIRouter(tags=["Analysis"])


@router.post("/analyze-image")
async def analyze_image(
    request: AnalyzeImageRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> ImageAnalysisResponse:
    """Estimate the carbon footprint of clothing in an image.

    Points are credited only when the request carries a valid bearer token;
    anonymous callers still receive the estimate.
    """
    user_id = current_user.id if current_user is not None else None
    return await analysis_service.analyze(request.image_data, user_id)

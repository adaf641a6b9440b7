"""Clothing image analysis models."""

from typing import Optional

from pydantic import Field

from src.models.base import CamelModel


class ClothingItem(CamelModel):
    """A garment detected in an analyzed image."""

    id: str
    name: str
    type: str
    carbon_footprint: float = Field(..., ge=0, description="kg CO2")
    confidence: float = Field(..., ge=0, le=1)


class AnalyzeImageRequest(CamelModel):
    image_data: str = Field(..., min_length=1, description="Base64 image, optionally a data URL")


class ImageAnalysisResponse(CamelModel):
    items: list[ClothingItem]
    total_carbon_footprint: float
    eco_reward_points: int = Field(ge=0)
    analysis_id: str
    message: Optional[str] = None

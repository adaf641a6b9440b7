"""Clothing image analysis and eco-points scoring.

Analysis is a heuristic stub: without an inference endpoint, garments are
picked deterministically from a hash of the image payload. With
``inference_api_url`` configured, predictions from the remote classifier are
mapped onto the clothing carbon table, and any failure is treated as
"no items detected".
"""

import base64
import binascii
import math
import random
import re
import time
from typing import Optional
from uuid import UUID

import httpx
import structlog

from src.config import get_settings
from src.models.analysis import ClothingItem, ImageAnalysisResponse
from src.services.ledger_service import LedgerService
from src.store import InMemoryStore

logger = structlog.get_logger(__name__)

# kg CO2 per garment and garment type
CLOTHING_CARBON_DATABASE: dict[str, tuple[float, str]] = {
    "t-shirt": (5.0, "shirt"),
    "dress shirt": (7.0, "shirt"),
    "polo shirt": (5.5, "shirt"),
    "tank top": (3.5, "shirt"),
    "blouse": (6.5, "shirt"),
    "shirt": (6.0, "shirt"),
    "jeans": (10.0, "pants"),
    "pants": (8.0, "pants"),
    "trousers": (8.5, "pants"),
    "chinos": (7.5, "pants"),
    "leggings": (4.5, "pants"),
    "shorts": (4.0, "shorts"),
    "dress": (12.0, "dress"),
    "skirt": (6.0, "skirt"),
    "sweater": (9.0, "sweater"),
    "hoodie": (11.0, "sweater"),
    "cardigan": (8.5, "sweater"),
    "sweatshirt": (9.5, "sweater"),
    "jacket": (15.0, "outerwear"),
    "coat": (18.0, "outerwear"),
    "blazer": (13.0, "outerwear"),
    "windbreaker": (8.0, "outerwear"),
}

# Classifier labels that map onto a table entry
LABEL_SYNONYMS = {
    "tshirt": "t-shirt",
    "tee": "t-shirt",
    "jersey": "t-shirt",
    "tank": "tank top",
    "jean": "jeans",
    "denim": "jeans",
    "polo": "polo shirt",
    "pullover": "sweater",
    "gown": "dress",
    "frock": "dress",
    "parka": "coat",
    "trench coat": "coat",
    "suit": "blazer",
}

COMMON_CLOTHING_ITEMS = [
    "t-shirt",
    "jeans",
    "dress",
    "sweater",
    "jacket",
    "pants",
    "shirt",
    "hoodie",
]

DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")
MIN_IMAGE_LENGTH = 1000  # base64 chars; anything smaller is not a photo
HASH_PREFIX_LENGTH = 100
MIN_PREDICTION_SCORE = 0.1

POINTS_PER_ITEM = 50
LOW_CARBON_TARGET = 20.0  # kg CO2; totals under this earn a bonus
LOW_CARBON_MULTIPLIER = 5
TRY_AGAIN_POINTS = 10

NO_ITEMS_MESSAGE = (
    "No clothing items detected in this image. Please try uploading an image "
    "with clothing like shirts, pants, dresses, or jackets."
)


def strip_data_url(image_data: str) -> str:
    """Remove a ``data:image/...;base64,`` prefix if present."""
    return DATA_URL_PREFIX.sub("", image_data.strip(), count=1)


def image_hash(base64_data: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + c) over the first 100 characters."""
    h = 0
    for ch in base64_data[:HASH_PREFIX_LENGTH]:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def display_name(clothing_key: str) -> str:
    """'t-shirt' -> 'T shirt'."""
    return clothing_key[:1].upper() + clothing_key[1:].replace("-", " ")


def calculate_points(items: list[ClothingItem]) -> int:
    """Eco-points for an analysis; lower totals earn a bonus."""
    if not items:
        return TRY_AGAIN_POINTS
    total = sum(item.carbon_footprint for item in items)
    base_points = len(items) * POINTS_PER_ITEM
    carbon_bonus = max(0.0, (LOW_CARBON_TARGET - total) * LOW_CARBON_MULTIPLIER)
    return math.floor(base_points + carbon_bonus)


def match_clothing_label(label: str) -> Optional[str]:
    """Map a classifier label onto a key of the carbon table."""
    label = label.lower().replace("_", " ")
    # Longest keys first so "dress shirt" wins over "dress" and "shirt"
    for key in sorted(CLOTHING_CARBON_DATABASE, key=len, reverse=True):
        if key in label:
            return key
    for synonym, key in LABEL_SYNONYMS.items():
        if synonym in label:
            return key
    return None


class AnalysisService:
    """Service that analyzes clothing images and credits eco-points."""

    def __init__(
        self,
        store: Optional[InMemoryStore] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = get_settings()
        self.ledger = LedgerService(store)
        self.rng = rng or random.Random()
        self._transport = transport

    def _item_id(self, index: int) -> str:
        return f"item_{index}_{int(time.time() * 1000)}"

    def simulate_detection(self, base64_data: str) -> list[ClothingItem]:
        """Pick 1-2 distinct garments deterministically from the image hash."""
        if len(base64_data) < MIN_IMAGE_LENGTH:
            return []

        h = image_hash(base64_data)
        num_items = self.rng.randint(1, 2)
        used: set[int] = set()
        items = []

        for i in range(num_items):
            index = abs(h + i) % len(COMMON_CLOTHING_ITEMS)
            while index in used:
                index = (index + 1) % len(COMMON_CLOTHING_ITEMS)
            used.add(index)

            key = COMMON_CLOTHING_ITEMS[index]
            carbon_per_item, clothing_type = CLOTHING_CARBON_DATABASE[key]
            items.append(
                ClothingItem(
                    id=self._item_id(len(items) + 1),
                    name=display_name(key),
                    type=clothing_type,
                    carbon_footprint=round(carbon_per_item * self.rng.uniform(0.9, 1.1), 1),
                    confidence=self.rng.uniform(0.8, 0.95),
                )
            )

        return items

    async def classify_remote(self, base64_data: str) -> list[ClothingItem]:
        """Classify via the configured inference endpoint.

        Returns an empty list on any transport, status or decode failure.
        """
        try:
            image_bytes = base64.b64decode(base64_data, validate=False)
        except (binascii.Error, ValueError) as e:
            logger.warning("image_decode_failed", error=str(e))
            return []

        headers = {"Content-Type": "application/octet-stream"}
        if self.settings.inference_api_token:
            headers["Authorization"] = f"Bearer {self.settings.inference_api_token}"

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.inference_timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.settings.inference_api_url,
                    content=image_bytes,
                    headers=headers,
                )
                response.raise_for_status()
                predictions = response.json()
        except httpx.HTTPError as e:
            logger.warning(
                "inference_api_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return []
        except ValueError as e:
            logger.warning("inference_api_bad_json", error=str(e))
            return []

        if not isinstance(predictions, list):
            logger.warning("inference_api_unexpected_payload", payload_type=type(predictions).__name__)
            return []

        items = []
        seen: set[str] = set()
        for prediction in predictions:
            if not isinstance(prediction, dict):
                continue
            score = float(prediction.get("score", 0.0))
            key = match_clothing_label(str(prediction.get("label", "")))
            if key is None or key in seen or score < MIN_PREDICTION_SCORE:
                continue
            seen.add(key)
            carbon_per_item, clothing_type = CLOTHING_CARBON_DATABASE[key]
            items.append(
                ClothingItem(
                    id=self._item_id(len(items) + 1),
                    name=display_name(key),
                    type=clothing_type,
                    carbon_footprint=carbon_per_item,
                    confidence=min(max(score, 0.0), 1.0),
                )
            )

        logger.debug("inference_api_classified", predictions=len(predictions), items=len(items))
        return items

    async def detect_items(self, image_data: str) -> list[ClothingItem]:
        """Detect garments in a base64 image or data URL."""
        base64_data = strip_data_url(image_data)
        if len(base64_data) < MIN_IMAGE_LENGTH:
            return []
        if self.settings.inference_api_url:
            return await self.classify_remote(base64_data)
        return self.simulate_detection(base64_data)

    async def analyze(
        self, image_data: str, user_id: Optional[UUID] = None
    ) -> ImageAnalysisResponse:
        """Analyze an image and credit the points to ``user_id`` if given.

        Args:
            image_data: Base64 payload, optionally a data URL
            user_id: Authenticated user to credit, or None for anonymous

        Returns:
            ImageAnalysisResponse with detected items and points earned
        """
        items = await self.detect_items(image_data)
        total = round(sum(item.carbon_footprint for item in items), 1)
        points = calculate_points(items)

        if user_id is not None:
            await self.ledger.earn(user_id, points, total)

        analysis_id = f"analysis_{int(time.time() * 1000)}"
        logger.info(
            "image_analyzed",
            analysis_id=analysis_id,
            user_id=str(user_id) if user_id else None,
            items=len(items),
            total_carbon=total,
            points=points,
        )

        return ImageAnalysisResponse(
            items=items,
            total_carbon_footprint=total,
            eco_reward_points=points,
            analysis_id=analysis_id,
            message=None if items else NO_ITEMS_MESSAGE,
        )

"""
Classification data models.

The taxonomy is fixed: five categories, three beauty sub-categories.
A CategoryClassification is produced once per item and may be replaced
when a manual category override is merged in.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VideoCategory(str, Enum):
    """Content categories a video can be filed under."""

    BEAUTY = "beauty"
    FITNESS = "fitness"
    HAIRCARE = "haircare"
    BUSINESS = "business"
    LIFESTYLE = "lifestyle"


class BeautySubCategory(str, Enum):
    """Finer-grained tag applied only within the beauty category."""

    SKINCARE = "skincare"
    HAIRCARE = "haircare"
    ORALCARE = "oralcare"


class CategorySource(str, Enum):
    """Which stage decided the category."""

    FILENAME = "filename"
    MODEL = "model"
    MANUAL = "manual"


# Iteration order matters: ties keep the earlier category.
VIDEO_CATEGORIES: List[VideoCategory] = list(VideoCategory)

BEAUTY_SUBCATEGORY_LABELS = {
    BeautySubCategory.SKINCARE: "スキンケア",
    BeautySubCategory.HAIRCARE: "ヘアケア",
    BeautySubCategory.ORALCARE: "オーラルケア",
}

MAX_KEYWORDS = 10


def is_video_category(value: object) -> bool:
    """True if value names one of the five categories (case-insensitive)."""
    if not isinstance(value, str):
        return False
    return value.lower() in {c.value for c in VideoCategory}


class CategoryClassification(BaseModel):
    """
    Result of classifying one video.

    Keywords are ordered by discovery and capped at MAX_KEYWORDS.
    A beauty sub-category is only meaningful when category is beauty.
    """

    model_config = ConfigDict(extra="forbid")

    category: VideoCategory
    confidence: float = Field(..., ge=0.0, le=1.0, description="Heuristic score in [0, 1]")
    keywords: List[str] = Field(default_factory=list)
    source: CategorySource = CategorySource.FILENAME
    beauty_sub_category: Optional[BeautySubCategory] = None

    @field_validator("keywords")
    @classmethod
    def _cap_keywords(cls, value: List[str]) -> List[str]:
        return value[:MAX_KEYWORDS]


class Prediction(BaseModel):
    """One label emitted by an image model for one frame."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    probability: float = Field(..., ge=0.0, le=1.0)

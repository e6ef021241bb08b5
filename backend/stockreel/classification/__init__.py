"""
Content classification into the fixed five-category taxonomy.

Usage:
    from stockreel.classification import CategoryClassifier

    classifier = CategoryClassifier(image_model=model, frame_sampler=sampler)
    result = classifier.classify("beauty_serum_ad.mp4", video_path=path)
"""

from .models import (
    VideoCategory,
    BeautySubCategory,
    CategorySource,
    CategoryClassification,
    Prediction,
    VIDEO_CATEGORIES,
    BEAUTY_SUBCATEGORY_LABELS,
    MAX_KEYWORDS,
    is_video_category,
)
from .hints import CATEGORY_HINTS, BEAUTY_SUBCATEGORY_HINTS, MODEL_CATEGORY_KEYWORDS
from .tokens import sanitize_token, tokenize, collect_path_hints
from .beauty import resolve_beauty_sub_category
from .filename import classify_filename
from .image_model import ImageModel, TransformersImageModel, FakeImageModel
from .classifier import CategoryClassifier, apply_category_override

__all__ = [
    # Models
    "VideoCategory",
    "BeautySubCategory",
    "CategorySource",
    "CategoryClassification",
    "Prediction",
    "VIDEO_CATEGORIES",
    "BEAUTY_SUBCATEGORY_LABELS",
    "MAX_KEYWORDS",
    "is_video_category",
    # Hint tables
    "CATEGORY_HINTS",
    "BEAUTY_SUBCATEGORY_HINTS",
    "MODEL_CATEGORY_KEYWORDS",
    # Heuristics
    "sanitize_token",
    "tokenize",
    "collect_path_hints",
    "resolve_beauty_sub_category",
    "classify_filename",
    # Image models
    "ImageModel",
    "TransformersImageModel",
    "FakeImageModel",
    # Classifier
    "CategoryClassifier",
    "apply_category_override",
]

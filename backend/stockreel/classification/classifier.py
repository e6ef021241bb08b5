"""
Two-stage category classifier.

Stage 1 scores filename tokens and path segments (see filename.py). A
result at or above FAST_PATH_CONFIDENCE is returned immediately.

Stage 2 samples frames, runs the injected image model on each, and maps
predicted label words onto categories. The two results are reconciled:
a filename guess at or above RECONCILE_CONFIDENCE that disagrees with the
model keeps its category. Any failure inside stage 2 degrades to the
filename guess.

Design rules:
- The image model is injected; the classifier never loads one
- Sampled frames are always deleted, success or not
- Stage 2 never raises to the caller
"""

import logging
import re
from typing import Dict, List, Optional

from ..encoding.frames import DEFAULT_FRAME_COUNT, FrameSampler
from ..errors import ClassificationError
from .beauty import resolve_beauty_sub_category
from .filename import classify_filename
from .hints import MODEL_CATEGORY_KEYWORDS
from .image_model import ImageModel
from .models import (
    BEAUTY_SUBCATEGORY_LABELS,
    MAX_KEYWORDS,
    VIDEO_CATEGORIES,
    CategoryClassification,
    CategorySource,
    Prediction,
    VideoCategory,
)
from .tokens import collect_path_hints, filename_from_path, strip_extension, tokenize

logger = logging.getLogger(__name__)


FAST_PATH_CONFIDENCE = 0.7
RECONCILE_CONFIDENCE = 0.6

_LABEL_SPLIT = re.compile(r"[,\s]+")


def _ordered_union(*groups: List[str]) -> List[str]:
    return list(dict.fromkeys(value for group in groups for value in group))


class CategoryClassifier:
    """
    Classifies videos into the five-category taxonomy.

    Without an image model (or frame sampler) only stage 1 runs.
    """

    def __init__(
        self,
        image_model: Optional[ImageModel] = None,
        frame_sampler: Optional[FrameSampler] = None,
        frame_count: int = DEFAULT_FRAME_COUNT,
    ):
        self._image_model = image_model
        self._frame_sampler = frame_sampler
        self._frame_count = frame_count

    @property
    def has_model(self) -> bool:
        return self._image_model is not None and self._frame_sampler is not None

    def classify_filename(
        self,
        file_name: str,
        file_path: Optional[str] = None,
    ) -> CategoryClassification:
        """Stage 1 only."""
        return classify_filename(file_name, file_path)

    def classify(
        self,
        file_name: str,
        file_path: Optional[str] = None,
        video_path: Optional[str] = None,
        duration: Optional[float] = None,
    ) -> CategoryClassification:
        """
        Classify a video.

        Args:
            file_name: Base name used for token scoring
            file_path: Optional full path whose segments act as hints
            video_path: File to sample frames from (stage 2)
            duration: Known duration in seconds, used to space the samples

        Returns:
            CategoryClassification (never raises for stage 2 failures)
        """
        filename_guess = classify_filename(file_name, file_path)

        if filename_guess.confidence >= FAST_PATH_CONFIDENCE:
            return filename_guess

        if not self.has_model or not video_path:
            return filename_guess

        try:
            return self._classify_with_model(filename_guess, file_name, video_path, duration)
        except Exception as e:
            logger.warning(
                f"[Classifier] Model fallback failed for {file_name}, "
                f"using filename guess: {e}"
            )
            return filename_guess

    def _classify_with_model(
        self,
        filename_guess: CategoryClassification,
        file_name: str,
        video_path: str,
        duration: Optional[float],
    ) -> CategoryClassification:
        predictions = self._predict_frames(video_path, duration)

        detected_keywords: List[str] = []
        category_scores: Dict[VideoCategory, float] = {c: 0.0 for c in VIDEO_CATEGORIES}

        for prediction in predictions:
            for word in _LABEL_SPLIT.split(prediction.label.lower()):
                if not word:
                    continue
                if word not in detected_keywords:
                    detected_keywords.append(word)
                for category, keywords in MODEL_CATEGORY_KEYWORDS.items():
                    if any(word in kw or kw in word for kw in keywords):
                        category_scores[category] += prediction.probability

        best_category = VideoCategory.LIFESTYLE
        best_score = 0.0
        for category in VIDEO_CATEGORIES:
            if category_scores[category] > best_score:
                best_score = category_scores[category]
                best_category = category

        if best_score == 0:
            best_category = VideoCategory.LIFESTYLE
            best_score = 0.5

        confidence = min(best_score / len(predictions), 1.0) if predictions else 0.0

        merged_keywords = _ordered_union(
            detected_keywords[:MAX_KEYWORDS],
            filename_guess.keywords,
        )

        resolved_sub_category = filename_guess.beauty_sub_category
        if VideoCategory.BEAUTY in (best_category, filename_guess.category):
            name_tokens = tokenize(strip_extension(filename_from_path(file_name).lower()))
            sub_category, matched = resolve_beauty_sub_category(
                tokens=name_tokens,
                keywords=_ordered_union(merged_keywords, detected_keywords),
            )
            if sub_category is not None:
                resolved_sub_category = sub_category
                merged_keywords = _ordered_union(merged_keywords, matched)
            if resolved_sub_category is not None:
                merged_keywords = _ordered_union(merged_keywords, [resolved_sub_category.value])

        logger.info(
            f"[Classifier] Model result for {file_name}: {best_category.value} "
            f"({confidence:.2f}) from {len(predictions)} prediction(s)"
        )

        if (
            filename_guess.confidence >= RECONCILE_CONFIDENCE
            and filename_guess.category != best_category
        ):
            return CategoryClassification(
                category=filename_guess.category,
                confidence=max(filename_guess.confidence, confidence),
                keywords=merged_keywords[:MAX_KEYWORDS],
                source=CategorySource.FILENAME,
                beauty_sub_category=(
                    resolved_sub_category
                    if filename_guess.category == VideoCategory.BEAUTY
                    else None
                ),
            )

        return CategoryClassification(
            category=best_category,
            confidence=confidence,
            keywords=merged_keywords[:MAX_KEYWORDS],
            source=CategorySource.MODEL,
            beauty_sub_category=(
                resolved_sub_category if best_category == VideoCategory.BEAUTY else None
            ),
        )

    def _predict_frames(self, video_path: str, duration: Optional[float]) -> List[Prediction]:
        """
        Sample frames and run the model on each.

        Raises:
            ClassificationError: If sampling or inference fails
        """
        if self._frame_sampler is None or self._image_model is None:
            raise ClassificationError("No image model configured")

        try:
            frame_paths = self._frame_sampler.sample(
                video_path, duration=duration, count=self._frame_count
            )
        except Exception as e:
            raise ClassificationError(f"Frame extraction failed: {e}") from e

        try:
            predictions: List[Prediction] = []
            for frame_path in frame_paths:
                predictions.extend(self._image_model.classify(frame_path))
            return predictions
        except Exception as e:
            raise ClassificationError(f"Image model failed: {e}") from e
        finally:
            self._frame_sampler.cleanup(frame_paths)


def apply_category_override(
    classification: Optional[CategoryClassification],
    override: VideoCategory,
    file_name: Optional[str] = None,
    file_path: Optional[str] = None,
) -> CategoryClassification:
    """
    Force a category while keeping what was already learned.

    Keywords are unioned with the override name. The beauty sub-category
    survives only when the override is beauty; if none was known it is
    resolved from the filename and keywords.

    Args:
        classification: Prior result (may be None)
        override: Category from folder mapping
        file_name: Used to resolve a beauty sub-category when missing
        file_path: Path segments used for the same purpose

    Returns:
        CategoryClassification with source=manual, confidence 1.0
    """
    override = VideoCategory(override)
    previous_keywords = list(classification.keywords) if classification else []
    if override.value not in previous_keywords:
        # The override name must survive the keyword cap
        previous_keywords = previous_keywords[: MAX_KEYWORDS - 1]
    keywords = _ordered_union(previous_keywords, [override.value])

    beauty_sub_category = None
    if override == VideoCategory.BEAUTY:
        if classification is not None:
            beauty_sub_category = classification.beauty_sub_category
        if beauty_sub_category is None:
            tokens = tokenize(strip_extension(file_name.lower())) if file_name else []
            beauty_sub_category, matched = resolve_beauty_sub_category(
                tokens=tokens,
                path_hints=collect_path_hints(file_path),
                keywords=keywords,
            )
            if beauty_sub_category is not None:
                keywords = _ordered_union(
                    keywords,
                    matched,
                    [beauty_sub_category.value, BEAUTY_SUBCATEGORY_LABELS[beauty_sub_category]],
                )

    return CategoryClassification(
        category=override,
        confidence=1.0,
        keywords=keywords[:MAX_KEYWORDS],
        source=CategorySource.MANUAL,
        beauty_sub_category=beauty_sub_category,
    )

"""
Deterministic filename and path scoring.

Scores per category (maximum wins):
    0.95  first filename token equals the category name
    0.90  any filename token or path segment equals the category name
    0.85  a filename token equals a hint
    0.75  the base name contains a hint
    0.80  a path segment contains a hint

Hint matches are checked in that order and only the first applicable one
counts for a given hint. With no match at all the result is lifestyle at
0.5. The first six raw tokens are always appended as keywords.
"""

from typing import List, Optional

from .beauty import resolve_beauty_sub_category
from .hints import CATEGORY_HINTS
from .models import (
    BEAUTY_SUBCATEGORY_LABELS,
    MAX_KEYWORDS,
    VIDEO_CATEGORIES,
    CategoryClassification,
    CategorySource,
    VideoCategory,
)
from .tokens import collect_path_hints, sanitize_token, strip_extension, tokenize

DEFAULT_CATEGORY = VideoCategory.LIFESTYLE
DEFAULT_CONFIDENCE = 0.5
TOKEN_KEYWORD_LIMIT = 6


def _add(keywords: List[str], value: str) -> None:
    if value not in keywords:
        keywords.append(value)


def classify_filename(
    file_name: str,
    file_path: Optional[str] = None,
    fallback: VideoCategory = DEFAULT_CATEGORY,
) -> CategoryClassification:
    """
    Classify a video from its name and location alone.

    Args:
        file_name: Base name, extension included
        file_path: Optional full path; its segments act as extra hints
        fallback: Category used when nothing scores

    Returns:
        CategoryClassification with source=filename
    """
    base_name = strip_extension(file_name.lower())
    tokens = tokenize(base_name)
    path_hints = collect_path_hints(file_path)
    first_token = tokens[0] if tokens else None

    best_category = fallback
    best_score = 0.0
    best_keywords: List[str] = []

    for category in VIDEO_CATEGORIES:
        name = category.value
        score = 0.0
        matched: List[str] = []

        if first_token == name:
            score = max(score, 0.95)
            _add(matched, name)

        if name in tokens:
            score = max(score, 0.9)
            _add(matched, name)

        if name in path_hints:
            score = max(score, 0.9)
            _add(matched, name)

        for hint in CATEGORY_HINTS[category]:
            normalized = sanitize_token(hint.lower())
            if not normalized:
                continue

            if normalized in tokens:
                score = max(score, 0.85)
                _add(matched, hint)
            elif normalized in base_name:
                score = max(score, 0.75)
                _add(matched, hint)
            elif any(normalized in segment for segment in path_hints):
                score = max(score, 0.8)
                _add(matched, hint)

        if score > best_score:
            best_score = score
            best_category = category
            best_keywords = matched

    keywords = list(best_keywords)
    for token in tokens[:TOKEN_KEYWORD_LIMIT]:
        _add(keywords, token)

    beauty_sub_category = None
    if best_category == VideoCategory.BEAUTY:
        sub_category, matched_hints = resolve_beauty_sub_category(
            tokens=tokens,
            path_hints=path_hints,
            keywords=list(keywords),
        )
        if sub_category is not None:
            beauty_sub_category = sub_category
            for value in matched_hints:
                _add(keywords, value)
            _add(keywords, sub_category.value)
            _add(keywords, BEAUTY_SUBCATEGORY_LABELS[sub_category])

    return CategoryClassification(
        category=best_category,
        confidence=best_score if best_score > 0 else DEFAULT_CONFIDENCE,
        keywords=keywords[:MAX_KEYWORDS],
        source=CategorySource.FILENAME,
        beauty_sub_category=beauty_sub_category,
    )

"""
Beauty sub-category resolution.

Every candidate string (filename tokens, path segments, keywords) is
compared with every hint of each sub-category:

    1.0   exact match
    0.85  one starts with the other
    0.75  one contains the other

A candidate equal to the sub-category name scores 1.0 and contributes the
sub-category's label. The highest-scoring sub-category with at least one
match wins; ties keep the earlier table entry.
"""

from typing import Iterable, List, Optional, Tuple

from .hints import BEAUTY_SUBCATEGORY_HINTS
from .models import BEAUTY_SUBCATEGORY_LABELS, BeautySubCategory
from .tokens import sanitize_token


def _evaluate_hint(candidate: str, hint: str) -> float:
    if not candidate or not hint:
        return 0.0
    if candidate == hint:
        return 1.0
    if candidate.startswith(hint) or hint.startswith(candidate):
        return 0.85
    if hint in candidate or candidate in hint:
        return 0.75
    return 0.0


def _normalize_candidates(candidates: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in candidates:
        normalized = sanitize_token(value.lower())
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


def resolve_beauty_sub_category(
    tokens: Optional[List[str]] = None,
    path_hints: Optional[List[str]] = None,
    keywords: Optional[List[str]] = None,
) -> Tuple[Optional[BeautySubCategory], List[str]]:
    """
    Pick the best-matching beauty sub-category.

    Args:
        tokens: Filename tokens
        path_hints: Path segments
        keywords: Keywords gathered so far

    Returns:
        (sub_category or None, matched hint strings without duplicates)
    """
    candidates = _normalize_candidates(
        [*(tokens or []), *(path_hints or []), *(keywords or [])]
    )
    if not candidates:
        return None, []

    best: Optional[BeautySubCategory] = None
    best_score = 0.0
    best_matched: List[str] = []

    for sub_category, hints in BEAUTY_SUBCATEGORY_HINTS.items():
        score = 0.0
        matched: List[str] = []

        for hint in hints:
            normalized_hint = sanitize_token(hint.lower())
            if not normalized_hint:
                continue
            for candidate in candidates:
                candidate_score = _evaluate_hint(candidate, normalized_hint)
                if candidate_score > 0:
                    matched.append(hint)
                    score = max(score, candidate_score)

        if sub_category.value in candidates:
            score = max(score, 1.0)
            matched.append(BEAUTY_SUBCATEGORY_LABELS[sub_category])

        if score > best_score and matched:
            best_score = score
            best = sub_category
            best_matched = matched

    return best, list(dict.fromkeys(best_matched))

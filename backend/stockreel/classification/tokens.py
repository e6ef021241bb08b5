"""
Token normalization shared by the filename and beauty heuristics.
"""

import re
from pathlib import PureWindowsPath
from typing import List, Optional

_DISALLOWED = re.compile(r"[^a-z0-9ぁ-んァ-ヶ一-龠ー]+", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\s_\-]+")
_EXTENSION = re.compile(r"\.[^.]+$")


def sanitize_token(value: str) -> str:
    """Drop everything except ASCII letters/digits, kana, kanji and ー."""
    return _DISALLOWED.sub("", value).strip()


def strip_extension(file_name: str) -> str:
    return _EXTENSION.sub("", file_name)


def tokenize(base: str) -> List[str]:
    """Split on whitespace, '_' and '-' and sanitize; empty tokens are dropped."""
    tokens = (sanitize_token(part.lower()) for part in _SEPARATORS.split(base))
    return [token for token in tokens if token]


def collect_path_hints(file_path: Optional[str]) -> List[str]:
    """Sanitized, lowercased segments of a path (either separator style)."""
    if not file_path:
        return []
    segments = str(file_path).replace("\\", "/").split("/")
    hints = (sanitize_token(segment.lower()) for segment in segments)
    return [hint for hint in hints if hint]


def filename_from_path(file_path: str) -> str:
    """Base name of a path using either separator style."""
    return PureWindowsPath(str(file_path)).name

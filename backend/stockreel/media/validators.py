"""
Acceptance validation for uploaded videos.

Every rule is evaluated; the report carries one message per failed rule,
not just the first.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..encoding.base import Encoder
from .errors import MediaError
from .models import ValidationReport, VideoMetadata
from .probe import probe_video

logger = logging.getLogger(__name__)


class ValidationRules(BaseModel):
    """
    Platform acceptance limits.

    The fixed duration target is 10s with ±1s tolerance for rounding.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed_formats: List[str] = Field(
        default_factory=lambda: ["mp4", "mov", "avi", "webm"],
        description="Container families; a format name matches if it contains one",
    )
    min_duration: int = Field(default=9, description="Minimum rounded duration (s)")
    max_duration: int = Field(default=11, description="Maximum rounded duration (s)")
    max_size_bytes: int = Field(default=100 * 1024 * 1024, description="Size ceiling")
    min_dimension: int = Field(default=720, description="Minimum width and height (px)")


DEFAULT_RULES = ValidationRules()


def validate_metadata(
    metadata: VideoMetadata,
    rules: ValidationRules = DEFAULT_RULES,
) -> List[str]:
    """
    Apply acceptance rules and return the list of violations.

    Returns empty list if all checks pass.
    """
    issues: List[str] = []

    fmt = metadata.format.lower()
    if not any(allowed in fmt for allowed in rules.allowed_formats):
        issues.append(
            f"Unsupported format: {fmt}. "
            f"Allowed formats: {', '.join(rules.allowed_formats)}"
        )

    if metadata.duration < rules.min_duration or metadata.duration > rules.max_duration:
        issues.append(
            f"Video duration must be 10 seconds (current: {metadata.duration}s)"
        )

    if metadata.size > rules.max_size_bytes:
        limit_mb = rules.max_size_bytes // (1024 * 1024)
        issues.append(
            f"File size exceeds {limit_mb}MB limit (current: {metadata.size_mb:.2f}MB)"
        )

    width, height = metadata.dimensions
    if width < rules.min_dimension or height < rules.min_dimension:
        issues.append(
            f"Resolution too low. Minimum {rules.min_dimension}p required "
            f"(current: {metadata.resolution})"
        )

    return issues


def validate_video(
    filepath: str,
    metadata: VideoMetadata,
    rules: ValidationRules = DEFAULT_RULES,
) -> ValidationReport:
    """
    Validate a file given its already-probed metadata.

    Args:
        filepath: Path of the file (for logging)
        metadata: Probed metadata of that file
        rules: Acceptance limits

    Returns:
        ValidationReport with every violation
    """
    errors = validate_metadata(metadata, rules)
    if errors:
        logger.info(f"[Validator] {filepath}: {len(errors)} violation(s)")
    return ValidationReport(valid=not errors, errors=errors, metadata=metadata)


def validate_file(
    filepath: str,
    encoder: Encoder,
    rules: ValidationRules = DEFAULT_RULES,
    timeout: Optional[float] = 30.0,
) -> ValidationReport:
    """
    Probe a file and validate it.

    A probe failure is reported as a single violation rather than raised.
    """
    try:
        metadata = probe_video(filepath, encoder, timeout=timeout)
    except MediaError as e:
        return ValidationReport(valid=False, errors=[f"Failed to validate video: {e}"])
    return validate_video(filepath, metadata, rules)

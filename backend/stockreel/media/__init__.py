"""
Metadata probing and acceptance validation.

Usage:
    from stockreel.media import probe_video, validate_video

    metadata = probe_video("/path/to/clip.mp4", encoder)
    report = validate_video("/path/to/clip.mp4", metadata)
"""

from .errors import MediaError, ProbeError, NoVideoStreamError
from .models import VideoMetadata, ValidationReport
from .probe import probe_video, probe_duration, parse_frame_rate, parse_probe_data
from .validators import (
    ValidationRules,
    DEFAULT_RULES,
    validate_metadata,
    validate_video,
    validate_file,
)

__all__ = [
    # Errors
    "MediaError",
    "ProbeError",
    "NoVideoStreamError",
    # Models
    "VideoMetadata",
    "ValidationReport",
    # Probing
    "probe_video",
    "probe_duration",
    "parse_frame_rate",
    "parse_probe_data",
    # Validation
    "ValidationRules",
    "DEFAULT_RULES",
    "validate_metadata",
    "validate_video",
    "validate_file",
]

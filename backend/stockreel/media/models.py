"""
Metadata data models.

VideoMetadata is derived strictly from probing a file and is immutable once
computed. Unknown values are explicit ("unknown", 0), never guessed.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class VideoMetadata(BaseModel):
    """
    Probed properties of one video file.

    Duration and container information come from the format section;
    resolution, frame rate and codec come from the first video stream.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    duration: int = Field(..., description="Container duration in seconds, rounded")
    resolution: str = Field(..., description='"WIDTHxHEIGHT" of the video stream')
    frame_rate: float = Field(default=0.0, description="Frames per second")
    bitrate: int = Field(default=0, description="Container bit rate (bits/s)")
    codec: str = Field(default="unknown", description="Video codec name")
    size: int = Field(default=0, description="File size in bytes")
    format: str = Field(default="unknown", description="Container format name(s)")
    has_audio: bool = Field(default=False, description="Whether an audio stream exists")

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(width, height); (0, 0) when the resolution string is malformed."""
        width, _, height = self.resolution.partition("x")
        try:
            return int(width), int(height)
        except ValueError:
            return 0, 0

    @property
    def width(self) -> int:
        return self.dimensions[0]

    @property
    def height(self) -> int:
        return self.dimensions[1]

    @property
    def aspect_ratio(self) -> float:
        """width / height, or 0.0 when height is unknown."""
        width, height = self.dimensions
        return width / height if height else 0.0

    @property
    def size_mb(self) -> float:
        return self.size / 1024 / 1024


class ValidationReport(BaseModel):
    """
    Result of applying the acceptance rules to one file.

    `errors` holds one human-readable message per failed rule.
    `metadata` is the probe result when probing succeeded.
    """

    model_config = ConfigDict(extra="forbid")

    valid: bool
    errors: List[str] = Field(default_factory=list)
    metadata: Optional[VideoMetadata] = None

"""
Watch folder data models.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..classification.models import VideoCategory


class FileStabilityCheck(BaseModel):
    """
    Result of a file stability check.

    Files are considered stable when their size has not changed for the
    configured threshold.
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Checked file")
    is_stable: bool = Field(..., description="Whether file is stable")
    size_bytes: Optional[int] = Field(
        None, description="Current file size in bytes (None if file inaccessible)"
    )
    unchanged_for: float = Field(
        default=0.0, description="Seconds the size has been unchanged"
    )
    reason: Optional[str] = Field(
        None, description="Human-readable explanation if unstable or inaccessible"
    )


class DiscoveredFile(BaseModel):
    """
    A stable, supported file ready to enqueue, with what its location says
    about it.
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Absolute path (the queue key)")
    category_override: Optional[VideoCategory] = Field(
        None, description="Category from the first subfolder, if mapped"
    )
    extra_tags: List[str] = Field(
        default_factory=list, description="Hashtags from folders, manifest and file name"
    )

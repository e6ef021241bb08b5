"""
Metadata-specific error types.

All errors inherit from MediaError for easy catching.
Errors are explicit and provide actionable messages.
"""


class MediaError(Exception):
    """Base exception for all metadata-related failures."""
    pass


class ProbeError(MediaError):
    """Raised when metadata extraction fails."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Failed to extract metadata from {filepath}: {reason}")


class NoVideoStreamError(ProbeError):
    """Raised when the container holds no video stream."""

    def __init__(self, filepath: str):
        super().__init__(filepath, "No video stream found")

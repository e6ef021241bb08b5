"""
External encoder boundary.

All ffmpeg/ffprobe invocations go through the Encoder interface.
FFmpegEncoder spawns the real binaries; FakeEncoder is an in-memory double.
"""

from .errors import (
    EncoderError,
    EncoderNotFoundError,
    EncoderProcessError,
    EncoderTimeoutError,
    EncoderCancelledError,
    OutputVerificationError,
)
from .base import Encoder, EncoderResult
from .ffmpeg import FFmpegEncoder, find_binary
from .fake import FakeEncoder, build_probe_payload
from .frames import FrameSampler, sample_timestamps
from .thumbnails import ThumbnailGenerator, composite_watermark, composite_logo, logo_origin

__all__ = [
    # Errors
    "EncoderError",
    "EncoderNotFoundError",
    "EncoderProcessError",
    "EncoderTimeoutError",
    "EncoderCancelledError",
    "OutputVerificationError",
    # Interface
    "Encoder",
    "EncoderResult",
    # Implementations
    "FFmpegEncoder",
    "FakeEncoder",
    "find_binary",
    "build_probe_payload",
    # Helpers
    "FrameSampler",
    "sample_timestamps",
    "ThumbnailGenerator",
    "composite_watermark",
    "composite_logo",
    "logo_origin",
]

"""
Evenly spaced frame sampling for image-model classification.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional

from .base import Encoder

logger = logging.getLogger(__name__)


DEFAULT_FRAME_COUNT = 3

# Used when the duration is unknown
FALLBACK_DURATION_SECONDS = 10.0


def sample_timestamps(duration: float, count: int) -> List[float]:
    """
    Timestamps at duration/(count+1) * i for i = 1..count.

    Never lands on the first or last frame.
    """
    interval = duration / (count + 1)
    return [interval * i for i in range(1, count + 1)]


class FrameSampler:
    """
    Extracts still frames into a per-call scratch directory.
    """

    def __init__(self, encoder: Encoder, frames_dir: Path, timeout: Optional[float] = 60.0):
        self.encoder = encoder
        self.frames_dir = Path(frames_dir)
        self.timeout = timeout

    def sample(
        self,
        video_path: str,
        duration: Optional[float] = None,
        count: int = DEFAULT_FRAME_COUNT,
    ) -> List[str]:
        """
        Extract `count` frames.

        Args:
            video_path: Video to sample
            duration: Length in seconds (fallback used when missing or zero)
            count: Number of frames

        Returns:
            Paths of the extracted JPEG frames, in timestamp order

        Raises:
            EncoderError: If any extraction fails (the scratch directory is removed)
        """
        if not duration or duration <= 0:
            duration = FALLBACK_DURATION_SECONDS

        output_dir = self.frames_dir / str(int(time.time() * 1000))
        output_dir.mkdir(parents=True, exist_ok=True)

        frame_paths: List[str] = []
        try:
            for i, timestamp in enumerate(sample_timestamps(duration, count), 1):
                frame_path = output_dir / f"frame_{i}.jpg"
                self.encoder.run_ffmpeg(
                    [
                        "-ss", f"{timestamp:.3f}",
                        "-i", str(video_path),
                        "-frames:v", "1",
                        "-y",
                        str(frame_path),
                    ],
                    timeout=self.timeout,
                )
                frame_paths.append(str(frame_path))
        except Exception:
            self.cleanup(frame_paths)
            shutil.rmtree(output_dir, ignore_errors=True)
            raise

        logger.debug(f"[Frames] Sampled {len(frame_paths)} frame(s) from {video_path}")
        return frame_paths

    def cleanup(self, frame_paths: List[str]) -> None:
        """Delete sampled frames and their scratch directory."""
        directories = set()
        for frame_path in frame_paths:
            path = Path(frame_path)
            directories.add(path.parent)
            path.unlink(missing_ok=True)

        for directory in directories:
            if directory.is_dir() and directory.parent == self.frames_dir:
                shutil.rmtree(directory, ignore_errors=True)

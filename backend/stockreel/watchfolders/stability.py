"""
File stability detection.

Uses polling to determine when files have finished copying/writing.
A file is considered stable when its size has not changed for a threshold
duration (2 seconds by default, polled every 100 ms).
"""

import time
from pathlib import Path
from typing import Callable, Dict, Tuple

from .models import FileStabilityCheck


class FileStabilityChecker:
    """
    Poll-based file stability detector.

    Tracks file sizes over time and considers a file stable once its size
    has stayed the same for `threshold` seconds.

    Configuration:
        threshold: Seconds the size must remain unchanged (default: 2.0)
        poll_interval: Suggested seconds between checks (default: 0.1)
        clock: Monotonic time source
    """

    def __init__(
        self,
        threshold: float = 2.0,
        poll_interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = threshold
        self.poll_interval = poll_interval
        self._clock = clock

        # {path: (size, first time this size was seen)}
        self._file_state: Dict[str, Tuple[int, float]] = {}

    def check_stability(self, path: Path) -> FileStabilityCheck:
        """
        Check if a file is stable.

        Returns:
            FileStabilityCheck with stability status

        A file is considered stable when:
        1. File exists and is readable
        2. File size equals the size seen on the previous checks
        3. That size has been observed for at least `threshold` seconds
        """
        path_str = str(path)

        try:
            current_size = path.stat().st_size
        except FileNotFoundError:
            self._file_state.pop(path_str, None)
            return FileStabilityCheck(
                path=path_str,
                is_stable=False,
                reason="File does not exist",
            )
        except OSError as e:
            self._file_state.pop(path_str, None)
            return FileStabilityCheck(
                path=path_str,
                is_stable=False,
                reason=f"File not accessible: {e}",
            )

        now = self._clock()

        if path_str not in self._file_state:
            self._file_state[path_str] = (current_size, now)
            return FileStabilityCheck(
                path=path_str,
                is_stable=False,
                size_bytes=current_size,
                reason="First stability check",
            )

        prev_size, since = self._file_state[path_str]

        if current_size != prev_size:
            # Size changed - restart the window
            self._file_state[path_str] = (current_size, now)
            return FileStabilityCheck(
                path=path_str,
                is_stable=False,
                size_bytes=current_size,
                reason=f"File size changed (prev: {prev_size}, current: {current_size})",
            )

        unchanged_for = now - since
        if unchanged_for >= self.threshold:
            return FileStabilityCheck(
                path=path_str,
                is_stable=True,
                size_bytes=current_size,
                unchanged_for=unchanged_for,
            )

        return FileStabilityCheck(
            path=path_str,
            is_stable=False,
            size_bytes=current_size,
            unchanged_for=unchanged_for,
            reason=f"Unchanged for {unchanged_for:.1f}s of {self.threshold}s",
        )

    def reset_tracking(self, path: Path) -> None:
        """
        Reset stability tracking for a file.

        Used after a file has been enqueued or if tracking should restart.
        """
        self._file_state.pop(str(path), None)

    def clear_all_tracking(self) -> None:
        """Clear all file stability tracking."""
        self._file_state.clear()

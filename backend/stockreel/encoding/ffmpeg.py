"""
FFmpeg encoder.

Real implementation of the Encoder interface via subprocess.Popen.

Design rules:
- One subprocess per invocation, explicit argv, no shell
- communicate() drains stdout + stderr so the child never blocks on a full pipe
- Per-call timeout: SIGTERM first, SIGKILL after a grace period
- Full command string is logged for audit
"""

import logging
import os
import shutil
import subprocess
import threading
from datetime import datetime
from typing import List, Optional, Sequence

from .base import Encoder, EncoderResult
from .errors import (
    EncoderCancelledError,
    EncoderNotFoundError,
    EncoderProcessError,
    EncoderTimeoutError,
)

logger = logging.getLogger(__name__)


# Common install locations checked after PATH
COMMON_BINARY_DIRS = [
    "/usr/local/bin",
    "/usr/bin",
    "/opt/homebrew/bin",
]

# Seconds to wait after SIGTERM before escalating to SIGKILL
TERMINATE_GRACE_SECONDS = 5.0


def find_binary(name: str, configured: Optional[str] = None) -> Optional[str]:
    """
    Locate an executable.

    Order: explicit configured path, PATH lookup, common install locations.

    Returns:
        Absolute path to the binary, or None if not found
    """
    if configured:
        if os.path.isfile(configured) and os.access(configured, os.X_OK):
            return configured
        resolved = shutil.which(configured)
        if resolved:
            return resolved
        return None

    resolved = shutil.which(name)
    if resolved:
        return resolved

    for directory in COMMON_BINARY_DIRS:
        path = os.path.join(directory, name)
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path

    return None


class FFmpegEncoder(Encoder):
    """
    ffmpeg/ffprobe-backed encoder.

    Only one process is in flight at a time per instance; the pipeline worker
    is single-threaded, and cancel() targets that one process.
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
    ):
        """
        Initialize encoder.

        Args:
            ffmpeg_path: Optional explicit ffmpeg binary (name or path)
            ffprobe_path: Optional explicit ffprobe binary (name or path)
        """
        self._configured_ffmpeg = ffmpeg_path
        self._configured_ffprobe = ffprobe_path
        self._ffmpeg_path: Optional[str] = None
        self._ffprobe_path: Optional[str] = None
        self._active_process: Optional[subprocess.Popen] = None
        self._cancel_requested = False
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "FFmpeg"

    @property
    def available(self) -> bool:
        return self._ffmpeg() is not None and self._ffprobe() is not None

    def _ffmpeg(self) -> Optional[str]:
        if self._ffmpeg_path is None:
            self._ffmpeg_path = find_binary("ffmpeg", self._configured_ffmpeg)
        return self._ffmpeg_path

    def _ffprobe(self) -> Optional[str]:
        if self._ffprobe_path is None:
            self._ffprobe_path = find_binary("ffprobe", self._configured_ffprobe)
        return self._ffprobe_path

    def run_ffmpeg(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        binary = self._ffmpeg()
        if not binary:
            raise EncoderNotFoundError("ffmpeg")
        # -nostdin keeps ffmpeg from consuming the parent's terminal input
        return self._run([binary, "-hide_banner", "-nostdin", *args], timeout, check)

    def run_ffprobe(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        binary = self._ffprobe()
        if not binary:
            raise EncoderNotFoundError("ffprobe")
        return self._run([binary, *args], timeout, check)

    def cancel(self) -> None:
        """
        Cancel the running process.

        Uses SIGTERM first, escalates to SIGKILL after the grace period.
        """
        with self._lock:
            process = self._active_process
            if process is None:
                return
            self._cancel_requested = True

        logger.info(f"[FFmpeg] Cancelling PID {process.pid}")
        self._terminate(process, drain=False)

    def _run(
        self,
        cmd: List[str],
        timeout: Optional[float],
        check: bool,
    ) -> EncoderResult:
        logger.info(f"[FFmpeg] Executing: {' '.join(cmd)}")
        started_at = datetime.now()

        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )

        with self._lock:
            self._active_process = process
            self._cancel_requested = False

        logger.debug(f"[FFmpeg] Started PID {process.pid}")

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                f"[FFmpeg] PID {process.pid} exceeded {timeout}s deadline, terminating"
            )
            self._terminate(process)
            raise EncoderTimeoutError(cmd, timeout or 0.0)
        finally:
            with self._lock:
                self._active_process = None
                cancelled = self._cancel_requested
                self._cancel_requested = False

        result = EncoderResult(
            command=cmd,
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            started_at=started_at,
            completed_at=datetime.now(),
        )

        logger.debug(f"[FFmpeg] PID {process.pid} exited with code {result.returncode} after {result.duration_seconds:.1f}s")

        if cancelled:
            raise EncoderCancelledError(cmd)

        if check and result.returncode != 0:
            logger.error(f"[FFmpeg] Failed ({result.returncode}): {result.stderr.strip()[-500:]}")
            raise EncoderProcessError(cmd, result.returncode, result.stderr)

        return result

    def _terminate(self, process: subprocess.Popen, drain: bool = True) -> None:
        """
        Stop a process, SIGTERM then SIGKILL.

        The owning thread drains the pipes (drain=True); a cancelling thread
        only waits, since the owner's communicate() is still reading.
        """
        try:
            process.terminate()
            try:
                if drain:
                    process.communicate(timeout=TERMINATE_GRACE_SECONDS)
                else:
                    process.wait(timeout=TERMINATE_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                logger.warning(f"[FFmpeg] PID {process.pid} did not terminate, sending SIGKILL")
                process.kill()
                if drain:
                    process.communicate()
                else:
                    process.wait()
        except ProcessLookupError:
            pass  # Process already dead

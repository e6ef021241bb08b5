"""
Encoder abstraction layer.

Every interaction with the external media toolchain (metadata probing,
filter-graph execution, frame extraction) goes through this interface.

Design rules:
- Arguments are an explicit vector, never a shell string
- One blocking call per invocation, bounded by a per-stage timeout
- stdout and stderr are always fully drained
- The real implementation spawns ffmpeg/ffprobe; tests use FakeEncoder
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class EncoderResult(BaseModel):
    """
    Outcome of one external process invocation.
    """

    model_config = ConfigDict(extra="forbid")

    command: List[str]
    """Full argument vector, binary first."""

    returncode: int
    """Process exit code."""

    stdout: str = ""
    """Captured standard output."""

    stderr: str = ""
    """Captured standard error."""

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class Encoder(ABC):
    """
    Abstract base class for the external encoder/probe toolchain.

    Implementations must:
    - run_ffmpeg: execute a filter-graph / extraction command
    - run_ffprobe: execute an inspection command
    - cancel: terminate whatever invocation is currently in flight

    With check=True a non-zero exit raises EncoderProcessError.
    A timeout raises EncoderTimeoutError after the process is terminated.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable encoder name for logs."""
        pass

    @property
    @abstractmethod
    def available(self) -> bool:
        """True if both the encoder and the probe binary can be executed."""
        pass

    @abstractmethod
    def run_ffmpeg(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        """
        Run the encoder binary with the given arguments.

        Args:
            args: Arguments after the binary name
            timeout: Seconds before the process is terminated (None = no limit)
            check: Raise EncoderProcessError on non-zero exit

        Returns:
            EncoderResult with captured output
        """
        pass

    @abstractmethod
    def run_ffprobe(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> EncoderResult:
        """Run the probe binary with the given arguments."""
        pass

    def cancel(self) -> None:
        """Terminate the in-flight invocation, if any."""
        pass

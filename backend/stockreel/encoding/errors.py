"""
Encoder-specific errors.

All errors are non-fatal to the application.
They indicate that one external process invocation failed; the pipeline
converts them into a failure of the item being processed.
"""

from typing import List, Optional


class EncoderError(Exception):
    """
    Base exception for external encoder failures.

    All encoder errors inherit from this.
    """

    pass


class EncoderNotFoundError(EncoderError):
    """Raised when the ffmpeg or ffprobe binary cannot be located."""

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(
            f"{binary} not found. Install ffmpeg or configure the binary path."
        )


class EncoderProcessError(EncoderError):
    """
    The external process exited with a non-zero code.

    The tail of stderr is retained for diagnostics.
    """

    def __init__(self, command: List[str], returncode: int, stderr: Optional[str] = None):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""
        tail = self.stderr.strip()[-500:]
        detail = f": {tail}" if tail else ""
        super().__init__(f"{command[0]} exited with code {returncode}{detail}")


class EncoderTimeoutError(EncoderError):
    """The external process exceeded its stage deadline and was terminated."""

    def __init__(self, command: List[str], timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"{command[0]} timed out after {timeout:g}s")


class EncoderCancelledError(EncoderError):
    """The external process was cancelled by the operator."""

    def __init__(self, command: List[str]):
        self.command = command
        super().__init__(f"{command[0]} was cancelled")


class OutputVerificationError(EncoderError):
    """
    Output verification failed.

    Raised when the process appears to succeed but the output is invalid:
    - Output file missing
    - Output file zero bytes
    """

    def __init__(self, output_path: str, reason: str):
        self.output_path = output_path
        self.reason = reason
        super().__init__(f"Invalid output {output_path}: {reason}")

"""
Pipeline stage error taxonomy.

Every stage failure is one of these. The worker converts any of them into
an item-level failure; none of them escalates past the worker boundary.

Design rules:
- ValidationError carries every violated rule, not just the first
- ClassificationError never fails an item; the classifier degrades to the
  filename guess
- Nothing here is retried automatically
"""

from typing import List


class PipelineError(Exception):
    """Base exception for all stage failures."""
    pass


class ValidationError(PipelineError):
    """Raised when a file violates one or more acceptance rules."""

    def __init__(self, filepath: str, violations: List[str]):
        self.filepath = filepath
        self.violations = list(violations)
        super().__init__(f"Validation failed: {', '.join(self.violations)}")


class ProcessingError(PipelineError):
    """Raised when probing, watermarking or frame extraction fails."""

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage} failed: {reason}")


class ClassificationError(PipelineError):
    """Raised inside the model fallback; always handled by the classifier."""
    pass


class UploadError(PipelineError):
    """Raised when storage upload or the catalog insert fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")

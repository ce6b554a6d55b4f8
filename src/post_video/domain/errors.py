"""Pipeline error taxonomy."""

from typing import Optional


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ValidationError(PipelineError):
    """Required input missing or empty; raised before any record is created."""


class GenerationError(PipelineError):
    """A pipeline stage failed. Always terminal for the current run."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"[{self.stage}] {message}"
        return message


class TransientProviderError(PipelineError):
    """Transport-level failure of a provider call. Eligible for bounded retry."""


class PartialAssetError(PipelineError):
    """Non-fatal degradation; the caller substitutes a fallback and continues."""


class InvalidTransitionError(PipelineError):
    """A record was asked to leave a terminal state or skip a state."""

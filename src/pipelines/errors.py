"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations

from schemas.internal.steps import FailureReason


class PipelineError(Exception):
    """Base class for pipeline errors."""


class StepExecutionError(PipelineError):
    """Raised inside the step executor; converted to a StepFailure before leaving it."""

    reason: FailureReason = "invalid_response"


class TransportError(StepExecutionError):
    """Language-model collaborator unreachable, timed out, or rejected the call."""

    reason: FailureReason = "transport_error"


class ParseError(StepExecutionError):
    """Collaborator response did not contain an extractable JSON object."""

    reason: FailureReason = "parse_error"


class ResponseValidationError(StepExecutionError):
    """Parsed JSON was missing required fields or held unusable values."""

    reason: FailureReason = "invalid_response"


class DependencyError(PipelineError):
    """A step was started or retried before its dependencies succeeded."""


class NotFoundError(PipelineError):
    """Unknown run id, step name, or modification index."""


class StepStateError(PipelineError):
    """Operation not allowed in the step's or run's current status."""


__all__ = [
    "DependencyError",
    "NotFoundError",
    "ParseError",
    "PipelineError",
    "ResponseValidationError",
    "StepExecutionError",
    "StepStateError",
    "TransportError",
]

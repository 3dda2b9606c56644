"""Step executor and prompt builders."""

from .executor import StepContext, StepExecutor, StepResult

__all__ = ["StepContext", "StepExecutor", "StepResult"]

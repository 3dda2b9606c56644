"""Step executor: one language-model call per pipeline step."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ValidationError

from lexreview.llm import (
    ChatModelLike,
    LLMConfig,
    build_messages,
    init_chat_model_from_config,
    response_text,
)
from lexreview.telemetry import traceable_if_enabled
from pipelines.errors import (
    DependencyError,
    ParseError,
    ResponseValidationError,
    StepExecutionError,
    TransportError,
)
from pipelines.steps.prompts import (
    SYSTEM_PROMPTS,
    build_legal_analysis_prompt,
    build_optimization_prompt,
    build_translation_prompt,
)
from rendering.insertion import apply_modifications
from schemas.internal.legal import (
    FROM_MODEL_RESPONSE,
    LegalAnalysisResult,
    OptimizationResult,
    TranslationResult,
)
from schemas.internal.steps import StepFailure, StepName
from utils.llm_json import extract_json_object
from utils.text import preview

logger = logging.getLogger(__name__)

StepResult = Union[LegalAnalysisResult, OptimizationResult, TranslationResult]

_RESULT_TYPES: dict[StepName, type[BaseModel]] = {
    "legal_analysis": LegalAnalysisResult,
    "optimization": OptimizationResult,
    "translation": TranslationResult,
}


@dataclass(frozen=True)
class StepContext:
    """Inputs available to a step: the document plus results of earlier steps."""

    document_text: str
    primary_framework: str
    secondary_framework: Optional[str] = None
    target_language: str = "en"
    legal_analysis: Optional[LegalAnalysisResult] = None
    optimization: Optional[OptimizationResult] = None


class StepExecutor:
    """Invoke the language model for a single step and validate its reply.

    ``execute`` returns either a validated result model or a ``StepFailure``;
    transport, parse and validation problems never escape as exceptions.
    """

    def __init__(
        self,
        llm: ChatModelLike | None = None,
        *,
        llm_config: LLMConfig | None = None,
        llm_factory: Callable[[LLMConfig], ChatModelLike] = init_chat_model_from_config,
    ) -> None:
        if llm is None and llm_config is None:
            raise ValueError("LLM config is required when llm is not provided.")
        self._llm = llm
        self._llm_config = llm_config
        self._llm_factory = llm_factory
        self._llm_lock = threading.Lock()

    def execute(self, step: StepName, context: StepContext) -> StepResult | StepFailure:
        system_prompt, user_prompt = self.build_prompts(step, context)
        started = perf_counter()
        try:
            text = self._invoke(step, system_prompt, user_prompt)
            payload = _parse(text)
            result = _validate(step, payload, context)
        except StepExecutionError as exc:
            elapsed_ms = int((perf_counter() - started) * 1000)
            logger.warning(
                "Step %s failed after %d ms (%s): %s", step, elapsed_ms, exc.reason, exc
            )
            return StepFailure(reason=exc.reason, message=str(exc))
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.info("Step %s succeeded in %d ms", step, elapsed_ms)
        return result

    def build_prompts(self, step: StepName, context: StepContext) -> tuple[str, str]:
        if step == "legal_analysis":
            user_prompt = build_legal_analysis_prompt(
                context.document_text,
                context.primary_framework,
                context.secondary_framework,
            )
        elif step == "optimization":
            if context.legal_analysis is None:
                raise DependencyError("optimization requires a legal_analysis result")
            user_prompt = build_optimization_prompt(
                context.document_text,
                context.legal_analysis,
                context.primary_framework,
                context.secondary_framework,
            )
        elif step == "translation":
            if context.optimization is None:
                raise DependencyError("translation requires an optimization result")
            optimization = context.optimization
            optimized_text = optimization.optimized_text
            if not optimized_text.strip():
                optimized_text = apply_modifications(
                    context.document_text, optimization.modifications
                )
            user_prompt = build_translation_prompt(
                optimized_text,
                optimization.modifications,
                context.target_language,
                context.legal_analysis,
                context.primary_framework,
                context.secondary_framework,
            )
        else:
            raise ValueError(f"Unknown step: {step}")
        return SYSTEM_PROMPTS[step], user_prompt

    @traceable_if_enabled(name="lexreview_step_call", run_type="llm")
    def _invoke(self, step: StepName, system_prompt: str, user_prompt: str) -> str:
        try:
            model = self._model()
            response = model.invoke(build_messages(system_prompt, user_prompt))
        except Exception as exc:
            raise TransportError(f"{step} call failed: {type(exc).__name__}: {exc}") from exc
        return response_text(response)

    def _model(self) -> ChatModelLike:
        with self._llm_lock:
            if self._llm is None:
                assert self._llm_config is not None
                self._llm = self._llm_factory(self._llm_config)
            return self._llm


def _parse(text: str) -> dict[str, Any]:
    try:
        return extract_json_object(text, prefer_code_block=True)
    except ValueError as exc:
        raise ParseError(f"{exc}: {preview(text, 200)!r}") from exc


def _validate(step: StepName, payload: dict[str, Any], context: StepContext) -> StepResult:
    if step == "translation" and not payload.get("target_language"):
        payload = {**payload, "target_language": context.target_language}
    try:
        return _RESULT_TYPES[step].model_validate(  # type: ignore[return-value]
            payload, context={FROM_MODEL_RESPONSE: True}
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ResponseValidationError(f"{step} response failed validation: {problems}") from exc


__all__ = ["StepContext", "StepExecutor", "StepResult"]

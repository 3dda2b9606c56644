"""Pipeline orchestrator: step ordering, status tracking and retries."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Iterator, Optional

from legal.frameworks import validate_frameworks, validate_language
from persistence.contracts import RunStore
from pipelines.errors import DependencyError, NotFoundError, StepStateError
from pipelines.steps.executor import StepContext, StepExecutor, StepResult
from pipelines.stream import progress_percent
from schemas.internal.events import (
    CompleteEvent,
    ProgressEvent,
    ProgressUpdate,
    StepResultEvent,
)
from schemas.internal.legal import LegalAnalysisResult, OptimizationResult
from schemas.internal.runs import AnalysisRun
from schemas.internal.steps import (
    STEP_DEPENDENCIES,
    STEP_LABELS,
    STEP_ORDER,
    StepFailure,
    StepName,
    StepStatus,
    is_transition_allowed,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisOrchestrator:
    """Drive runs through legal_analysis -> optimization -> translation.

    Every status change is written to the run store before the next event is
    yielded, so a consumer that stops reading loses nothing already computed.
    Retries of the same step on the same run are serialized.
    """

    def __init__(
        self,
        executor: StepExecutor,
        store: RunStore,
        *,
        default_primary_framework: str = "china",
        default_target_language: str = "en",
    ) -> None:
        self._executor = executor
        self._store = store
        self._default_primary = default_primary_framework
        self._default_language = default_target_language
        self._guard = threading.Lock()
        self._run_locks: dict[str, threading.RLock] = {}
        self._step_locks: dict[tuple[str, StepName], threading.Lock] = {}
        self._inflight: Counter[str] = Counter()

    def start(
        self,
        document_text: str,
        primary_framework: Optional[str] = None,
        secondary_framework: Optional[str] = None,
        *,
        target_language: Optional[str] = None,
        document_name: Optional[str] = None,
    ) -> AnalysisRun:
        """Create and persist a run with every step pending."""

        if not document_text or not document_text.strip():
            raise ValueError("document_text must not be blank")
        primary, secondary = validate_frameworks(
            primary_framework or self._default_primary, secondary_framework
        )
        language = validate_language(target_language or self._default_language)
        run = AnalysisRun.new(
            document_text=document_text,
            primary_framework=primary,
            secondary_framework=secondary,
            target_language=language,
            document_name=document_name,
        )
        self._store.save_run(run)
        logger.info("Created run %s (%s/%s)", run.id, primary, secondary or "-")
        return run

    def run(
        self,
        document_text: str,
        primary_framework: Optional[str] = None,
        secondary_framework: Optional[str] = None,
        *,
        target_language: Optional[str] = None,
        document_name: Optional[str] = None,
    ) -> Iterator[ProgressEvent]:
        run = self.start(
            document_text,
            primary_framework,
            secondary_framework,
            target_language=target_language,
            document_name=document_name,
        )
        yield from self.stream(run.id)

    def stream(self, run_id: str) -> Iterator[ProgressEvent]:
        """Execute every runnable pending step of an existing run, in order.

        Ends with a ``complete`` event, including when a step failed. An
        unexpected exception ends the iterator without one.
        """

        run = self.get_run(run_id)
        self._enter(run_id)
        try:
            yield ProgressUpdate(
                progress=progress_percent(run.completed_steps, run.total_steps),
                message="开始分析",
                run_id=run.id,
            )
            while True:
                step = run.next_runnable_step()
                if step is None:
                    break
                label = STEP_LABELS[step]
                yield ProgressUpdate(
                    progress=progress_percent(run.completed_steps, run.total_steps),
                    message=f"正在进行{label}...",
                )
                run, outcome = self._execute(run_id, step, entering="running")
                if isinstance(outcome, StepFailure):
                    yield ProgressUpdate(
                        progress=progress_percent(run.completed_steps, run.total_steps),
                        message=f"{label}失败：{outcome.message}",
                    )
                    continue
                yield StepResultEvent(step=step, result=run.step(step).result or {})
                yield ProgressUpdate(
                    progress=progress_percent(run.completed_steps, run.total_steps),
                    message=f"{label}完成",
                )
            yield CompleteEvent(result=run, summary=run.summary())
        finally:
            self._leave(run_id)

    def resume(self, run_id: str) -> Iterator[ProgressEvent]:
        """Continue a run whose downstream steps are still pending."""
        return self.stream(run_id)

    def retry_step(self, run_id: str, step: str) -> StepResult | StepFailure:
        """Re-execute a failed step whose dependencies have succeeded.

        Raises ``NotFoundError``, ``DependencyError`` or ``StepStateError`` when
        the retry is not allowed. Downstream steps are left untouched.
        """

        step_name = _require_step(step)
        self._check_retry(self.get_run(run_id), step_name)
        self._enter(run_id)
        try:
            with self._step_lock(run_id, step_name):
                # State may have changed while waiting for the lock.
                self._check_retry(self.get_run(run_id), step_name)
                _, outcome = self._execute(run_id, step_name, entering="retrying")
                return outcome
        finally:
            self._leave(run_id)

    @property
    def store(self) -> RunStore:
        return self._store

    def get_run(self, run_id: str) -> AnalysisRun:
        run = self._store.get_run(run_id)
        if run is None:
            raise NotFoundError(f"Unknown run: {run_id}")
        return run

    def delete_run(self, run_id: str) -> None:
        with self._guard:
            if self._inflight[run_id] > 0:
                raise StepStateError(f"Run {run_id} has work in flight and cannot be deleted.")
            deleted = self._store.delete_run(run_id)
            self._drop_locks(run_id)
        if not deleted:
            raise NotFoundError(f"Unknown run: {run_id}")
        logger.info("Deleted run %s", run_id)

    def _execute(
        self, run_id: str, step: StepName, *, entering: StepStatus
    ) -> tuple[AnalysisRun, StepResult | StepFailure]:
        run = self._transition(run_id, step, entering)
        try:
            outcome = self._executor.execute(step, _context_for(run))
        except Exception as exc:
            logger.exception("Step %s of run %s raised unexpectedly", step, run_id)
            self._transition(
                run_id,
                step,
                "failed",
                error=StepFailure(reason="invalid_response", message=f"internal error: {exc}"),
            )
            raise
        if isinstance(outcome, StepFailure):
            run = self._transition(run_id, step, "failed", error=outcome)
        else:
            run = self._transition(
                run_id, step, "succeeded", result=outcome.model_dump(mode="json")
            )
        return run, outcome

    def _transition(
        self,
        run_id: str,
        step: StepName,
        target: StepStatus,
        *,
        result: Optional[dict] = None,
        error: Optional[StepFailure] = None,
    ) -> AnalysisRun:
        with self._run_lock(run_id):
            run = self.get_run(run_id)
            state = run.step(step)
            if not is_transition_allowed(state.status, target):
                raise StepStateError(
                    f"Step {step} cannot move from {state.status} to {target}."
                )
            if target in ("running", "retrying"):
                if not run.dependencies_met(step):
                    raise DependencyError(f"Dependencies of {step} have not succeeded.")
                state.attempts += 1
                state.started_at = _now_iso()
                state.finished_at = None
            else:
                state.finished_at = _now_iso()
            if target == "succeeded":
                # Replaces the previous result as a whole.
                state.result = result
                state.error = None
            elif target == "failed":
                state.error = error
            state.status = target
            state.history.append(target)
            run.touch()
            self._store.save_run(run)
        logger.debug("Run %s: %s -> %s", run_id, step, target)
        return run

    def _check_retry(self, run: AnalysisRun, step: StepName) -> None:
        if not run.dependencies_met(step):
            missing = [dep for dep in STEP_DEPENDENCIES[step] if run.step(dep).status != "succeeded"]
            logger.info("Rejected retry of %s on %s; waiting on %s", step, run.id, missing)
            raise DependencyError(f"Cannot retry {step}: {', '.join(missing)} not succeeded.")
        status = run.step(step).status
        if status != "failed":
            logger.info("Rejected retry of %s on %s; status is %s", step, run.id, status)
            raise StepStateError(f"Cannot retry {step}: status is {status}, not failed.")

    def _run_lock(self, run_id: str) -> threading.RLock:
        with self._guard:
            return self._run_locks.setdefault(run_id, threading.RLock())

    def _step_lock(self, run_id: str, step: StepName) -> threading.Lock:
        with self._guard:
            return self._step_locks.setdefault((run_id, step), threading.Lock())

    def _enter(self, run_id: str) -> None:
        with self._guard:
            self._inflight[run_id] += 1

    def _leave(self, run_id: str) -> None:
        with self._guard:
            self._inflight[run_id] -= 1
            if self._inflight[run_id] <= 0:
                del self._inflight[run_id]
                self._drop_locks(run_id)

    def _drop_locks(self, run_id: str) -> None:
        # Caller holds _guard. Locks are recreated on demand by the next caller.
        self._run_locks.pop(run_id, None)
        for key in [key for key in self._step_locks if key[0] == run_id]:
            del self._step_locks[key]


def _require_step(step: str) -> StepName:
    if step not in STEP_ORDER:
        raise NotFoundError(f"Unknown step: {step}")
    return step  # type: ignore[return-value]


def _context_for(run: AnalysisRun) -> StepContext:
    legal = run.result_of("legal_analysis")
    optimization = run.result_of("optimization")
    return StepContext(
        document_text=run.document_text,
        primary_framework=run.primary_framework,
        secondary_framework=run.secondary_framework,
        target_language=run.target_language,
        legal_analysis=LegalAnalysisResult.model_validate(legal) if legal else None,
        optimization=OptimizationResult.model_validate(optimization) if optimization else None,
    )


__all__ = ["AnalysisOrchestrator"]

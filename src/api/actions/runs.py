from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import ValidationError

from pipelines.errors import DependencyError, NotFoundError, PipelineError, StepStateError
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.stream import NDJSON_MEDIA_TYPE, iter_ndjson
from rendering.comparison import comparison_for_run, resolve_modification
from reporting.html import render_html
from schemas.internal.legal import ModificationRecord
from schemas.internal.runs import AnalysisRun
from schemas.internal.steps import StepFailure
from schemas.requests import AnalyzeRequest, RetryRequest
from schemas.responses import ComparisonResponse, HistoryResponse, RetryResponse
from services.analysis import get_orchestrator, list_history
from services.io import TEXT_SUFFIXES, decode_document

router = APIRouter()

Orchestrator = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]


def _http_error(exc: PipelineError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (DependencyError, StepStateError)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _stream_response(orchestrator: AnalysisOrchestrator, run: AnalysisRun) -> StreamingResponse:
    return StreamingResponse(
        iter_ndjson(orchestrator.stream(run.id)),
        media_type=NDJSON_MEDIA_TYPE,
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable proxy buffering (Nginx)
            "X-Run-Id": run.id,
        },
    )


async def _start(orchestrator: AnalysisOrchestrator, request: AnalyzeRequest) -> AnalysisRun:
    try:
        return await run_in_threadpool(
            orchestrator.start,
            request.document_text,
            request.primary_framework,
            request.secondary_framework,
            target_language=request.target_language,
            document_name=request.document_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/runs", tags=["Pipeline"])
async def start_run(request: AnalyzeRequest, orchestrator: Orchestrator):
    """
    Start an analysis run and stream its progress as newline-delimited JSON.
    """
    run = await _start(orchestrator, request)
    return _stream_response(orchestrator, run)


@router.post("/runs/upload", tags=["Pipeline"])
async def start_run_from_upload(
    orchestrator: Orchestrator,
    file: UploadFile = File(...),
    primary_framework: Annotated[Optional[str], Form()] = None,
    secondary_framework: Annotated[Optional[str], Form()] = None,
    target_language: Annotated[Optional[str], Form()] = None,
):
    """
    Start a run from an uploaded plain-text document.
    """
    filename = file.filename or ""
    if not any(filename.lower().endswith(suffix) for suffix in TEXT_SUFFIXES):
        raise HTTPException(status_code=400, detail="Only plain-text documents are supported.")
    content = await file.read()
    try:
        text = decode_document(content)
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Could not decode document: {e}")
    try:
        request = AnalyzeRequest(
            document_text=text,
            document_name=filename,
            primary_framework=primary_framework,
            secondary_framework=secondary_framework,
            target_language=target_language,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid input: {e}")
    run = await _start(orchestrator, request)
    return _stream_response(orchestrator, run)


@router.get("/runs", response_model=HistoryResponse, tags=["Runs"])
async def run_history(orchestrator: Orchestrator, limit: Optional[int] = None):
    """List recent runs, newest first."""
    return await run_in_threadpool(list_history, orchestrator.store, limit=limit)


@router.get("/runs/{run_id}", response_model=AnalysisRun, tags=["Runs"])
async def get_run(run_id: str, orchestrator: Orchestrator):
    """Fetch a run snapshot with step results and status counters."""
    try:
        return await run_in_threadpool(orchestrator.get_run, run_id)
    except PipelineError as e:
        raise _http_error(e)


@router.delete("/runs/{run_id}", status_code=204, tags=["Runs"])
async def delete_run(run_id: str, orchestrator: Orchestrator):
    try:
        await run_in_threadpool(orchestrator.delete_run, run_id)
    except PipelineError as e:
        raise _http_error(e)


@router.post("/runs/{run_id}/retry", response_model=RetryResponse, tags=["Pipeline"])
async def retry_step(run_id: str, request: RetryRequest, orchestrator: Orchestrator):
    """
    Retry a failed step. A retry that fails again is reported with success=false;
    a retry that is not allowed is rejected with 404/409.
    """
    try:
        outcome = await run_in_threadpool(orchestrator.retry_step, run_id, request.step)
    except PipelineError as e:
        raise _http_error(e)
    if isinstance(outcome, StepFailure):
        return RetryResponse(success=False, error=outcome)
    return RetryResponse(success=True, result=outcome.model_dump(mode="json"))


@router.post("/runs/{run_id}/resume", tags=["Pipeline"])
async def resume_run(run_id: str, orchestrator: Orchestrator):
    """Run the pending steps whose dependencies have succeeded, streaming progress."""
    try:
        run = await run_in_threadpool(orchestrator.get_run, run_id)
    except PipelineError as e:
        raise _http_error(e)
    return _stream_response(orchestrator, run)


@router.get("/runs/{run_id}/comparison", response_model=ComparisonResponse, tags=["Rendering"])
async def run_comparison(run_id: str, orchestrator: Orchestrator):
    """Highlighted original/optimized comparison for a run."""
    try:
        run = await run_in_threadpool(orchestrator.get_run, run_id)
        comparison = comparison_for_run(run)
    except PipelineError as e:
        raise _http_error(e)
    return ComparisonResponse(
        mode=comparison.mode,
        before_html=str(comparison.before_html),
        after_html=str(comparison.after_html),
        modifications=list(comparison.modifications),
    )


@router.get(
    "/runs/{run_id}/modifications/{index}",
    response_model=ModificationRecord,
    tags=["Rendering"],
)
async def run_modification(run_id: str, index: int, orchestrator: Orchestrator):
    """Resolve a clicked marker back to its modification record."""
    try:
        run = await run_in_threadpool(orchestrator.get_run, run_id)
        return resolve_modification(comparison_for_run(run), index)
    except PipelineError as e:
        raise _http_error(e)


@router.get("/runs/{run_id}/report", response_class=HTMLResponse, tags=["Rendering"])
async def run_report(run_id: str, orchestrator: Orchestrator):
    try:
        run = await run_in_threadpool(orchestrator.get_run, run_id)
    except PipelineError as e:
        raise _http_error(e)
    return HTMLResponse(await run_in_threadpool(render_html, run))

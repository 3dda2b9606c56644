from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from pipelines.orchestrator import AnalysisOrchestrator
from rendering.diff import highlight_differences, render_diff
from schemas.requests import DiffRequest
from schemas.responses import DiffResponse, StatisticsResponse
from services.analysis import collect_statistics, get_orchestrator

router = APIRouter()


@router.post("/diff", response_model=DiffResponse, tags=["Rendering"])
async def diff_texts(request: DiffRequest):
    """Line-then-word diff of two texts, as HTML fragments."""
    before_html, after_html = highlight_differences(request.original, request.optimized)
    return DiffResponse(
        before_html=str(before_html),
        after_html=str(after_html),
        html=str(render_diff(request.original, request.optimized)),
    )


@router.get("/statistics", response_model=StatisticsResponse, tags=["Runs"])
async def statistics(
    orchestrator: Annotated[AnalysisOrchestrator, Depends(get_orchestrator)],
    window_days: int | None = None,
):
    """Aggregate scores, risk levels and daily run counts."""
    return await run_in_threadpool(collect_statistics, orchestrator.store, window_days=window_days)

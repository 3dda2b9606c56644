"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pipelines.errors import NotFoundError, PipelineError
from schemas.internal.events import CompleteEvent, ProgressEvent, ProgressUpdate, StepResultEvent
from schemas.internal.runs import AnalysisRun
from schemas.internal.steps import STEP_LABELS

console = Console()
err_console = Console(stderr=True)


def configure_logging(*, verbose: bool = False) -> None:
    """Route log records through a Rich handler on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


def build_cli_orchestrator(persist_dir: Path | None = None):
    from services.analysis import build_orchestrator, build_store, get_orchestrator

    if persist_dir is None:
        return get_orchestrator()
    return build_orchestrator(store=build_store(persistence_dir=persist_dir))


@contextmanager
def pipeline_errors() -> Iterator[None]:
    """Turn pipeline errors into a red message and a non-zero exit code."""
    try:
        yield
    except NotFoundError as exc:
        err_console.print(f"[red]未找到:[/] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    except (PipelineError, ValueError) as exc:
        err_console.print(f"[red]错误:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def print_event(event: ProgressEvent) -> None:
    if isinstance(event, ProgressUpdate):
        prefix = f"[dim]{event.run_id}[/] " if event.run_id else ""
        console.print(f"{prefix}[cyan]{event.progress:>3}%[/] {escape(event.message)}")
    elif isinstance(event, StepResultEvent):
        console.print(f"  [green]✓[/] {STEP_LABELS[event.step]}")
    elif isinstance(event, CompleteEvent):
        print_run_summary(event.result)


def print_run_summary(run: AnalysisRun) -> None:
    table = Table(title=f"运行 {run.id}", show_lines=False)
    table.add_column("步骤", style="cyan")
    table.add_column("状态")
    table.add_column("尝试次数", justify="right")
    table.add_column("错误")
    for state in run.steps:
        status = state.status
        if status == "succeeded":
            status = f"[green]{status}[/]"
        elif status == "failed":
            status = f"[red]{status}[/]"
        error = escape(f"{state.error.reason}: {state.error.message}") if state.error else ""
        table.add_row(STEP_LABELS[state.name], status, str(state.attempts), error)
    console.print(table)

    summary = run.summary()
    if summary.compliance_score is not None:
        console.print(
            f"合规评分: [bold]{summary.compliance_score}[/]  风险等级: {summary.risk_level or '-'}"
        )
    console.print(
        f"完成 {summary.completed_steps}/{run.total_steps}，失败 {summary.failed_steps}"
    )
    if summary.can_retry:
        console.print(f"[yellow]可重试:[/] {', '.join(summary.can_retry)}")


__all__ = [
    "build_cli_orchestrator",
    "configure_logging",
    "console",
    "emit_json",
    "err_console",
    "pipeline_errors",
    "print_event",
    "print_run_summary",
]

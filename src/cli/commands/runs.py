"""Stored run inspection commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from cli.common import (
    build_cli_orchestrator,
    console,
    emit_json,
    pipeline_errors,
    print_run_summary,
)
from services.analysis import collect_statistics, list_history


app = typer.Typer(
    help="运行记录查看与管理",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
    options_metavar="[选项]",
    subcommand_metavar="命令 [参数]",
)

_PERSIST_HELP = "持久化根目录（默认使用配置项）"


@app.command("show", help="查看单次运行的状态与结果")
def show_run(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    json_out: bool = typer.Option(False, "--json", help="输出 JSON"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help=_PERSIST_HELP),
) -> None:
    with pipeline_errors():
        run = build_cli_orchestrator(persist_dir).get_run(run_id)
    if json_out:
        emit_json(run.model_dump(mode="json"))
        return
    print_run_summary(run)


@app.command("history", help="列出最近的运行")
def history(
    limit: int | None = typer.Option(None, "--limit", min=1, help="返回条数（默认使用配置项）"),
    json_out: bool = typer.Option(False, "--json", help="输出 JSON"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help=_PERSIST_HELP),
) -> None:
    response = list_history(build_cli_orchestrator(persist_dir).store, limit=limit)
    if json_out:
        emit_json(response.model_dump(mode="json"))
        return
    if not response.items:
        typer.echo("暂无运行记录")
        return
    table = Table(title="运行历史")
    table.add_column("运行ID", style="cyan")
    table.add_column("文档")
    table.add_column("法域")
    table.add_column("评分", justify="right")
    table.add_column("风险")
    table.add_column("状态")
    table.add_column("创建时间")
    for item in response.items:
        frameworks = item.primary_framework
        if item.secondary_framework:
            frameworks += f" / {item.secondary_framework}"
        table.add_row(
            item.id,
            item.document_name or "-",
            frameworks,
            "-" if item.compliance_score is None else str(item.compliance_score),
            item.risk_level or "-",
            item.status,
            item.created_at,
        )
    console.print(table)


@app.command("stats", help="汇总运行统计")
def stats(
    window_days: int | None = typer.Option(
        None, "--days", min=1, help="近期统计天数（默认使用配置项）"
    ),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help=_PERSIST_HELP),
) -> None:
    response = collect_statistics(
        build_cli_orchestrator(persist_dir).store, window_days=window_days
    )
    emit_json(response.model_dump(mode="json"))


@app.command("delete", help="删除运行记录")
def delete(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help=_PERSIST_HELP),
) -> None:
    with pipeline_errors():
        build_cli_orchestrator(persist_dir).delete_run(run_id)
    typer.echo(f"已删除: {run_id}")


__all__ = ["app"]

"""Comparison, diff and report rendering commands."""

from __future__ import annotations

from pathlib import Path

import typer

from cli.common import build_cli_orchestrator, emit_json, pipeline_errors
from rendering.comparison import comparison_for_run
from rendering.diff import highlight_differences, render_diff
from services.io import read_document


app = typer.Typer(
    help="对比、差异与报告渲染",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
    options_metavar="[选项]",
    subcommand_metavar="命令 [参数]",
)


@app.command("compare", help="输出运行的原文/优化文高亮对比")
def compare(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help="持久化根目录"),
) -> None:
    with pipeline_errors():
        comparison = comparison_for_run(build_cli_orchestrator(persist_dir).get_run(run_id))
    emit_json(
        {
            "mode": comparison.mode,
            "before_html": str(comparison.before_html),
            "after_html": str(comparison.after_html),
            "modifications": [
                record.model_dump(mode="json") for record in comparison.modifications
            ],
        }
    )


@app.command("diff", help="对两个文本文件做逐行逐词差异")
def diff(
    original: Path = typer.Argument(..., exists=True, dir_okay=False, metavar="原文"),
    optimized: Path = typer.Argument(..., exists=True, dir_okay=False, metavar="修改后"),
    inline: bool = typer.Option(False, "--inline", help="只输出合并的行内差异 HTML"),
) -> None:
    with pipeline_errors():
        text_a = read_document(original)
        text_b = read_document(optimized)
    if inline:
        typer.echo(str(render_diff(text_a, text_b)))
        return
    before_html, after_html = highlight_differences(text_a, text_b)
    emit_json({"before_html": str(before_html), "after_html": str(after_html)})


@app.command("report", help="生成单次运行的 HTML 报告")
def report(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    output: Path = typer.Option(Path("report.html"), "--output", "-o", help="输出 HTML 路径"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help="持久化根目录"),
) -> None:
    from reporting.html import generate_html_report

    with pipeline_errors():
        run = build_cli_orchestrator(persist_dir).get_run(run_id)
    generate_html_report(run, output)
    typer.echo(f"已写入: {output}")


__all__ = ["app"]

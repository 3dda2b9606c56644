"""Typer CLI entrypoint for contract review runs."""

from __future__ import annotations

from importlib import import_module
from pathlib import Path

import typer

from lexreview import __version__
from cli.common import (
    build_cli_orchestrator,
    configure_logging,
    emit_json,
    pipeline_errors,
    print_event,
    print_run_summary,
)

_SUBCOMMAND_SPECS: list[tuple[str, str]] = [
    ("runs", "cli.commands.runs"),
    ("render", "cli.commands.render"),
    ("config", "cli.commands.config"),
]

app = typer.Typer(
    help="合同审查命令行工具\n\n对合同文本依次执行法律合规分析、合同优化与合同翻译\n",
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    add_completion=False,
    options_metavar="[选项]",
    subcommand_metavar="命令 [参数]",
)


@app.callback()
def root(
    ctx: typer.Context,
    version_flag: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="输出版本信息",
    ),
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="输出调试日志",
    ),
) -> None:
    if version_flag:
        typer.echo(__version__)
        raise typer.Exit()
    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command(help="对合同文本运行完整审查流程")
def run(
    document: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        metavar="文档路径",
    ),
    primary: str | None = typer.Option(None, "--primary", "-p", help="主法域代码（默认使用配置项）"),
    secondary: str | None = typer.Option(None, "--secondary", "-s", help="对比法域代码"),
    language: str | None = typer.Option(None, "--language", "-l", help="翻译目标语言代码"),
    json_out: bool = typer.Option(False, "--json", help="以 NDJSON 输出进度事件"),
    persist_dir: Path | None = typer.Option(
        None,
        "--persist-dir",
        help="持久化根目录（默认使用配置项）",
    ),
) -> None:
    from pipelines.stream import encode_event
    from services.io import read_document

    with pipeline_errors():
        text = read_document(document)
        orchestrator = build_cli_orchestrator(persist_dir)
        events = orchestrator.run(
            text,
            primary,
            secondary,
            target_language=language,
            document_name=document.name,
        )
        for event in events:
            if json_out:
                typer.echo(encode_event(event), nl=False)
            else:
                print_event(event)


@app.command(help="重试运行中失败的步骤")
def retry(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    step: str = typer.Argument(..., metavar="步骤", help="legal_analysis|optimization|translation"),
    json_out: bool = typer.Option(False, "--json", help="输出 JSON"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help="持久化根目录"),
) -> None:
    from schemas.internal.steps import StepFailure
    from schemas.responses import RetryResponse

    with pipeline_errors():
        orchestrator = build_cli_orchestrator(persist_dir)
        outcome = orchestrator.retry_step(run_id, step)
        run_state = orchestrator.get_run(run_id)

    if isinstance(outcome, StepFailure):
        response = RetryResponse(success=False, error=outcome)
    else:
        response = RetryResponse(success=True, result=outcome.model_dump(mode="json"))
    if json_out:
        emit_json(response.model_dump(mode="json"))
    else:
        print_run_summary(run_state)
    if not response.success:
        raise typer.Exit(code=1)


@app.command(help="继续执行运行中尚未开始的步骤")
def resume(
    run_id: str = typer.Argument(..., metavar="运行ID"),
    json_out: bool = typer.Option(False, "--json", help="以 NDJSON 输出进度事件"),
    persist_dir: Path | None = typer.Option(None, "--persist-dir", help="持久化根目录"),
) -> None:
    from pipelines.stream import encode_event

    with pipeline_errors():
        orchestrator = build_cli_orchestrator(persist_dir)
        for event in orchestrator.resume(run_id):
            if json_out:
                typer.echo(encode_event(event), nl=False)
            else:
                print_event(event)


@app.command(help="启动 HTTP API 服务")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="监听地址"),
    port: int = typer.Option(8000, "--port", help="监听端口"),
    reload: bool = typer.Option(False, "--reload", help="代码变更时自动重载"),
) -> None:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


def _register_subcommands() -> None:
    for name, module_path in _SUBCOMMAND_SPECS:
        module = import_module(module_path)
        app.add_typer(module.app, name=name)


_register_subcommands()


def main() -> None:
    app()


__all__ = ["app", "main"]

"""Configuration inspection commands."""

from __future__ import annotations

from typing import Any

import typer

from cli.common import emit_json
from core.config import Settings, get_settings
from legal.frameworks import FRAMEWORKS, LANGUAGES


app = typer.Typer(
    help="配置查看",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
    options_metavar="[选项]",
    subcommand_metavar="命令 [参数]",
)


@app.command("show", help="查看当前生效配置（密钥已隐藏）")
def show_config(
    json_out: bool = typer.Option(True, "--json/--no-json", help="输出 JSON"),
) -> None:
    payload = get_settings().redacted_dump()
    if json_out:
        emit_json(payload)
        return
    for key, value in payload.items():
        typer.echo(f"{key}={value}")


@app.command("diff", help="显示与默认值的差异")
def diff_config() -> None:
    defaults = _settings_defaults()
    diff: dict[str, dict[str, Any]] = {}
    for key, value in get_settings().redacted_dump().items():
        default = defaults.get(key)
        if value != default:
            diff[key] = {"value": value, "default": default}
    emit_json(diff)


@app.command("frameworks", help="列出支持的法域与翻译语言")
def list_frameworks() -> None:
    emit_json({"frameworks": FRAMEWORKS, "languages": LANGUAGES})


def _settings_defaults() -> dict[str, Any]:
    return {name: field.default for name, field in Settings.model_fields.items()}


__all__ = ["app"]

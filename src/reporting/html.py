"""HTML report renderer for analysis runs."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from reporting.context import build_report_context
from reporting.utils import format_timestamp, get_risk_color, get_risk_label, get_step_label
from schemas.internal.runs import AnalysisRun

_TEMPLATE_DIR = Path(__file__).parent / "templates"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["risk_color"] = get_risk_color
    env.filters["risk_label"] = get_risk_label
    env.filters["step_label"] = get_step_label
    env.filters["format_timestamp"] = format_timestamp
    return env


def render_html(run: AnalysisRun) -> str:
    template = _environment().get_template("report.html.j2")
    return template.render(**build_report_context(run))


def generate_html_report(run: AnalysisRun, output_path: Path) -> None:
    """Write the comparison report for ``run`` to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_html(run), encoding="utf-8")


__all__ = ["generate_html_report", "render_html"]

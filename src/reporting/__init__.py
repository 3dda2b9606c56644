"""Reporting module exports."""

from reporting.context import build_report_context
from reporting.html import generate_html_report, render_html

__all__ = ["build_report_context", "generate_html_report", "render_html"]

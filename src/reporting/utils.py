"""Utility functions for report generation."""

from datetime import datetime

from legal.frameworks import framework_name, language_name


def get_risk_label(risk: str | None) -> str:
    """Get human-readable label for risk level."""
    mapping = {
        "low": "低风险",
        "medium": "中等风险",
        "high": "高风险",
        "critical": "严重风险",
    }
    return mapping.get(risk or "", "未评估")


def get_risk_color(risk: str | None) -> str:
    """Get color code for risk level (for HTML/CSS)."""
    mapping = {
        "low": "#28a745",  # Green
        "medium": "#ffc107",  # Yellow
        "high": "#fd7e14",  # Orange
        "critical": "#dc3545",  # Red
    }
    return mapping.get(risk or "", "#6c757d")  # Gray for unknown


def get_step_label(status: str) -> str:
    mapping = {
        "pending": "等待中",
        "running": "进行中",
        "retrying": "重试中",
        "succeeded": "已完成",
        "failed": "失败",
    }
    return mapping.get(status, status)


def format_timestamp(value: str | None) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def describe_frameworks(primary: str, secondary: str | None) -> str:
    if secondary:
        return f"{framework_name(primary)} + {framework_name(secondary)}"
    return framework_name(primary)


__all__ = [
    "describe_frameworks",
    "format_timestamp",
    "get_risk_color",
    "get_risk_label",
    "get_step_label",
    "language_name",
]

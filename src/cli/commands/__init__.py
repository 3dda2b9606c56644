"""CLI command groups."""

__all__ = ["config", "render", "runs"]

from . import config, render, runs

"""Schema package for external and internal contracts."""

from .requests import AnalyzeRequest, DiffRequest, RetryRequest
from .responses import (
    ComparisonResponse,
    DiffResponse,
    HistoryResponse,
    RetryResponse,
    StatisticsResponse,
)

__all__ = [
    "AnalyzeRequest",
    "ComparisonResponse",
    "DiffRequest",
    "DiffResponse",
    "HistoryResponse",
    "RetryRequest",
    "RetryResponse",
    "StatisticsResponse",
]

# tests/conftest.py
from __future__ import annotations

import json
import threading
from typing import Any, Iterable

import pytest

from persistence.memory_store import MemoryStore
from persistence.sqlite_store import SqliteStore
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.steps.executor import StepExecutor


CONTRACT_TEXT = (
    "房屋租赁合同\n"
    "第一条 甲方将房屋出租给乙方。\n"
    "第五条 乙方应按时付款。\n"
    "第六条 违约责任由双方协商。\n"
    "第七条 争议解决。\n"
    "日期：2024年1月1日"
)

LEGAL_ANALYSIS_PAYLOAD: dict[str, Any] = {
    "compliance_score": 82,
    "risk_level": "medium",
    "risk_factors": ["违约责任约定不明确"],
    "suggestions": [{"suggestion": "明确违约金比例", "legal_basis": "《民法典》第585条"}],
    "matched_articles": [
        {"article": "《民法典》第585条", "description": "违约金", "compliance": False},
        {"article": "《民法典》第703条", "description": "租赁合同定义", "compliance": True},
    ],
    "analysis_summary": "合同总体合规，违约条款需细化。",
}

OPTIMIZATION_PAYLOAD: dict[str, Any] = {
    "optimized_text": CONTRACT_TEXT.replace("乙方应按时付款。", "乙方应于每月5日前付款。"),
    "modifications": [
        {
            "type": "modify",
            "original_text": "乙方应按时付款。",
            "optimized_text": "乙方应于每月5日前付款。",
            "legal_basis": "《民法典》第721条",
            "reason": "明确付款期限",
        }
    ],
    "summary": "明确了付款期限。",
}

TRANSLATION_PAYLOAD: dict[str, Any] = {
    "target_language": "en",
    "translated_text": "Lease Agreement\nParty B shall pay before the 5th of each month.",
    "translated_modifications": [
        {
            "original_text": "乙方应于每月5日前付款。",
            "translated_text": "Party B shall pay before the 5th of each month.",
        }
    ],
    "translated_legal_basis": "Article 721 of the Civil Code",
}


def as_reply(payload: dict[str, Any]) -> str:
    return "分析结果如下：\n```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"


class DummyResponse:
    def __init__(self, content: str) -> None:
        self.content = content


class DummyLLM:
    """Replays queued replies; an Exception in the queue is raised instead."""

    def __init__(self, replies: Iterable[str | Exception] = ()) -> None:
        self._replies = list(replies)
        self._lock = threading.Lock()
        self.invocations = 0
        self.prompts: list[Any] = []

    def queue(self, *replies: str | Exception) -> None:
        with self._lock:
            self._replies.extend(replies)

    def invoke(self, messages: Any) -> DummyResponse:
        with self._lock:
            self.invocations += 1
            self.prompts.append(messages)
            if not self._replies:
                raise RuntimeError("no reply queued")
            reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return DummyResponse(reply)


class BlockingLLM(DummyLLM):
    """Holds every call until ``release`` is set."""

    def __init__(self, replies: Iterable[str | Exception] = ()) -> None:
        super().__init__(replies)
        self.entered = threading.Event()
        self.release = threading.Event()

    def invoke(self, messages: Any) -> DummyResponse:
        self.entered.set()
        self.release.wait(timeout=5)
        return super().invoke(messages)


def happy_replies() -> list[str]:
    return [
        as_reply(LEGAL_ANALYSIS_PAYLOAD),
        as_reply(OPTIMIZATION_PAYLOAD),
        as_reply(TRANSLATION_PAYLOAD),
    ]


@pytest.fixture
def dummy_llm() -> DummyLLM:
    return DummyLLM()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteStore:
    return SqliteStore(tmp_path / "metadata.sqlite")


@pytest.fixture
def orchestrator(dummy_llm: DummyLLM, memory_store: MemoryStore) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(StepExecutor(dummy_llm), memory_store)

"""LLM factory helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from core.config import Settings

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage


class ChatModelLike(Protocol):
    def invoke(self, input: object) -> Any: ...


@dataclass(frozen=True)
class LLMConfig:
    model: str
    model_provider: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.1
    timeout: float | None = None
    max_tokens: int | None = 4000
    max_retries: int | None = 2


def llm_config_from_settings(settings: Settings) -> LLMConfig:
    return LLMConfig(
        model=settings.llm_model,
        model_provider=settings.llm_model_provider,
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        max_tokens=settings.llm_max_tokens,
        max_retries=settings.llm_max_retries,
    )


def init_chat_model_from_config(config: LLMConfig) -> ChatModelLike:
    """Return a LangChain chat model honoring provider:model syntax."""
    from langchain.chat_models import init_chat_model

    kwargs: dict[str, Any] = {}
    if config.model_provider:
        kwargs["model_provider"] = config.model_provider
    if config.base_url:
        kwargs["base_url"] = config.base_url
    if config.api_key:
        kwargs["api_key"] = config.api_key
    if config.temperature is not None:
        kwargs["temperature"] = config.temperature
    if config.timeout is not None:
        kwargs["timeout"] = config.timeout
    if config.max_tokens is not None:
        kwargs["max_tokens"] = config.max_tokens
    if config.max_retries is not None:
        kwargs["max_retries"] = config.max_retries

    return init_chat_model(config.model, **kwargs)


def build_messages(system_prompt: str, user_prompt: str) -> "list[BaseMessage]":
    from langchain_core.messages import HumanMessage, SystemMessage

    return [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]


def response_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Content blocks from multi-part responses.
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(str(block.get("text", "")))
            else:
                parts.append(str(block))
        return "".join(parts)
    if not isinstance(content, str):
        return str(content)
    return content


__all__ = [
    "ChatModelLike",
    "LLMConfig",
    "build_messages",
    "init_chat_model_from_config",
    "llm_config_from_settings",
    "response_text",
]

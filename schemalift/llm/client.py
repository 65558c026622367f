"""Chat-model factory shared by the two language-model steps."""

from __future__ import annotations

from typing import Any

from schemalift.config import settings


def get_chat_model() -> Any:
    """Return a configured LangChain chat model based on ``settings``.

    Temperature is pinned to 0 for both providers.
    """
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=settings.openai_chat_model, temperature=0)

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        base_url=settings.ollama_base_url,
        temperature=0,
        format="json",
    )


def response_text(response: Any) -> str:
    """Return the text content of a chat-model reply."""
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Content blocks: keep the text parts only.
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block) for block in content
        )
    return str(content)

"""Centralised settings for SchemaLift.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_path(name: str) -> Path | None:
    value = os.environ.get(name, "").strip()
    return Path(value) if value else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Language model collaborators (fact surfacing + semantic mapping)
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )

    # ------------------------------------------------------------------
    # Page fetch
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    render_js: bool = field(
        default_factory=lambda: os.environ.get("RENDER_JS", "false").lower() in ("1", "true", "yes")
    )

    # ------------------------------------------------------------------
    # Cleaning / prompting
    # ------------------------------------------------------------------
    visible_text_policy: str = field(
        default_factory=lambda: os.environ.get("VISIBLE_TEXT_POLICY", "exhaustive")
    )
    max_prompt_links: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PROMPT_LINKS", "30"))
    )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    artifacts_dir: Path | None = field(
        default_factory=lambda: _optional_path("SCHEMALIFT_ARTIFACTS_DIR")
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )


# Module-level singleton, import this everywhere:
#   from schemalift.config import settings
settings = Settings()

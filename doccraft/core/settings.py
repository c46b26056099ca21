from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(slots=True)
class Settings:
    """Runtime configuration collected from the environment."""

    openai_api_key: str | None = None
    analysis_model: str = "gpt-4o"
    assist_model: str = "gpt-4o-mini"
    call_timeout: float = 60.0
    advisory_timeout: float = 20.0
    recommend_debounce: float = 0.8
    history_path: Path | None = None
    github_token: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        history_path = os.getenv("DOCCRAFT_HISTORY_PATH")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            analysis_model=os.getenv("DOCCRAFT_ANALYSIS_MODEL") or "gpt-4o",
            assist_model=os.getenv("DOCCRAFT_ASSIST_MODEL") or "gpt-4o-mini",
            call_timeout=_float_env("DOCCRAFT_CALL_TIMEOUT", 60.0),
            advisory_timeout=_float_env("DOCCRAFT_ADVISORY_TIMEOUT", 20.0),
            recommend_debounce=_float_env("DOCCRAFT_RECOMMEND_DEBOUNCE", 0.8),
            history_path=Path(history_path).expanduser() if history_path else None,
            github_token=os.getenv("GITHUB_TOKEN") or None,
            log_level=(os.getenv("DOCCRAFT_LOG_LEVEL") or "INFO").upper(),
        )

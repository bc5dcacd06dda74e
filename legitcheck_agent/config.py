from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the project root .env (so GEMINI_API_KEY works in local dev)
_HERE = Path(__file__).resolve()
_PROJECT_ROOT = _HERE.parents[1]


def load_env() -> None:
    load_dotenv(_PROJECT_ROOT / ".env", override=False)


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    llm_timeout_s: float = 30.0

    serpapi_key: str | None = None
    reputation_results: int = 20
    # Scam-hit thresholds: hits > negative_above -> negative, hits <= positive_at_most -> positive.
    # The defaults are lenient so big brands with many review threads don't read as negative.
    reputation_negative_above: int = 12
    reputation_positive_at_most: int = 3

    scrape_timeout_s: float = 15.0
    domain_timeout_s: float = 10.0
    reputation_timeout_s: float = 15.0

    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    def __post_init__(self) -> None:
        if self.reputation_positive_at_most < 0 or self.reputation_negative_above < 0:
            raise ValueError("Reputation thresholds must be non-negative.")
        if self.reputation_positive_at_most >= self.reputation_negative_above:
            raise ValueError(
                "REPUTATION_POSITIVE_AT_MOST must be lower than REPUTATION_NEGATIVE_ABOVE."
            )

    @classmethod
    def from_env(cls) -> "Settings":
        origins_raw = os.getenv("LEGITCHECK_CORS_ORIGINS", "").strip()
        origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip())
        return cls(
            gemini_api_key=_env_str("GEMINI_API_KEY"),
            gemini_model=_env_str("GEMINI_MODEL") or cls.gemini_model,
            llm_timeout_s=_env_float("LLM_TIMEOUT_S", cls.llm_timeout_s),
            serpapi_key=_env_str("SERPAPI_KEY"),
            reputation_results=_env_int("REPUTATION_RESULTS", cls.reputation_results),
            reputation_negative_above=_env_int("REPUTATION_NEGATIVE_ABOVE", cls.reputation_negative_above),
            reputation_positive_at_most=_env_int("REPUTATION_POSITIVE_AT_MOST", cls.reputation_positive_at_most),
            scrape_timeout_s=_env_float("SCRAPE_TIMEOUT_S", cls.scrape_timeout_s),
            domain_timeout_s=_env_float("DOMAIN_TIMEOUT_S", cls.domain_timeout_s),
            reputation_timeout_s=_env_float("REPUTATION_TIMEOUT_S", cls.reputation_timeout_s),
            cors_origins=origins or cls.cors_origins,
        )

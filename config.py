from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv
load_dotenv()

DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "openai/gpt-4o-mini"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get an environment variable as a stripped string. Unset or blank values return the default."""
    raw = (os.getenv(name) or "").strip()
    return raw or default

def _env_float(name: str, default: float) -> float:
    """Get an environment variable as a float. If invalid or missing, return the default."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default

def _env_int(name: str, default: int) -> int:
    """Get an environment variable as an integer. If invalid or missing, return the default."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default

def _env_choice(name: str, choices: Tuple[str, ...], default: str) -> str:
    """Get an upper-cased environment variable restricted to choices. Anything else returns the default."""
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in choices else default

@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    api_url: str = DEFAULT_OPENROUTER_URL
    model: str = DEFAULT_MODEL
    referer: Optional[str] = None
    title: Optional[str] = None
    # Deadline for a single live oracle call, in seconds
    oracle_timeout: float = 20.0
    log_level: str = "INFO"
    log_file: Optional[str] = None
    max_sessions: int = 1000
    base_url: str = "http://127.0.0.1:8000"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=_env_str("OPENROUTER_API_KEY"),
            api_url=_env_str("OPENROUTER_URL", DEFAULT_OPENROUTER_URL),
            model=_env_str("OPENROUTER_MODEL", DEFAULT_MODEL),
            referer=_env_str("APP_REFERER"),
            title=_env_str("APP_TITLE", "Region Guesser"),
            oracle_timeout=_env_float("ORACLE_TIMEOUT", 20.0),
            log_level=_env_choice("LOG_LEVEL", LOG_LEVELS, "INFO"),
            log_file=_env_str("LOG_FILE"),
            max_sessions=_env_int("MAX_SESSIONS", 1000),
            base_url=_env_str("REGIONS_BASE_URL", "http://127.0.0.1:8000"),
        )

def is_backend_available(settings: Settings) -> bool:
    """True when a credential for the live generative backend is configured."""
    return bool(settings.api_key)

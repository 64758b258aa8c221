# llm_env_utils.py
import os
from typing import Any, Dict

from dotenv import load_dotenv

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_CONCEPTS_MIN = 3
DEFAULT_CONCEPTS_MAX = 7


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_llm_env() -> Dict[str, Any]:
    """
    Loads environment variables from .env and returns the derivation service settings.
    The API key may be empty; the client decides whether that is fatal.
    """
    load_dotenv()  # ensure .env is loaded

    api_key = (
        os.getenv("DERIVATION_API_KEY")
        or os.getenv("CLAUDE_API_KEY")
        or os.getenv("ANTHROPIC_API_KEY")
        or ""
    )

    return {
        "API_KEY": api_key.strip(),
        "MODEL": os.getenv("DERIVATION_MODEL") or os.getenv("CLAUDE_MODEL") or DEFAULT_MODEL,
        "BASE_URL": (os.getenv("DERIVATION_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        "MAX_TOKENS": _int_env("DERIVATION_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        "TIMEOUT_SECONDS": _int_env("DERIVATION_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        "CONCEPTS_MIN": _int_env("CONCEPTS_MIN", DEFAULT_CONCEPTS_MIN),
        "CONCEPTS_MAX": _int_env("CONCEPTS_MAX", DEFAULT_CONCEPTS_MAX),
    }

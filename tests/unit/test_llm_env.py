import pytest

from llms import llm_env_utils
from llms.llm_env_utils import load_llm_env

pytestmark = pytest.mark.unit

_VARS = (
    "DERIVATION_API_KEY",
    "CLAUDE_API_KEY",
    "ANTHROPIC_API_KEY",
    "DERIVATION_MODEL",
    "CLAUDE_MODEL",
    "DERIVATION_BASE_URL",
    "DERIVATION_MAX_TOKENS",
    "DERIVATION_TIMEOUT_SECONDS",
    "CONCEPTS_MIN",
    "CONCEPTS_MAX",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(llm_env_utils, "load_dotenv", lambda *args, **kwargs: False)


def test_defaults():
    cfg = load_llm_env()
    assert cfg["API_KEY"] == ""
    assert cfg["MODEL"] == "claude-sonnet-4-5-20250929"
    assert cfg["BASE_URL"] == "https://api.anthropic.com"
    assert cfg["MAX_TOKENS"] == 4096
    assert cfg["TIMEOUT_SECONDS"] == 60
    assert (cfg["CONCEPTS_MIN"], cfg["CONCEPTS_MAX"]) == (3, 7)


def test_key_precedence(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic")
    assert load_llm_env()["API_KEY"] == "anthropic"
    monkeypatch.setenv("CLAUDE_API_KEY", "claude")
    assert load_llm_env()["API_KEY"] == "claude"
    monkeypatch.setenv("DERIVATION_API_KEY", " derivation ")
    assert load_llm_env()["API_KEY"] == "derivation"


def test_overrides_and_invalid_integers(monkeypatch):
    monkeypatch.setenv("DERIVATION_BASE_URL", "http://localhost:9000/v1/")
    monkeypatch.setenv("DERIVATION_MAX_TOKENS", "1024")
    monkeypatch.setenv("CONCEPTS_MIN", "two")
    monkeypatch.setenv("CONCEPTS_MAX", " 5 ")
    cfg = load_llm_env()
    assert cfg["BASE_URL"] == "http://localhost:9000/v1"
    assert cfg["MAX_TOKENS"] == 1024
    assert cfg["CONCEPTS_MIN"] == 3
    assert cfg["CONCEPTS_MAX"] == 5

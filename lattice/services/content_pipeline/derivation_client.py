"""
Retrying client for the Anthropic messages API.

Built on the ``anthropic`` SDK with its own retries disabled; this client
retries rate limits and connection failures itself so that backoff waits
can be interrupted by a cancel event.
"""

from __future__ import annotations

import json
import re
import threading
import time
from typing import Any, Callable, Dict, Optional

import anthropic
import httpx

from llms.llm_env_utils import load_llm_env
from services.content_pipeline.constants import (
    ANTHROPIC_VERSION,
    CONNECTION_BACKOFF_SECONDS,
    MAX_ATTEMPTS,
    RATE_LIMIT_BACKOFF_SECONDS,
)
from services.content_pipeline.errors import (
    AuthMissingError,
    DerivationTimeoutError,
    EmptyResponseError,
    MalformedDerivationJSONError,
    PipelineCancelledError,
    RateLimitedError,
    ServiceError,
)
from utils.logger import get_logger, log_event

logger = get_logger(__name__)

_JSON_FENCE_RE = re.compile(r"```json(.*?)```", re.DOTALL)
_GENERIC_FENCE_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)
_VERSION_SUFFIX_RE = re.compile(r"/v1$")


class DerivationClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        cfg = load_llm_env()
        self.api_key = api_key or cfg.get("API_KEY")
        if not self.api_key:
            raise AuthMissingError("Derivation API key is not configured (set DERIVATION_API_KEY)")
        self.model = model or cfg["MODEL"]
        # The SDK appends /v1/messages itself.
        self.base_url = _VERSION_SUFFIX_RE.sub("", (base_url or cfg["BASE_URL"]).rstrip("/"))
        self.max_tokens = max_tokens or cfg["MAX_TOKENS"]
        self.timeout_seconds = timeout_seconds or cfg["TIMEOUT_SECONDS"]
        self._client = anthropic.Anthropic(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            max_retries=0,
            default_headers={"anthropic-version": ANTHROPIC_VERSION},
            http_client=http_client,
        )
        self._sleep = sleep or time.sleep

    def ask(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Send one user message and return the text of the first content block."""
        params: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            params["system"] = system
        if temperature is not None:
            params["temperature"] = temperature

        message = self._create_message(params, cancel_event)
        if isinstance(message, str):
            # The SDK hands back raw text when the body is not JSON.
            raise ServiceError("Failed to parse derivation response: body is not JSON", status_code=200)
        content = getattr(message, "content", None)
        if not isinstance(content, list) or not content:
            raise EmptyResponseError("Derivation service returned no content")
        text = getattr(content[0], "text", None)
        if not isinstance(text, str) or not text:
            raise EmptyResponseError("Derivation service returned an empty text block")

        usage = getattr(message, "usage", None)
        log_event(
            logger,
            "derivation_usage",
            model=getattr(message, "model", None) or self.model,
            input_tokens=getattr(usage, "input_tokens", None),
            output_tokens=getattr(usage, "output_tokens", None),
            stop_reason=getattr(message, "stop_reason", None),
        )
        return text

    def ask_for_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        return parse_json_reply(self.ask(prompt, system=system, cancel_event=cancel_event))

    def _create_message(self, params: Dict[str, Any], cancel_event: Optional[threading.Event]) -> Any:
        for attempt in range(MAX_ATTEMPTS):
            last_attempt = attempt == MAX_ATTEMPTS - 1
            try:
                return self._client.messages.create(**params)
            except anthropic.RateLimitError as exc:
                if last_attempt:
                    raise RateLimitedError("Derivation service rate limit exceeded") from exc
                delay = (attempt + 1) * RATE_LIMIT_BACKOFF_SECONDS
                logger.warning("Derivation service rate limited (attempt %s), retrying in %ss", attempt + 1, delay)
            except anthropic.APIConnectionError as exc:
                # Includes APITimeoutError.
                if last_attempt:
                    raise DerivationTimeoutError(f"Derivation request failed: {exc}") from exc
                delay = (attempt + 1) * CONNECTION_BACKOFF_SECONDS
                logger.warning("Derivation request failed (attempt %s), retrying in %ss: %s", attempt + 1, delay, exc)
            except anthropic.APIStatusError as exc:
                raise ServiceError(_error_message(exc), status_code=exc.status_code) from exc
            except (anthropic.APIError, ValueError) as exc:
                raise ServiceError(f"Failed to parse derivation response: {exc}", status_code=200) from exc
            self._wait(delay, cancel_event)

    def _wait(self, seconds: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._sleep(seconds)
            return
        if cancel_event.wait(seconds):
            raise PipelineCancelledError("Cancelled while waiting to retry derivation request")


def _error_message(exc: anthropic.APIStatusError) -> str:
    body = exc.body
    # Depending on the SDK version the body is the whole envelope or its "error" member.
    error = body.get("error", body) if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"Derivation service error: {error['message']}"
    return f"Derivation service error: status {exc.status_code}, body: {exc.response.text}"


def parse_json_reply(text: str) -> Any:
    """
    Parse JSON from a model reply, tolerating markdown code fences.

    When a ```json fence is present only its content is parsed; otherwise a bare
    ``` fence is used with its language line skipped; otherwise the whole text.
    """
    candidate = text or ""
    match = _JSON_FENCE_RE.search(candidate)
    if match is None and "```json" not in candidate:
        match = _GENERIC_FENCE_RE.search(candidate)
    if match is not None:
        candidate = match.group(1)
    try:
        return json.loads(candidate)
    except ValueError as exc:
        raise MalformedDerivationJSONError(f"Failed to parse JSON response: {exc}") from exc

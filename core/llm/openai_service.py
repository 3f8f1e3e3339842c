"""
OpenAI Pricing Oracle - pricing recommendations via the OpenAI API.

Works against OpenAI or any OpenAI-compatible endpoint (Ollama, vLLM)
using JSON Schema response format. Every call is bounded: the client has
a per-request timeout and the retry loop stops on attempt count or total
elapsed time, whichever comes first.
"""
from typing import Dict, Any, List, Optional
import json
import logging
import re

import openai
from openai import OpenAI
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)
from tenacity import RetryCallState

from core.exceptions import OracleUnavailableError, OracleResponseError
from core.llm.interfaces import PricingOracle
from core.llm.pricing_prompt import PricingPrompt
from core.llm.schema_models import PRICING_RESPONSE_SCHEMA
from core.llm.system_prompts import PRICING_REPAIR_MESSAGE

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a warning before each retry sleep."""
    exc = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    if isinstance(exc, openai.RateLimitError):
        logger.warning(
            "Pricing oracle rate limited (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )
    else:
        logger.warning(
            "Transient pricing oracle error (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )


def _parse_reset_duration(value: str) -> float:
    """Parse a reset-timer header value like '1s', '500ms', '1m30s' into seconds."""
    total = 0.0
    for amount, unit in re.findall(r"([\d.]+)(ms|s|m|h)", value):
        a = float(amount)
        if unit == "ms":
            total += a / 1000
        elif unit == "s":
            total += a
        elif unit == "m":
            total += a * 60
        else:  # h
            total += a * 3600
    return total


def _wait_from_rate_limit_headers(exc: openai.RateLimitError) -> float:
    """Longest declared wait from retry-after / x-ratelimit-reset-* headers, or 0.0."""
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return 0.0

    candidates: List[float] = []
    retry_after = headers.get("retry-after", "")
    if retry_after:
        try:
            candidates.append(float(retry_after))
        except ValueError:
            logger.debug(f"Ignoring non-numeric retry-after header: {retry_after!r}")

    for header in ("x-ratelimit-reset-requests", "x-ratelimit-reset-tokens"):
        parsed = _parse_reset_duration(headers.get(header, "") or "")
        if parsed > 0:
            candidates.append(parsed)

    return max(candidates) if candidates else 0.0


def _wait_respecting_retry_after(retry_state: RetryCallState) -> float:
    """Honour server-declared rate-limit timers, else capped exponential backoff."""
    exc = retry_state.outcome.exception()
    if isinstance(exc, openai.RateLimitError):
        wait = _wait_from_rate_limit_headers(exc)
        if wait > 0:
            return min(wait, 30)

    exp = wait_exponential(multiplier=1, min=1, max=10)
    return exp(retry_state)


def _oracle_retrying(max_attempts: int, timeout_seconds: float) -> Retrying:
    """Return a tenacity Retrying bounded by attempts and total elapsed time."""
    return Retrying(
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        wait=_wait_respecting_retry_after,
        stop=stop_after_attempt(max(1, max_attempts)) | stop_after_delay(timeout_seconds),
        before_sleep=_log_retry,
        reraise=True,
    )


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} in response")


def _decode(content: Optional[str]) -> Dict[str, Any]:
    """Decode a JSON object, tolerating markdown fences around it."""
    if not content:
        raise ValueError("empty response")
    text = content.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*|\s*```$", "", text)
    data = json.loads(text, parse_constant=_reject_constant)
    if not isinstance(data, dict):
        raise ValueError(f"expected JSON object, got {type(data).__name__}")
    return data


class OpenAIPricingOracle(PricingOracle):
    """
    OpenAI pricing oracle.

    One repair round is attempted when the model returns unparseable JSON.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3
    ):
        client_kwargs: Dict[str, Any] = {'timeout': timeout_seconds, 'max_retries': 0}
        if api_key:
            client_kwargs['api_key'] = api_key
        elif base_url:
            # Self-hosted OpenAI-compatible servers (Ollama, vLLM) accept any key
            client_kwargs['api_key'] = 'local'
        if base_url:
            client_kwargs['base_url'] = base_url

        self.client = OpenAI(**client_kwargs)
        self.model_name = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        retrying = _oracle_retrying(self.max_attempts, self.timeout_seconds)
        try:
            for attempt in retrying:
                with attempt:
                    response = self.client.chat.completions.create(
                        model=self.model_name,
                        messages=messages,
                        temperature=self.temperature,
                        response_format={
                            "type": "json_schema",
                            "json_schema": PRICING_RESPONSE_SCHEMA,
                        },
                    )
        except openai.OpenAIError as e:
            raise OracleUnavailableError(f"Pricing oracle call failed: {e}") from e

        try:
            return response.choices[0].message.content
        except (IndexError, AttributeError) as e:
            raise OracleResponseError(f"Pricing oracle returned no message: {e}") from e

    def request_pricing(self, prompt: PricingPrompt) -> Dict[str, Any]:
        messages = prompt.messages()
        content = self._complete(messages)
        try:
            return _decode(content)
        except ValueError as e:
            logger.warning(f"Pricing oracle returned invalid JSON ({e}); requesting repair")

        repair = messages + [
            {"role": "assistant", "content": content or ""},
            {"role": "user", "content": PRICING_REPAIR_MESSAGE},
        ]
        content = self._complete(repair)
        try:
            return _decode(content)
        except ValueError as e:
            raise OracleResponseError(f"Pricing oracle returned invalid JSON after repair: {e}") from e

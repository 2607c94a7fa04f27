"""Resilient Anthropic Client — AsyncAnthropic with a bounded retry loop for tag generation.

Invariants:
    - Rate limits (429), overload (529), 5xx and connection drops are retried up to max_retries
    - Timeouts and other 4xx fail immediately (a slow tag call should not block a save twice)
    - Every failure leaves as AnthropicAPIError (core/errors.py) with an api_error_type

Design Decisions:
    - One classification step (_classify) decides retryable vs fatal, the loop only sleeps
    - Retry-After honoured when the API sends it, otherwise exponential backoff with jitter
"""

import asyncio
import random
import logging

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from app.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

_OVERLOADED_STATUS = 529


def _classify(e: Exception) -> tuple[str, bool]:
    """Map an SDK exception to (api_error_type, retryable)."""
    if isinstance(e, RateLimitError):
        return "rate_limit", True
    if isinstance(e, APITimeoutError):
        return "timeout", False
    if isinstance(e, (APIConnectionError, InternalServerError)):
        return "connection_error", True
    if isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS:
        return "overloaded", True
    if isinstance(e, APIError):
        return "client_error", False
    return "unknown", False


def _retry_after_ms(e: Exception) -> int | None:
    response = getattr(e, "response", None)
    if response is None:
        return None
    raw = response.headers.get("retry-after")
    if not raw:
        return None
    try:
        return int(float(raw) * 1000)
    except ValueError:
        return None


class ResilientAnthropicClient:
    """Thin wrapper: create_message() with retries and error mapping."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 10_000,
        timeout_seconds: int = 30,
    ):
        # the SDK's own retries would multiply with ours
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        tools: list | None = None,
        tool_choice: dict | None = None,
        context: ErrorContext | None = None,
    ):
        request: dict = {
            "model": model, "max_tokens": max_tokens,
            "system": system, "messages": messages,
        }
        if tools:
            request["tools"] = tools
        if tool_choice:
            request["tool_choice"] = tool_choice

        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(**request)
            except Exception as e:
                api_error_type, retryable = _classify(e)
                retry_after = _retry_after_ms(e)
                if not retryable or attempt >= self.max_retries:
                    if api_error_type == "unknown":
                        logger.error(f"Unexpected Anthropic error: {e}", exc_info=True)
                    raise AnthropicAPIError(
                        str(e) or api_error_type, api_error_type,
                        retry_after_ms=retry_after, context=context,
                    ) from e
                delay = retry_after or self._backoff(attempt)
                logger.warning(
                    f"Anthropic {api_error_type}, retrying in {delay}ms",
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            usage = getattr(response, "usage", None)
            logger.info(
                "Anthropic API success",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": getattr(usage, "input_tokens", None),
                    "output_tokens": getattr(usage, "output_tokens", None),
                },
            )
            return response

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

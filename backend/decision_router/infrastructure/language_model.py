"""Language Model: Anthropic-backed completion with timeout, cancellation and error mapping.

Invariants:
    - complete() never raises for SDK or transport failures; every failure is a
      CompletionResult with an LLMErrorType
    - One attempt per call: no retries, no backoff
    - The per-call timeout bounds the whole request; a set cancel event aborts it
    - An empty or placeholder API key makes the model unavailable and no
      request is ever sent

Design Decisions:
    - Wrapper over raw client: isolates SDK error types from the services layer
    - APITimeoutError is checked before APIConnectionError (it is a subclass)
    - HTTP 529 (overloaded) is detected via status code on APIStatusError
"""

import asyncio
import logging

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from decision_router.config import Settings
from decision_router.core.domain_types import LLMErrorType
from decision_router.core.protocols import CompletionResult, LanguageModel

logger = logging.getLogger(__name__)

_OVERLOADED_STATUS = 529
_PLACEHOLDER_MARKERS = ("your-", "mock-", "placeholder")


def _is_overloaded(e: APIError) -> bool:
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


def is_usable_api_key(api_key: str | None) -> bool:
    if not api_key or not api_key.strip():
        return False
    lowered = api_key.lower()
    return not any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


class AnthropicLanguageModel:
    """LanguageModel implementation over anthropic.AsyncAnthropic messages."""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 30.0,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._available = is_usable_api_key(api_key)
        self.client = client
        if self.client is None and self._available:
            # The SDK retries by default; this layer makes exactly one attempt
            self.client = anthropic.AsyncAnthropic(
                api_key=api_key, timeout=timeout_seconds, max_retries=0,
            )

    def is_available(self) -> bool:
        return self._available and self.client is not None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        timeout_seconds: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CompletionResult:
        if not self.is_available():
            return CompletionResult.failure(
                LLMErrorType.UNAVAILABLE, "Language model is not configured",
            )
        if cancel is not None and cancel.is_set():
            return CompletionResult.failure(
                LLMErrorType.CANCELLED, "Request cancelled before sending",
            )

        timeout = timeout_seconds or self.timeout_seconds
        request = asyncio.ensure_future(self._create(
            system_prompt, user_prompt, max_tokens, temperature,
        ))
        waiters: set[asyncio.Future] = {request}
        cancel_waiter = None
        if cancel is not None:
            cancel_waiter = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            if not request.done():
                request.cancel()

        if request not in done:
            if cancel_waiter is not None and cancel_waiter in done:
                logger.info("LLM request cancelled by caller")
                return CompletionResult.failure(
                    LLMErrorType.CANCELLED, "Request cancelled",
                )
            logger.warning(f"LLM request timed out after {timeout}s")
            return CompletionResult.failure(
                LLMErrorType.TIMEOUT, f"Request timed out after {timeout}s",
            )

        return self._to_result(request)

    async def _create(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float,
    ):
        return await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )

    def _to_result(self, request: asyncio.Future) -> CompletionResult:
        """Map the finished request onto a CompletionResult."""
        try:
            response = request.result()
        except RateLimitError as e:
            return self._failure(LLMErrorType.RATE_LIMIT, f"Rate limit exceeded: {e}")
        except APITimeoutError:
            return self._failure(LLMErrorType.TIMEOUT, "API timeout")
        except (APIConnectionError, InternalServerError) as e:
            return self._failure(LLMErrorType.CONNECTION_ERROR, f"Connection error: {e}")
        except APIError as e:
            if _is_overloaded(e):
                return self._failure(
                    LLMErrorType.CONNECTION_ERROR, "Anthropic API overloaded (529)",
                )
            return self._failure(LLMErrorType.CLIENT_ERROR, str(e))
        except Exception as e:
            logger.error(f"Unexpected Anthropic error: {e}", exc_info=True)
            return CompletionResult.failure(LLMErrorType.UNKNOWN, str(e))

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            return self._failure(LLMErrorType.EMPTY_RESPONSE, "Empty response")

        usage = getattr(response, "usage", None)
        logger.info(
            "Anthropic API success",
            extra={
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )
        return CompletionResult.ok(text)

    def _failure(self, error_type: LLMErrorType, message: str) -> CompletionResult:
        logger.warning(
            f"LLM request failed: {message}", extra={"error_type": error_type.value},
        )
        return CompletionResult.failure(error_type, message)


class DisabledLanguageModel:
    """LanguageModel that is never available. Every call fails fast."""

    def is_available(self) -> bool:
        return False

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        timeout_seconds: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CompletionResult:
        return CompletionResult.failure(
            LLMErrorType.UNAVAILABLE, "Language model is disabled",
        )


def build_language_model(settings: Settings) -> LanguageModel:
    """Anthropic model when a usable key is configured, else the disabled model."""
    if not is_usable_api_key(settings.anthropic_api_key):
        logger.info("No usable Anthropic API key configured; LLM features disabled")
        return DisabledLanguageModel()
    return AnthropicLanguageModel(
        api_key=settings.anthropic_api_key,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )

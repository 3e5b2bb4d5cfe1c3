"""Boundary Protocols: contracts between the routing core and the shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - The language model is reached only through the LanguageModel protocol
    - complete() never raises for transport failures; it returns a failure result

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Result-typed completion: every consumer keeps a deterministic branch
      instead of wrapping calls in try/except
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from decision_router.core.domain_types import LLMErrorType
from decision_router.core.spec_model import DecisionSpec


@dataclass(frozen=True)
class CompletionResult:
    success: bool
    text: str = ""
    error_message: str | None = None
    error_type: LLMErrorType | None = None

    @classmethod
    def ok(cls, text: str) -> "CompletionResult":
        return cls(success=True, text=text)

    @classmethod
    def failure(cls, error_type: LLMErrorType, message: str) -> "CompletionResult":
        return cls(success=False, error_message=message, error_type=error_type)


class LanguageModel(Protocol):
    """Contract for the text-completion capability, implemented by infrastructure."""

    def is_available(self) -> bool: ...

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        timeout_seconds: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CompletionResult: ...


class SpecSource(Protocol):
    """Contract for loading the active decision spec, implemented by infrastructure."""

    async def load_active_spec(self, spec_id: str) -> DecisionSpec: ...

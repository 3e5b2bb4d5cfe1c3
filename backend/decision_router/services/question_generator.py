"""Question Generator: friendly question text for the trait being asked.

Invariants:
    - With the LLM available the question is rephrased under the spec's safety
      preamble; otherwise, or on any failure, the trait's own text is used
    - Retries (retry_attempt > 0) ask for format clarity; the fallback adds
      "Let me try again." and format hints
    - Options are presented in declaration order, at most MAX_PRESENTED_OPTIONS
"""

import asyncio
import logging
from dataclasses import dataclass, field

from decision_router.core.protocols import LanguageModel
from decision_router.core.question_presentation import (
    fallback_question, is_negative_option, option_id, presented_options,
)
from decision_router.core.spec_model import DecisionSpec, TraitDefinition
from decision_router.services.llm_prompts import (
    QUESTION_SAMPLING, build_question_system_prompt, build_question_user_prompt,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresentedOption:
    id: str
    label: str
    is_negative: bool


@dataclass(frozen=True)
class GeneratedQuestion:
    text: str
    options: list[PresentedOption] = field(default_factory=list)


class QuestionGenerator:
    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def generate_question(
        self,
        spec: DecisionSpec,
        trait: TraitDefinition,
        retry_attempt: int = 0,
        cancel: asyncio.Event | None = None,
    ) -> str:
        # Clarifier questions were just written by the LLM; ask them verbatim
        if trait.ephemeral or not self.llm.is_available():
            return fallback_question(trait, retry_attempt)

        reply = await self.llm.complete(
            build_question_system_prompt(spec, trait, retry_attempt),
            build_question_user_prompt(trait, retry_attempt),
            max_tokens=QUESTION_SAMPLING.max_tokens,
            temperature=QUESTION_SAMPLING.temperature,
            cancel=cancel,
        )
        if not reply.success or not reply.text.strip():
            logger.warning(
                f"Question generation failed for '{trait.key}': {reply.error_message}",
                extra={"trait_key": trait.key},
            )
            return fallback_question(trait, retry_attempt)

        return reply.text.strip()

    async def generate_with_options(
        self,
        spec: DecisionSpec,
        trait: TraitDefinition,
        retry_attempt: int = 0,
        cancel: asyncio.Event | None = None,
    ) -> GeneratedQuestion:
        text = await self.generate_question(spec, trait, retry_attempt, cancel)
        options = [
            PresentedOption(
                id=option_id(label), label=label, is_negative=is_negative_option(label),
            )
            for label in presented_options(trait)
        ]
        return GeneratedQuestion(text=text, options=options)

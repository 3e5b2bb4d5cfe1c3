"""Tie Resolver: picks one outcome when several rule conjunctions hold at once.

Invariants:
    - Resolution order: tie mode off -> clarifier answer judged by the LLM ->
      predefined pseudo-traits -> generated LLM clarifier -> first tied outcome
    - Every path that needs the LLM has a deterministic fallthrough; with the
      LLM disabled no call is attempted
    - Generated clarifier traits are ephemeral and keyed llm_clarifier_<hex>
    - At most tie_strategy.clarifier_max_attempts clarifiers are generated
      per session (counted from llm_clarifier_* keys already answered)
    - The LLM winner is chosen only among outcomes left after pseudo-trait
      narrowing
    - The known-trait map is never mutated

Design Decisions:
    - Answered pseudo-trait option mappings narrow the tie before any LLM
      step; once every pseudo-trait is answered a single survivor completes
      without the LLM
"""

import asyncio
import logging
import uuid

from decision_router.core.domain_types import (
    CLARIFIER_KEY_PREFIX, AnswerType, ResolutionMode, TieMode,
)
from decision_router.core.llm_replies import parse_clarifier_reply, parse_winner_reply
from decision_router.core.protocols import LanguageModel
from decision_router.core.results import EvaluationResult
from decision_router.core.spec_model import (
    DecisionSpec, OutcomeDefinition, TraitDefinition,
)
from decision_router.core.trait_selection import (
    clarifier_answers, count_clarifiers, find_next_pseudo_trait,
    narrow_tied_outcomes,
)
from decision_router.core.trait_values import TraitMap
from decision_router.services.llm_prompts import (
    CLARIFIER_SAMPLING, CLARIFIER_SYSTEM_PROMPT, WINNER_SAMPLING,
    WINNER_SYSTEM_PROMPT, build_clarifier_prompt, build_winner_prompt,
)

logger = logging.getLogger(__name__)

CLARIFIER_PARSE_HINT = "User's preference to resolve tie"


def new_clarifier_key() -> str:
    return f"{CLARIFIER_KEY_PREFIX}{uuid.uuid4().hex}"


class TieResolver:
    """Runs the clarifying sub-dialogue for tied outcomes."""

    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def resolve(
        self,
        spec: DecisionSpec,
        tied: list[OutcomeDefinition],
        known_traits: TraitMap,
        cancel: asyncio.Event | None = None,
    ) -> EvaluationResult:
        ids = [o.outcome_id for o in tied]
        logger.info(
            f"Tie between {len(tied)} outcomes: {', '.join(ids)}",
            extra={"spec_id": spec.spec_id},
        )
        strategy = spec.tie_strategy

        if strategy.mode != TieMode.LLM_CLARIFIER:
            return self._fallback(tied, "tie strategy mode is not LLM_CLARIFIER")

        candidates = narrow_tied_outcomes(spec, tied, known_traits)
        answers = clarifier_answers(known_traits)
        if answers and self.llm.is_available():
            resolved = await self._pick_winner(candidates, answers, cancel)
            if resolved is not None:
                return resolved

        pseudo = find_next_pseudo_trait(spec, known_traits)
        if pseudo is not None:
            logger.info(f"Asking pseudo-trait '{pseudo.key}' to break tie")
            return EvaluationResult.clarify(
                pseudo, tied, ResolutionMode.PSEUDO_TRAIT_CLARIFIER,
            )

        if len(candidates) == 1:
            logger.info(
                f"Pseudo-trait answers narrowed tie to {candidates[0].outcome_id}",
            )
            return EvaluationResult.complete(
                candidates[0], ResolutionMode.PSEUDO_TRAIT_CLARIFIER,
                tied_outcomes=tied,
            )

        asked = count_clarifiers(known_traits)
        if self.llm.is_available() and asked < strategy.clarifier_max_attempts:
            clarifier = await self._generate_clarifier(spec, candidates, known_traits, cancel)
            if clarifier is not None:
                return EvaluationResult.clarify(
                    clarifier, candidates, ResolutionMode.LLM_CLARIFIER,
                )
        elif asked >= strategy.clarifier_max_attempts:
            logger.info(f"Clarifier limit reached ({asked}/{strategy.clarifier_max_attempts})")

        return self._fallback(candidates, "no clarifier available")

    def _fallback(self, tied: list[OutcomeDefinition], reason: str) -> EvaluationResult:
        logger.info(
            f"Tie resolved to first tied outcome {tied[0].outcome_id}: {reason}",
            extra={"resolution_mode": ResolutionMode.TIE_FALLBACK.value},
        )
        return EvaluationResult.complete(
            tied[0], ResolutionMode.TIE_FALLBACK, tied_outcomes=tied,
        )

    async def _pick_winner(
        self,
        tied: list[OutcomeDefinition],
        answers: list[str],
        cancel: asyncio.Event | None,
    ) -> EvaluationResult | None:
        reply = await self.llm.complete(
            WINNER_SYSTEM_PROMPT,
            build_winner_prompt(tied, answers),
            max_tokens=WINNER_SAMPLING.max_tokens,
            temperature=WINNER_SAMPLING.temperature,
            cancel=cancel,
        )
        if not reply.success:
            logger.warning(f"Winner selection failed: {reply.error_message}")
            return None

        parsed = parse_winner_reply(reply.text)
        if parsed is None:
            logger.warning("Winner reply had no WINNER line")
            return None

        by_id = {o.outcome_id.upper(): o for o in tied}
        winner = by_id.get(parsed.winner_id.upper())
        if winner is None:
            logger.warning(f"LLM picked '{parsed.winner_id}', which is not a remaining candidate")
            return None

        logger.info(
            f"LLM resolved tie to {winner.outcome_id}",
            extra={"outcome_id": winner.outcome_id},
        )
        return EvaluationResult.complete(
            winner, ResolutionMode.LLM_RESOLVED,
            summary=parsed.summary, tied_outcomes=tied,
        )

    async def _generate_clarifier(
        self,
        spec: DecisionSpec,
        tied: list[OutcomeDefinition],
        known_traits: TraitMap,
        cancel: asyncio.Event | None,
    ) -> TraitDefinition | None:
        reply = await self.llm.complete(
            CLARIFIER_SYSTEM_PROMPT,
            build_clarifier_prompt(spec.tie_strategy.llm_prompt_template, tied, known_traits),
            max_tokens=CLARIFIER_SAMPLING.max_tokens,
            temperature=CLARIFIER_SAMPLING.temperature,
            cancel=cancel,
        )
        if not reply.success:
            logger.warning(f"Clarifier generation failed: {reply.error_message}")
            return None

        parsed = parse_clarifier_reply(reply.text)
        if parsed is None:
            logger.warning("Clarifier reply had no QUESTION line")
            return None

        trait = TraitDefinition(
            key=new_clarifier_key(),
            question_text=parsed.question,
            answer_type=parsed.answer_type,
            parse_hint=CLARIFIER_PARSE_HINT,
            is_pseudo_trait=True,
            options=parsed.options,
            allow_multiple=parsed.answer_type == AnswerType.ENUM_LIST,
            ephemeral=True,
        )
        logger.info(f"Generated clarifier {trait.key}: {trait.question_text}")
        return trait

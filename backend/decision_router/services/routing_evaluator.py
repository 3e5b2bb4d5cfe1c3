"""Routing Evaluator: the COLLECTING / TIE_PENDING / COMPLETE state machine.

Invariants:
    - One call = derived traits -> immediate-select rules -> outcome matching
      -> next trait or tie resolution -> optional summary
    - The caller's known-trait map is never mutated
    - Rules see derived traits; next-trait dependencies see answered traits only
    - With the LLM disabled evaluate() is deterministic: identical inputs give
      identical results
    - A spec whose rules cover neither an outcome nor a next trait resolves to
      its first outcome with FALLBACK and a warning; for any spec with at
      least one outcome, evaluation never raises

Design Decisions:
    - Summary generation is the only step after completion and is switchable
      by configuration; a failed summary leaves summary=None
"""

import asyncio
import logging

from decision_router.core.derived_traits import compute_derived_traits
from decision_router.core.domain_types import ResolutionMode
from decision_router.core.protocols import LanguageModel
from decision_router.core.results import EvaluationResult
from decision_router.core.rule_evaluator import all_rules_hold, evaluate_compiled_rule
from decision_router.core.spec_model import DecisionSpec, OutcomeDefinition
from decision_router.core.trait_selection import select_next_trait
from decision_router.core.trait_values import TraitMap
from decision_router.services.llm_prompts import (
    SUMMARY_SYSTEM_PROMPT, build_summary_prompt,
)
from decision_router.services.tie_resolver import TieResolver

logger = logging.getLogger(__name__)


class RoutingEvaluator:
    """Evaluates one spec against one session's known traits."""

    def __init__(
        self,
        llm: LanguageModel,
        generate_summaries: bool = True,
        summary_max_tokens: int = 500,
        summary_temperature: float = 0.7,
        tie_resolver: TieResolver | None = None,
    ):
        self.llm = llm
        self.generate_summaries = generate_summaries
        self.summary_max_tokens = summary_max_tokens
        self.summary_temperature = summary_temperature
        self.tie_resolver = tie_resolver or TieResolver(llm)

    async def evaluate(
        self,
        spec: DecisionSpec,
        known_traits: TraitMap,
        cancel: asyncio.Event | None = None,
    ) -> EvaluationResult:
        result = await self._route(spec, known_traits, cancel)

        if result.is_complete and result.outcome is not None:
            logger.info(
                f"Routing complete: {result.outcome.outcome_id} "
                f"({result.resolution_mode.value})",
                extra={
                    "spec_id": spec.spec_id,
                    "outcome_id": result.outcome.outcome_id,
                    "resolution_mode": result.resolution_mode.value,
                },
            )
            if result.summary is None:
                result.summary = await self._summarize(
                    spec, result.outcome, known_traits, cancel,
                )
        return result

    async def _route(
        self,
        spec: DecisionSpec,
        known_traits: TraitMap,
        cancel: asyncio.Event | None,
    ) -> EvaluationResult:
        augmented = compute_derived_traits(spec, known_traits)

        for immediate in spec.immediate_select_if:
            if not evaluate_compiled_rule(immediate.compiled, augmented):
                continue
            outcome = spec.find_outcome(immediate.outcome_id)
            if outcome is None:
                logger.warning(
                    f"Immediate rule '{immediate.rule}' targets unknown outcome "
                    f"'{immediate.outcome_id}'",
                )
                continue
            logger.info(f"Immediate select via rule '{immediate.rule}'")
            return EvaluationResult.complete(outcome, ResolutionMode.IMMEDIATE)

        matched = [
            o for o in spec.outcomes if all_rules_hold(o.compiled_rules, augmented)
        ]
        logger.debug(f"{len(matched)} outcome(s) matched", extra={"spec_id": spec.spec_id})

        if len(matched) == 1:
            return EvaluationResult.complete(matched[0], ResolutionMode.SINGLE_MATCH)
        if len(matched) > 1:
            return await self.tie_resolver.resolve(spec, matched, augmented, cancel)

        next_trait = select_next_trait(spec, known_traits)
        if next_trait is not None:
            logger.debug(f"Next trait: {next_trait.key}")
            return EvaluationResult.ask(next_trait)

        return self._spec_fallback(spec)

    def _spec_fallback(self, spec: DecisionSpec) -> EvaluationResult:
        if not spec.outcomes:
            # Load-time validation rejects this; only hand-built specs get here
            raise ValueError(f"Spec '{spec.spec_id}' defines no outcomes")
        logger.warning(
            f"No outcome matched and no trait left to ask in '{spec.spec_id}'; "
            f"falling back to {spec.outcomes[0].outcome_id}",
            extra={"spec_id": spec.spec_id, "resolution_mode": ResolutionMode.FALLBACK.value},
        )
        return EvaluationResult.complete(spec.outcomes[0], ResolutionMode.FALLBACK)

    async def _summarize(
        self,
        spec: DecisionSpec,
        outcome: OutcomeDefinition,
        known_traits: TraitMap,
        cancel: asyncio.Event | None,
    ) -> str | None:
        if not self.generate_summaries or not self.llm.is_available():
            return None
        reply = await self.llm.complete(
            SUMMARY_SYSTEM_PROMPT,
            build_summary_prompt(spec, outcome, known_traits),
            max_tokens=self.summary_max_tokens,
            temperature=self.summary_temperature,
            cancel=cancel,
        )
        if not reply.success:
            logger.info(f"Summary generation skipped: {reply.error_message}")
            return None
        return reply.text.strip() or None

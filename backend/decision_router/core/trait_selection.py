"""Trait Selection: which trait to ask next, and pseudo-trait tie narrowing.

Invariants:
    - Required, non-pseudo traits whose depends_on keys are all known are
      offered first, in declaration order; fallback_trait_order comes after
    - Fallback order entries not defined in the spec are skipped
    - narrow_tied_outcomes preserves outcome declaration order and never
      empties a non-empty tie
    - Clarifier answers are read in insertion order of the known-trait map
"""

import logging

from decision_router.core.domain_types import CLARIFIER_KEY_PREFIX
from decision_router.core.spec_model import (
    DecisionSpec, OutcomeDefinition, TraitDefinition,
)
from decision_router.core.trait_values import (
    TextListValue, TextValue, TraitMap, TraitValue, describe, is_blank,
)

logger = logging.getLogger(__name__)


def select_next_trait(
    spec: DecisionSpec, known_traits: TraitMap,
) -> TraitDefinition | None:
    """First askable required trait, else the first unknown fallback-order trait."""
    for trait in spec.traits:
        if not trait.required or trait.is_pseudo_trait:
            continue
        if trait.key in known_traits:
            continue
        if any(dep not in known_traits for dep in trait.depends_on):
            continue
        return trait

    for key in spec.disambiguation.fallback_trait_order:
        if key in known_traits:
            continue
        trait = spec.find_trait(key)
        if trait is None:
            logger.warning(f"Fallback trait '{key}' is not defined in the spec")
            continue
        return trait

    return None


def find_next_pseudo_trait(
    spec: DecisionSpec, known_traits: TraitMap,
) -> TraitDefinition | None:
    for trait in spec.tie_strategy.pseudo_traits:
        if trait.key not in known_traits:
            return trait
    return None


def _selected_options(value: TraitValue) -> list[str]:
    match value:
        case TextValue(value=text):
            return [text]
        case TextListValue(values=texts):
            return list(texts)
    return []


def mapped_outcome_ids(trait: TraitDefinition, value: TraitValue) -> set[str] | None:
    """Outcome ids the answer maps to, or None when the answer has no mapping."""
    if not trait.mapping:
        return None
    lookup = {k.strip().upper(): v for k, v in trait.mapping.items()}
    ids: set[str] = set()
    matched = False
    for option in _selected_options(value):
        targets = lookup.get(option.strip().upper())
        if targets is not None:
            matched = True
            ids.update(targets)
    return ids if matched else None


def narrow_tied_outcomes(
    spec: DecisionSpec,
    tied: list[OutcomeDefinition],
    known_traits: TraitMap,
) -> list[OutcomeDefinition]:
    """Intersect tied outcomes with each answered pseudo-trait's mapping."""
    narrowed = list(tied)
    for trait in spec.tie_strategy.pseudo_traits:
        value = known_traits.get(trait.key)
        if value is None:
            continue
        ids = mapped_outcome_ids(trait, value)
        if ids is None:
            continue
        candidate = [o for o in narrowed if o.outcome_id in ids]
        if candidate:
            narrowed = candidate
        else:
            logger.info(
                f"Pseudo-trait '{trait.key}' mapping excludes every tied outcome; ignored",
            )
    return narrowed


# ─── LLM clarifier answers ───────────────────────────────────────

def clarifier_answers(known_traits: TraitMap) -> list[str]:
    """Non-blank llm_clarifier_* answers in the order they were given."""
    return [
        describe(value) for key, value in known_traits.items()
        if key.startswith(CLARIFIER_KEY_PREFIX) and not is_blank(value)
    ]


def count_clarifiers(known_traits: TraitMap) -> int:
    return sum(1 for key in known_traits if key.startswith(CLARIFIER_KEY_PREFIX))

"""Derived Trait Calculator: computes secondary facts from known traits.

Invariants:
    - Returns a NEW map (known traits + derived keys); the input is never mutated
    - min(K) / max(K) need K to hold a non-empty IntListValue, else no value
    - count(K >= N) counts elements >= N; an empty list yields 0
    - Absent source trait, wrong value shape, or unsupported expression: the
      derived key is omitted and the omission logged
    - Sources are read from the known traits only, so derived traits never chain
"""

import logging

from decision_router.core.rule_grammar import (
    DerivedExpression, DerivedKind, UnsupportedExpression,
)
from decision_router.core.spec_model import DecisionSpec
from decision_router.core.trait_values import IntListValue, IntValue, TraitMap

logger = logging.getLogger(__name__)


def evaluate_derived_expression(
    expression: DerivedExpression, known_traits: TraitMap,
) -> IntValue | None:
    """Evaluate one compiled expression. Returns None when no value can be produced."""
    source = known_traits.get(expression.source_trait)
    if not isinstance(source, IntListValue):
        return None

    values = source.values
    match expression.kind:
        case DerivedKind.MIN:
            return IntValue(min(values)) if values else None
        case DerivedKind.MAX:
            return IntValue(max(values)) if values else None
        case DerivedKind.COUNT_AT_LEAST:
            threshold = expression.threshold or 0
            return IntValue(sum(1 for v in values if v >= threshold))
    return None


def compute_derived_traits(spec: DecisionSpec, known_traits: TraitMap) -> TraitMap:
    """Augment a copy of known_traits with every derived trait that can be computed."""
    augmented: TraitMap = dict(known_traits)

    for derived in spec.derived_traits:
        compiled = derived.compiled
        if isinstance(compiled, UnsupportedExpression):
            logger.warning(
                f"Unsupported derived expression for '{derived.key}': "
                f"'{derived.expression}'",
            )
            continue

        value = evaluate_derived_expression(compiled, known_traits)
        if value is None:
            logger.debug(
                f"Derived trait '{derived.key}' omitted: "
                f"source '{compiled.source_trait}' missing or empty",
            )
            continue

        augmented[derived.key] = value
        logger.debug(f"Derived trait {derived.key} = {value.value}")

    return augmented

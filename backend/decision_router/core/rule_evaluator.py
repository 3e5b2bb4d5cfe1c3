"""Rule Evaluator: evaluates compiled comparison rules against a trait map.

Invariants:
    - A rule whose trait is absent from the map is False (not yet known)
    - Only IntValue comparisons are supported; any other shape is False
    - Malformed rules are False and logged; nothing here raises
    - The trait map is never mutated
"""

import logging
import operator
from typing import Callable, Iterable

from decision_router.core.rule_grammar import (
    Comparison, CompiledRule, ComparisonOp, MalformedRule, compile_rule,
)
from decision_router.core.trait_values import IntValue, TraitMap

logger = logging.getLogger(__name__)

_COMPARATORS: dict[ComparisonOp, Callable[[int, int], bool]] = {
    ComparisonOp.EQ: operator.eq,
    ComparisonOp.GE: operator.ge,
    ComparisonOp.LE: operator.le,
    ComparisonOp.GT: operator.gt,
    ComparisonOp.LT: operator.lt,
}


def evaluate_compiled_rule(rule: CompiledRule, traits: TraitMap) -> bool:
    if isinstance(rule, MalformedRule):
        logger.warning(
            f"Malformed rule treated as false: '{rule.source}' ({rule.reason})",
        )
        return False

    actual = traits.get(rule.trait)
    if actual is None:
        return False

    if not isinstance(actual, IntValue) or rule.literal is None:
        logger.debug(
            f"Non-numeric comparison treated as false: '{rule.source}'",
        )
        return False

    return _COMPARATORS[rule.op](actual.value, rule.literal)


def evaluate_rule(rule: str | Comparison | MalformedRule, traits: TraitMap) -> bool:
    """Evaluate a rule string (compiled on the fly) or an already compiled rule."""
    compiled = compile_rule(rule) if isinstance(rule, str) else rule
    return evaluate_compiled_rule(compiled, traits)


def all_rules_hold(rules: Iterable[CompiledRule], traits: TraitMap) -> bool:
    """Conjunction of rules. An empty rule list holds."""
    return all(evaluate_compiled_rule(r, traits) for r in rules)

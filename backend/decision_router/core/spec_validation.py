"""Spec Validation: load-time structural checks on a built DecisionSpec.

Invariants:
    - Pure: both functions return lists of strings, empty when nothing is wrong
    - validate_spec problems reject the spec; spec_warnings are logged and the
      spec still loads (malformed rules evaluate false at runtime)

Design Decisions:
    - A spec with no outcomes, duplicate keys, or dangling references is
      rejected at load time. A well-formed spec whose rules leave some trait
      combination uncovered still loads; the evaluator resolves that case
      with the FALLBACK mode and a warning
"""

from collections import Counter

from decision_router.core.rule_grammar import MalformedRule, UnsupportedExpression
from decision_router.core.spec_model import DecisionSpec


def _duplicates(keys: list[str]) -> list[str]:
    return sorted(k for k, n in Counter(keys).items() if n > 1)


def validate_spec(spec: DecisionSpec) -> list[str]:
    problems: list[str] = []

    if not spec.spec_id.strip():
        problems.append("spec_id is required")
    if not spec.version.strip():
        problems.append("version is required")
    if not spec.traits:
        problems.append("at least one trait is required")
    if not spec.outcomes:
        problems.append("at least one outcome is required")

    trait_keys = [t.key for t in spec.traits]
    pseudo_keys = [t.key for t in spec.tie_strategy.pseudo_traits]
    derived_keys = [d.key for d in spec.derived_traits]
    all_keys = trait_keys + pseudo_keys + derived_keys
    for key in _duplicates(all_keys):
        problems.append(f"duplicate trait key '{key}'")

    outcome_ids = [o.outcome_id for o in spec.outcomes]
    for outcome_id in _duplicates(outcome_ids):
        problems.append(f"duplicate outcome id '{outcome_id}'")

    known_keys = set(trait_keys) | set(pseudo_keys)
    for trait in spec.traits:
        for dep in trait.depends_on:
            if dep not in known_keys:
                problems.append(f"trait '{trait.key}' depends on unknown trait '{dep}'")
        if trait.bounds and trait.bounds.min > trait.bounds.max:
            problems.append(f"trait '{trait.key}' has min bound above max bound")

    for outcome in spec.outcomes:
        if not outcome.selection_rules:
            problems.append(f"outcome '{outcome.outcome_id}' has no selection rules")

    declared_outcomes = set(outcome_ids)
    for immediate in spec.immediate_select_if:
        if immediate.outcome_id not in declared_outcomes:
            problems.append(
                f"immediate rule targets unknown outcome '{immediate.outcome_id}'",
            )

    for pseudo in spec.tie_strategy.pseudo_traits:
        for targets in pseudo.mapping.values():
            for target in targets:
                if target not in declared_outcomes:
                    problems.append(
                        f"pseudo-trait '{pseudo.key}' maps to unknown outcome '{target}'",
                    )

    return problems


def spec_warnings(spec: DecisionSpec) -> list[str]:
    """Authoring issues that still load. Each of these evaluates as a no-op at runtime."""
    warnings: list[str] = []

    for outcome in spec.outcomes:
        for rule in outcome.compiled_rules:
            if isinstance(rule, MalformedRule):
                warnings.append(
                    f"outcome '{outcome.outcome_id}' rule '{rule.source}': {rule.reason}",
                )

    for immediate in spec.immediate_select_if:
        if isinstance(immediate.compiled, MalformedRule):
            warnings.append(
                f"immediate rule '{immediate.rule}': {immediate.compiled.reason}",
            )

    for derived in spec.derived_traits:
        if isinstance(derived.compiled, UnsupportedExpression):
            warnings.append(
                f"derived trait '{derived.key}' has unsupported expression "
                f"'{derived.expression}'",
            )

    defined = {t.key for t in spec.traits} | {t.key for t in spec.tie_strategy.pseudo_traits}
    for key in spec.disambiguation.fallback_trait_order:
        if key not in defined:
            warnings.append(f"fallback trait '{key}' is not defined")

    return warnings

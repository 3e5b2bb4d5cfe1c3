"""Spec Builders — terse constructors for hand-built DecisionSpecs in tests."""

from types import MappingProxyType

from decision_router.core.domain_types import AnswerType, TieMode
from decision_router.core.errors import SpecNotFoundError
from decision_router.core.spec_model import (
    DecisionSpec, DerivedTraitDefinition, Disambiguation, ImmediateSelectRule,
    OutcomeDefinition, TieStrategy, TraitBounds, TraitDefinition,
)


def trait(
    key: str,
    answer_type: AnswerType = AnswerType.INTEGER,
    *,
    required: bool = True,
    depends_on: tuple[str, ...] = (),
    bounds: tuple[int, int] | None = None,
    options: tuple[str, ...] = (),
    mapping: dict[str, tuple[str, ...]] | None = None,
    parse_hint: str = "",
    pseudo: bool = False,
    allow_multiple: bool = False,
) -> TraitDefinition:
    return TraitDefinition(
        key=key,
        question_text=f"What is your {key.replace('_', ' ')}?",
        answer_type=answer_type,
        parse_hint=parse_hint,
        required=required,
        is_pseudo_trait=pseudo,
        depends_on=depends_on,
        bounds=TraitBounds(*bounds) if bounds else None,
        options=options,
        mapping=MappingProxyType(dict(mapping or {})),
        allow_multiple=allow_multiple,
    )


def outcome(outcome_id: str, *rules: str, message: str = "") -> OutcomeDefinition:
    return OutcomeDefinition.from_rules(outcome_id, list(rules), care_type_message=message)


def make_spec(
    traits: list[TraitDefinition],
    outcomes: list[OutcomeDefinition],
    *,
    derived: dict[str, str] | None = None,
    immediate: list[tuple[str, str]] | None = None,
    tie_mode: TieMode = TieMode.LLM_CLARIFIER,
    pseudo_traits: list[TraitDefinition] | None = None,
    clarifier_max_attempts: int = 2,
    fallback_order: tuple[str, ...] = (),
    safety_preamble: str = "Be kind.",
) -> DecisionSpec:
    return DecisionSpec(
        spec_id="TEST_SPEC",
        version="1.0.0",
        traits=tuple(traits),
        outcomes=tuple(outcomes),
        derived_traits=tuple(
            DerivedTraitDefinition.from_expression(k, e) for k, e in (derived or {}).items()
        ),
        immediate_select_if=tuple(
            ImmediateSelectRule.from_rule(o, r) for o, r in (immediate or [])
        ),
        tie_strategy=TieStrategy(
            mode=tie_mode,
            clarifier_max_attempts=clarifier_max_attempts,
            pseudo_traits=tuple(pseudo_traits or ()),
        ),
        disambiguation=Disambiguation(fallback_trait_order=fallback_order),
        safety_preamble=safety_preamble,
    )


def tied_spec(**kwargs) -> DecisionSpec:
    """Two outcomes that both hold once `age` is known."""
    return make_spec(
        [trait("age")],
        [
            outcome("MUSEUM_DAY", "age >= 4", message="Museum visit"),
            outcome("PARK_PICNIC", "age >= 4", message="Picnic in the park"),
        ],
        **kwargs,
    )


class StaticSpecSource:
    """SpecSource over already-built specs, counting loads."""

    def __init__(self, *specs: DecisionSpec):
        self.specs = {s.spec_id: s for s in specs}
        self.loads = 0

    async def load_active_spec(self, spec_id: str) -> DecisionSpec:
        self.loads += 1
        if spec_id not in self.specs:
            raise SpecNotFoundError(spec_id)
        return self.specs[spec_id]

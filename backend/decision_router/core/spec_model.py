"""Spec Model: immutable in-memory decision specification.

Invariants:
    - All dataclasses are frozen; collections are tuples
    - Every rule and derived expression carries its compiled AST
    - Trait lookups cover spec traits and tie pseudo-traits; ephemeral
      clarifier traits live in the session, never here

Design Decisions:
    - Plain dataclasses in core, pydantic documents in schemas/: the loader
      validates the document then builds this model
    - Compilation happens in the from_* constructors so a DecisionSpec can
      never hold an uncompiled rule
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from decision_router.core.domain_types import AnswerType, TieMode
from decision_router.core.rule_grammar import (
    CompiledExpression, CompiledRule,
    compile_derived_expression, compile_rule,
)


@dataclass(frozen=True)
class TraitBounds:
    min: int
    max: int

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class TraitDefinition:
    key: str
    question_text: str
    answer_type: AnswerType
    parse_hint: str = ""
    required: bool = False
    is_pseudo_trait: bool = False
    depends_on: tuple[str, ...] = ()
    bounds: TraitBounds | None = None
    options: tuple[str, ...] = ()
    # option value -> outcome ids, used to narrow ties
    mapping: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({}), hash=False,
    )
    allow_multiple: bool = False
    # True only for clarifier traits generated at runtime
    ephemeral: bool = False


@dataclass(frozen=True)
class DerivedTraitDefinition:
    key: str
    expression: str
    compiled: CompiledExpression

    @classmethod
    def from_expression(cls, key: str, expression: str) -> "DerivedTraitDefinition":
        return cls(
            key=key, expression=expression,
            compiled=compile_derived_expression(expression),
        )


@dataclass(frozen=True)
class ImmediateSelectRule:
    outcome_id: str
    rule: str
    compiled: CompiledRule

    @classmethod
    def from_rule(cls, outcome_id: str, rule: str) -> "ImmediateSelectRule":
        return cls(outcome_id=outcome_id, rule=rule, compiled=compile_rule(rule))


@dataclass(frozen=True)
class DisplayCard:
    title: str = ""
    subtitle: str = ""
    group_id: str = ""
    care_type_message: str = ""
    icon_url: str = ""
    body_text: tuple[str, ...] = ()
    care_type_details: tuple[str, ...] = ()
    rules: tuple[str, ...] = ()


@dataclass(frozen=True)
class FinalResult:
    resolution_button_label: str = ""
    resolution_button_url: str = ""
    analytics_resolution_code: str = ""


@dataclass(frozen=True)
class OutcomeDefinition:
    outcome_id: str
    selection_rules: tuple[str, ...]
    compiled_rules: tuple[CompiledRule, ...]
    care_type_message: str = ""
    display_cards: tuple[DisplayCard, ...] = ()
    final_result: FinalResult = field(default_factory=FinalResult)

    @classmethod
    def from_rules(
        cls, outcome_id: str, selection_rules: list[str] | tuple[str, ...], **kwargs,
    ) -> "OutcomeDefinition":
        rules = tuple(selection_rules)
        return cls(
            outcome_id=outcome_id,
            selection_rules=rules,
            compiled_rules=tuple(compile_rule(r) for r in rules),
            **kwargs,
        )

    @property
    def summary(self) -> str:
        """Short description used in tie prompts."""
        if self.care_type_message:
            return self.care_type_message
        if self.display_cards and self.display_cards[0].title:
            return self.display_cards[0].title
        return self.outcome_id


@dataclass(frozen=True)
class TieStrategy:
    mode: TieMode = TieMode.LLM_CLARIFIER
    clarifier_max_attempts: int = 2
    pseudo_traits: tuple[TraitDefinition, ...] = ()
    llm_prompt_template: str = ""


@dataclass(frozen=True)
class Disambiguation:
    fallback_trait_order: tuple[str, ...] = ()


@dataclass(frozen=True)
class DecisionSpec:
    spec_id: str
    version: str
    traits: tuple[TraitDefinition, ...]
    outcomes: tuple[OutcomeDefinition, ...]
    derived_traits: tuple[DerivedTraitDefinition, ...] = ()
    immediate_select_if: tuple[ImmediateSelectRule, ...] = ()
    tie_strategy: TieStrategy = field(default_factory=TieStrategy)
    disambiguation: Disambiguation = field(default_factory=Disambiguation)
    canonical_base_url: str = ""
    safety_preamble: str = ""

    def find_trait(self, key: str) -> TraitDefinition | None:
        """Look up a spec trait or tie pseudo-trait by key."""
        for trait in self.traits:
            if trait.key == key:
                return trait
        for trait in self.tie_strategy.pseudo_traits:
            if trait.key == key:
                return trait
        return None

    def find_outcome(self, outcome_id: str) -> OutcomeDefinition | None:
        for outcome in self.outcomes:
            if outcome.outcome_id == outcome_id:
                return outcome
        return None

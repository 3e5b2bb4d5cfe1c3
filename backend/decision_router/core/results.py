"""Results: value objects returned by evaluation and parsing.

Invariants:
    - EvaluationResult.state is derived, never stored: COMPLETE when is_complete,
      TIE_PENDING when a clarifier is required, COLLECTING otherwise
    - A complete result always carries an outcome
    - TraitParseResult is valid XOR carries an error reason
"""

from dataclasses import dataclass, field

from decision_router.core.domain_types import ResolutionMode, RoutingState
from decision_router.core.spec_model import OutcomeDefinition, TraitDefinition
from decision_router.core.trait_values import TraitValue


@dataclass
class EvaluationResult:
    is_complete: bool = False
    outcome: OutcomeDefinition | None = None
    next_trait: TraitDefinition | None = None
    requires_clarifier: bool = False
    tied_outcomes: list[OutcomeDefinition] = field(default_factory=list)
    resolution_mode: ResolutionMode | None = None
    summary: str | None = None

    @property
    def state(self) -> RoutingState:
        if self.is_complete:
            return RoutingState.COMPLETE
        if self.requires_clarifier:
            return RoutingState.TIE_PENDING
        return RoutingState.COLLECTING

    @property
    def next_trait_key(self) -> str | None:
        return self.next_trait.key if self.next_trait else None

    @classmethod
    def complete(
        cls,
        outcome: OutcomeDefinition,
        mode: ResolutionMode,
        summary: str | None = None,
        tied_outcomes: list[OutcomeDefinition] | None = None,
    ) -> "EvaluationResult":
        return cls(
            is_complete=True, outcome=outcome, resolution_mode=mode,
            summary=summary, tied_outcomes=list(tied_outcomes or []),
        )

    @classmethod
    def ask(cls, trait: TraitDefinition) -> "EvaluationResult":
        return cls(next_trait=trait)

    @classmethod
    def clarify(
        cls,
        trait: TraitDefinition,
        tied_outcomes: list[OutcomeDefinition],
        mode: ResolutionMode,
    ) -> "EvaluationResult":
        return cls(
            next_trait=trait, requires_clarifier=True,
            tied_outcomes=list(tied_outcomes), resolution_mode=mode,
        )


@dataclass(frozen=True)
class TraitParseResult:
    is_valid: bool
    value: TraitValue | None = None
    error_reason: str | None = None

    @classmethod
    def valid(cls, value: TraitValue) -> "TraitParseResult":
        return cls(is_valid=True, value=value)

    @classmethod
    def invalid(cls, reason: str) -> "TraitParseResult":
        return cls(is_valid=False, error_reason=reason)

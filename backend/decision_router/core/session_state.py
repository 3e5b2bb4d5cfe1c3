"""Session State: caller-owned conversation state for one routing session.

Invariants:
    - known_traits holds only primary traits, spec pseudo-traits and
      llm_clarifier_* answers
    - clarifier_traits (generated at runtime) are kept apart from the spec
      and never written back into it
    - retry_attempt resets to 0 whenever an answer is accepted
    - validation_history is append-only

Design Decisions:
    - Dataclass with small mutation methods: pure, deterministic, testable
      without mocks; the conversation service is the only writer
    - Timestamps are timezone-aware UTC
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from decision_router.core.domain_types import CLARIFIER_KEY_PREFIX, QuestionType
from decision_router.core.spec_model import DecisionSpec, TraitDefinition
from decision_router.core.trait_values import TraitMap, TraitValue


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValidationHistoryEntry:
    """One rejected answer, kept for diagnostics and presentation switching."""
    trait_key: str
    attempt: int
    input_type_used: QuestionType
    error_reason: str
    timestamp: datetime = field(default_factory=_utc_now)


@dataclass
class ConversationSession:
    session_id: str
    spec_id: str
    version: str
    known_traits: TraitMap = field(default_factory=dict)
    awaiting_trait_key: str | None = None
    # Presentation used for the question currently awaiting an answer
    awaiting_question_type: QuestionType = QuestionType.TEXT
    is_complete: bool = False
    outcome_id: str | None = None
    retry_attempt: int = 0
    clarifier_traits: dict[str, TraitDefinition] = field(default_factory=dict)
    validation_history: list[ValidationHistoryEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def failures_for(self, trait_key: str) -> list[ValidationHistoryEntry]:
        """Failures for one trait, most recent first."""
        return [e for e in reversed(self.validation_history) if e.trait_key == trait_key]

    def record_failure(self, trait_key: str, error_reason: str) -> ValidationHistoryEntry:
        self.retry_attempt += 1
        entry = ValidationHistoryEntry(
            trait_key=trait_key,
            attempt=self.retry_attempt,
            input_type_used=self.awaiting_question_type,
            error_reason=error_reason,
        )
        self.validation_history.append(entry)
        self.touch()
        return entry

    def accept_answer(self, trait_key: str, value: TraitValue) -> None:
        self.known_traits[trait_key] = value
        self.retry_attempt = 0
        self.touch()

    def register_clarifier(self, trait: TraitDefinition) -> None:
        self.clarifier_traits[trait.key] = trait

    def resolve_trait(self, spec: DecisionSpec, trait_key: str) -> TraitDefinition | None:
        """Look up a trait in the spec, falling back to this session's clarifiers."""
        trait = spec.find_trait(trait_key)
        if trait is not None:
            return trait
        if trait_key.startswith(CLARIFIER_KEY_PREFIX):
            return self.clarifier_traits.get(trait_key)
        return None

    def touch(self) -> None:
        self.updated_at = _utc_now()

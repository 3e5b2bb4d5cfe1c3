"""Question Presentation: how a question is rendered and re-phrased without an LLM.

Invariants:
    - Three or more failures for a trait always force free-text input
    - A failure on structured input switches to text; a failure on text input
      switches to structured input when the trait has options
    - option_id is a stable lowercase hyphen slug, never empty
    - At most MAX_PRESENTED_OPTIONS options are presented
"""

import logging
import re

from decision_router.core.domain_types import AnswerType, QuestionType
from decision_router.core.session_state import ValidationHistoryEntry
from decision_router.core.spec_model import TraitDefinition

logger = logging.getLogger(__name__)

MAX_PRESENTED_OPTIONS = 7
FAILURES_BEFORE_TEXT_FALLBACK = 3

_NEGATIVE_PATTERNS = ("none", "neither", "nothing", "n/a", "not applicable")


def _structured_type(trait: TraitDefinition) -> QuestionType:
    if trait.allow_multiple:
        return QuestionType.MULTI_SELECT
    if trait.options:
        return QuestionType.SINGLE_SELECT
    return QuestionType.TEXT


def question_type_from_trait(trait: TraitDefinition) -> QuestionType:
    if not trait.options:
        return QuestionType.TEXT
    if trait.answer_type == AnswerType.ENUM:
        return QuestionType.MULTI_SELECT if trait.allow_multiple else QuestionType.SINGLE_SELECT
    if trait.answer_type in (AnswerType.ENUM_LIST, AnswerType.INTEGER_LIST):
        return QuestionType.MULTI_SELECT
    return QuestionType.TEXT


def decide_question_type(
    trait: TraitDefinition,
    failures: list[ValidationHistoryEntry],
) -> QuestionType:
    """Pick text / single-select / multi-select. failures are most recent first."""
    if len(failures) >= FAILURES_BEFORE_TEXT_FALLBACK:
        logger.info(
            f"Forcing text input after {len(failures)} failed attempts for '{trait.key}'",
        )
        return QuestionType.TEXT

    if failures:
        last = failures[0]
        if last.input_type_used in (QuestionType.SINGLE_SELECT, QuestionType.MULTI_SELECT):
            return QuestionType.TEXT
        if last.input_type_used == QuestionType.TEXT and trait.options:
            return _structured_type(trait)

    return question_type_from_trait(trait)


def option_id(label: str) -> str:
    """'No Preference!' -> 'no-preference'."""
    if not label or not label.strip():
        return "unknown"
    slug = re.sub(r"[\s_]+", "-", label.lower())
    slug = re.sub(r"[^a-z0-9\-]", "", slug)
    slug = re.sub(r"-+", "-", slug.strip("-"))
    return slug or "option"


def is_negative_option(label: str) -> bool:
    lowered = label.lower()
    return any(p in lowered for p in _NEGATIVE_PATTERNS)


def presented_options(trait: TraitDefinition) -> tuple[str, ...]:
    return trait.options[:MAX_PRESENTED_OPTIONS]


def format_hints(trait: TraitDefinition) -> list[str]:
    hints: list[str] = []
    if trait.answer_type == AnswerType.INTEGER:
        hints.append("Please provide a single number")
        if trait.bounds:
            hints.append(f"between {trait.bounds.min} and {trait.bounds.max}")
    elif trait.answer_type == AnswerType.INTEGER_LIST:
        hints.append("Please provide a comma-separated list of numbers")
        if trait.bounds:
            hints.append(f"each between {trait.bounds.min} and {trait.bounds.max}")
    elif trait.answer_type in (AnswerType.ENUM, AnswerType.ENUM_LIST) and trait.options:
        hints.append(f"Please choose from: {', '.join(trait.options)}")
    return hints


def fallback_question(trait: TraitDefinition, retry_attempt: int = 0) -> str:
    """The trait's own question text; on retries prefixed and followed by format hints."""
    if retry_attempt <= 0:
        return trait.question_text
    hints = format_hints(trait)
    hint_text = f" ({', '.join(hints)})" if hints else ""
    return f"Let me try again. {trait.question_text}{hint_text}"

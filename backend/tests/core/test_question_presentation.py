"""Question Presentation — tests for presentation switching and fallback text.

Tests cover:
    - Question type from trait configuration
    - Switching after structured / text failures; forced text after three
    - option_id slugs, negative options, option cap, fallback question text
"""

from decision_router.core.domain_types import AnswerType, QuestionType
from decision_router.core.question_presentation import (
    MAX_PRESENTED_OPTIONS, decide_question_type, fallback_question,
    is_negative_option, option_id, presented_options, question_type_from_trait,
)
from decision_router.core.session_state import ValidationHistoryEntry

from tests.spec_builders import trait

SETTING = trait("setting", AnswerType.ENUM, options=("Indoor", "Outdoor", "None of these"))
TAGS = trait("tags", AnswerType.ENUM_LIST, options=("Art", "Sport"), allow_multiple=True)


def _failure(used: QuestionType) -> ValidationHistoryEntry:
    return ValidationHistoryEntry(
        trait_key="setting", attempt=1, input_type_used=used, error_reason="nope",
    )


# ─── Question type ──────────────────────────────────────────────


def test_type_from_trait():
    assert question_type_from_trait(SETTING) == QuestionType.SINGLE_SELECT
    assert question_type_from_trait(TAGS) == QuestionType.MULTI_SELECT
    assert question_type_from_trait(trait("age")) == QuestionType.TEXT
    assert question_type_from_trait(trait("note", AnswerType.STRING, options=("a",))) == QuestionType.TEXT


def test_structured_failure_switches_to_text():
    failures = [_failure(QuestionType.SINGLE_SELECT)]
    assert decide_question_type(SETTING, failures) == QuestionType.TEXT


def test_text_failure_switches_to_structured():
    assert decide_question_type(SETTING, [_failure(QuestionType.TEXT)]) == QuestionType.SINGLE_SELECT
    assert decide_question_type(TAGS, [_failure(QuestionType.TEXT)]) == QuestionType.MULTI_SELECT


def test_three_failures_force_text():
    failures = [_failure(QuestionType.TEXT)] * 3
    assert decide_question_type(SETTING, failures) == QuestionType.TEXT


# ─── Options ────────────────────────────────────────────────────


def test_option_id():
    assert option_id("No Preference!") == "no-preference"
    assert option_id("kid_friendly  spots") == "kid-friendly-spots"
    assert option_id("") == "unknown"
    assert option_id("!!!") == "option"


def test_negative_options():
    assert is_negative_option("None of these")
    assert is_negative_option("N/A")
    assert not is_negative_option("Outdoor")


def test_presented_options_capped():
    many = trait("pick", AnswerType.ENUM, options=tuple(f"Option {i}" for i in range(10)))
    assert len(presented_options(many)) == MAX_PRESENTED_OPTIONS


# ─── Fallback text ──────────────────────────────────────────────


def test_fallback_question_first_ask_is_verbatim():
    assert fallback_question(trait("age")) == "What is your age?"


def test_fallback_question_retry_adds_hints():
    size = trait("group_size", bounds=(1, 20))
    assert fallback_question(size, retry_attempt=1) == (
        "Let me try again. What is your group size? "
        "(Please provide a single number, between 1 and 20)"
    )


def test_fallback_question_retry_lists_options():
    text = fallback_question(SETTING, retry_attempt=2)
    assert text.endswith("(Please choose from: Indoor, Outdoor, None of these)")

"""Trait Parser — tests for free-text -> typed value parsing.

Tests cover:
    - Deterministic fast paths (no LLM call)
    - LLM fallback per answer type, with its sampling settings
    - Degradation when the LLM is disabled or fails
    - Bounds checks, enum vocabulary enforcement, unsupported types
    - Unexpected errors become an invalid result
"""

from decision_router.core.domain_types import AnswerType, LLMErrorType
from decision_router.core.session_state import ConversationSession
from decision_router.core.trait_values import (
    IntListValue, IntValue, TextListValue, TextValue,
)
from decision_router.services.trait_parser import (
    MSG_EMPTY, MSG_NO_AGES, MSG_NO_NUMBER, MSG_NO_SELECTION, MSG_NOT_UNDERSTOOD,
    MSG_UNEXPECTED, TraitParser,
)

from tests.services.fake_language_model import FakeLanguageModel, failed
from tests.spec_builders import trait

SETTING_HINT = (
    "Map to INDOOR (inside, indoors), OUTDOOR (outside, outdoors) "
    "or NO_PREFERENCE (either, whatever)"
)


# ─── Fast paths ─────────────────────────────────────────────────


async def test_integer_fast_path(fake_llm):
    result = await TraitParser(fake_llm).parse("5", "group_size", AnswerType.INTEGER, "")
    assert result.is_valid
    assert result.value == IntValue(5)
    assert fake_llm.calls == []


async def test_integer_first_number_wins(disabled_llm):
    result = await TraitParser(disabled_llm).parse(
        "about 6, maybe 7", "group_size", "integer", "",
    )
    assert result.value == IntValue(6)


async def test_integer_list_fast_path(fake_llm):
    result = await TraitParser(fake_llm).parse(
        "ages: 4, 9, 38, 40, 12", "all_ages", AnswerType.INTEGER_LIST, "",
    )
    assert result.value == IntListValue((4, 9, 38, 40, 12))
    assert fake_llm.calls == []


async def test_empty_input_invalid_for_every_type(fake_llm):
    parser = TraitParser(fake_llm)
    for answer_type in AnswerType:
        result = await parser.parse("   ", "k", answer_type, "hint")
        assert not result.is_valid
        assert result.error_reason == MSG_EMPTY
    assert fake_llm.calls == []


async def test_enum_keyword_match_skips_llm(fake_llm):
    result = await TraitParser(fake_llm).parse(
        "Let's go outside", "setting", AnswerType.ENUM, SETTING_HINT,
    )
    assert result.value == TextValue("OUTDOOR")
    assert fake_llm.calls == []


async def test_string_without_hint_returns_trimmed_input(fake_llm):
    result = await TraitParser(fake_llm).parse("  a quiet day  ", "note", "text", "")
    assert result.value == TextValue("a quiet day")
    assert fake_llm.calls == []


# ─── LLM fallback ───────────────────────────────────────────────


async def test_integer_llm_fallback_uses_low_temperature():
    llm = FakeLanguageModel(["6"])
    result = await TraitParser(llm).parse("six of us", "group_size", AnswerType.INTEGER, "People")
    assert result.value == IntValue(6)
    assert llm.calls[0].max_tokens == 20
    assert llm.calls[0].temperature == 0.1
    assert "six of us" in llm.calls[0].user_prompt


async def test_integer_llm_none_is_invalid():
    result = await TraitParser(FakeLanguageModel(["NONE"])).parse(
        "lots", "group_size", AnswerType.INTEGER, "",
    )
    assert result.error_reason == MSG_NO_NUMBER


async def test_integer_without_llm_is_invalid(disabled_llm):
    result = await TraitParser(disabled_llm).parse("six", "group_size", AnswerType.INTEGER, "")
    assert result.error_reason == MSG_NO_NUMBER
    assert disabled_llm.calls == []


async def test_integer_list_llm_fallback():
    llm = FakeLanguageModel(["8, 35"])
    result = await TraitParser(llm).parse(
        "an eight year old and me, mid-thirties", "all_ages", AnswerType.INTEGER_LIST, "",
    )
    # "eight" has no digits; the fast path finds nothing
    assert result.value == IntListValue((8, 35))
    assert llm.calls[0].max_tokens == 50


async def test_integer_list_llm_failure_is_invalid():
    llm = FakeLanguageModel([failed(LLMErrorType.RATE_LIMIT)])
    result = await TraitParser(llm).parse("my kids", "all_ages", AnswerType.INTEGER_LIST, "")
    assert result.error_reason == MSG_NO_AGES


async def test_string_with_hint_is_cleaned():
    llm = FakeLanguageModel(["museums"])
    result = await TraitParser(llm).parse(
        "umm I guess museums?", "interest", AnswerType.STRING, "Main interest",
    )
    assert result.value == TextValue("museums")


async def test_string_invalid_sentinel():
    llm = FakeLanguageModel(["INVALID"])
    result = await TraitParser(llm).parse("asdf", "interest", AnswerType.STRING, "Main interest")
    assert result.error_reason == MSG_NOT_UNDERSTOOD


async def test_string_llm_failure_keeps_input():
    llm = FakeLanguageModel([failed()])
    result = await TraitParser(llm).parse(" museums ", "interest", AnswerType.STRING, "Main interest")
    assert result.value == TextValue("museums")


async def test_enum_llm_fallback():
    llm = FakeLanguageModel(["indoor"])
    result = await TraitParser(llm).parse("a museum please", "setting", AnswerType.ENUM, SETTING_HINT)
    assert result.value == TextValue("INDOOR")


async def test_enum_llm_undeclared_token_rejected():
    llm = FakeLanguageModel(["BEACH"])
    result = await TraitParser(llm).parse("the beach", "setting", AnswerType.ENUM, SETTING_HINT)
    assert result.error_reason == MSG_NOT_UNDERSTOOD


async def test_enum_list_via_llm_filtered_by_options():
    llm = FakeLanguageModel(["ART, SPORT, COOKING"])
    result = await TraitParser(llm).parse(
        "painting and football", "interests", AnswerType.ENUM_LIST, "",
        options=("Art", "Sport"),
    )
    assert result.value == TextListValue(("ART", "SPORT"))
    assert llm.calls[0].max_tokens == 150


async def test_enum_list_unknown_sentinel_is_invalid():
    llm = FakeLanguageModel(["UNKNOWN"])
    result = await TraitParser(llm).parse("hmm", "interests", AnswerType.ENUM_LIST, "")
    assert result.error_reason == MSG_NOT_UNDERSTOOD


async def test_enum_list_without_llm_splits_input(disabled_llm):
    result = await TraitParser(disabled_llm).parse(
        "art, sport and music", "interests", AnswerType.ENUM_LIST, "",
    )
    assert result.value == TextListValue(("ART", "SPORT", "MUSIC"))


async def test_enum_list_split_with_only_separators(disabled_llm):
    result = await TraitParser(disabled_llm).parse(",;&", "interests", AnswerType.ENUM_LIST, "")
    assert result.error_reason == MSG_NO_SELECTION


# ─── Bounds & errors ────────────────────────────────────────────


async def test_bounds_checked_after_parsing(disabled_llm):
    parser = TraitParser(disabled_llm)
    size = trait("group_size", bounds=(1, 20))
    result = await parser.parse_for_trait("25 people", size)
    assert result.error_reason == "Please enter a number between 1 and 20."

    ages = trait("all_ages", AnswerType.INTEGER_LIST, bounds=(0, 17))
    result = await parser.parse_for_trait("4, 40", ages)
    assert result.error_reason == "Please enter values between 0 and 17."


async def test_unsupported_answer_type(fake_llm):
    result = await TraitParser(fake_llm).parse("x", "k", "date", "")
    assert result.error_reason == "Unsupported answer type: date"


async def test_unexpected_error_becomes_invalid():
    llm = FakeLanguageModel([RuntimeError("boom")])
    result = await TraitParser(llm).parse("six", "group_size", AnswerType.INTEGER, "")
    assert not result.is_valid
    assert result.error_reason == MSG_UNEXPECTED


async def test_session_history_does_not_change_result(disabled_llm):
    session = ConversationSession(session_id="s1", spec_id="TEST_SPEC", version="1")
    session.record_failure("group_size", "no number")
    result = await TraitParser(disabled_llm).parse(
        "3", "group_size", AnswerType.INTEGER, "", session,
    )
    assert result.value == IntValue(3)

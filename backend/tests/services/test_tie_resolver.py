"""Tie Resolver — tests for the clarifying sub-dialogue.

Tests cover:
    - Generated clarifier traits (ephemeral, prefixed key, options)
    - Winner selection from clarifier answers (case-insensitive id match)
    - Invalid winner and failed calls fall through to the next step
    - Clarifier attempt limit
    - Pseudo-traits asked before any LLM clarifier
    - Winner chosen only among outcomes left after pseudo-trait narrowing
"""

from decision_router.core.domain_types import (
    CLARIFIER_KEY_PREFIX, AnswerType, ResolutionMode, RoutingState,
)
from decision_router.core.trait_values import IntValue, TextValue
from decision_router.services.tie_resolver import CLARIFIER_PARSE_HINT, TieResolver

from tests.services.fake_language_model import FakeLanguageModel, failed
from tests.spec_builders import make_spec, outcome, tied_spec, trait

CLARIFIER_REPLY = "QUESTION: Indoors or outdoors?\nTYPE: enum\nOPTIONS: Indoor, Outdoor"


def _tied(spec):
    return list(spec.outcomes)


# ─── Generated clarifiers ───────────────────────────────────────


async def test_generates_clarifier_trait():
    spec = tied_spec()
    llm = FakeLanguageModel([CLARIFIER_REPLY])
    result = await TieResolver(llm).resolve(spec, _tied(spec), {"age": IntValue(9)})

    assert result.state == RoutingState.TIE_PENDING
    assert result.resolution_mode == ResolutionMode.LLM_CLARIFIER
    clarifier = result.next_trait
    assert clarifier.key.startswith(CLARIFIER_KEY_PREFIX)
    assert clarifier.ephemeral
    assert clarifier.is_pseudo_trait
    assert clarifier.answer_type == AnswerType.ENUM
    assert clarifier.options == ("Indoor", "Outdoor")
    assert clarifier.parse_hint == CLARIFIER_PARSE_HINT
    assert "Museum visit" in llm.calls[0].user_prompt


async def test_clarifier_keys_are_unique():
    spec = tied_spec()
    llm = FakeLanguageModel([CLARIFIER_REPLY, CLARIFIER_REPLY])
    first = await TieResolver(llm).resolve(spec, _tied(spec), {})
    second = await TieResolver(llm).resolve(spec, _tied(spec), {})
    assert first.next_trait.key != second.next_trait.key


async def test_unusable_clarifier_reply_falls_back():
    spec = tied_spec()
    llm = FakeLanguageModel(["Sure! What do you like?"])
    result = await TieResolver(llm).resolve(spec, _tied(spec), {})
    assert result.is_complete
    assert result.outcome.outcome_id == "MUSEUM_DAY"
    assert result.resolution_mode == ResolutionMode.TIE_FALLBACK


# ─── Winner selection ───────────────────────────────────────────


async def test_clarifier_answer_picks_winner():
    spec = tied_spec()
    llm = FakeLanguageModel(["WINNER: park_picnic\nSUMMARY: They want fresh air."])
    known = {"age": IntValue(9), "llm_clarifier_1": TextValue("outdoors please")}
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.outcome.outcome_id == "PARK_PICNIC"
    assert result.resolution_mode == ResolutionMode.LLM_RESOLVED
    assert result.summary == "They want fresh air."
    assert "outdoors please" in llm.calls[0].user_prompt


async def test_winner_outside_tie_is_ignored():
    spec = tied_spec(clarifier_max_attempts=1)
    llm = FakeLanguageModel(["WINNER: KIDS_CLUB"])
    known = {"llm_clarifier_1": TextValue("outdoors")}
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.resolution_mode == ResolutionMode.TIE_FALLBACK
    assert len(llm.calls) == 1


async def test_clarifier_limit_reached():
    spec = tied_spec(clarifier_max_attempts=2)
    llm = FakeLanguageModel([failed(), CLARIFIER_REPLY])
    known = {
        "llm_clarifier_1": TextValue("hmm"),
        "llm_clarifier_2": TextValue("not sure"),
    }
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.resolution_mode == ResolutionMode.TIE_FALLBACK
    assert len(llm.calls) == 1


async def test_failed_winner_call_asks_another_clarifier():
    spec = tied_spec(clarifier_max_attempts=2)
    llm = FakeLanguageModel([failed(), CLARIFIER_REPLY])
    known = {"llm_clarifier_1": TextValue("hmm")}
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.resolution_mode == ResolutionMode.LLM_CLARIFIER
    assert len(llm.calls) == 2


# ─── Pseudo-traits ──────────────────────────────────────────────


async def test_pseudo_trait_asked_before_llm():
    setting = trait(
        "setting", AnswerType.ENUM, required=False, pseudo=True,
        options=("Indoor", "Outdoor"),
        mapping={"INDOOR": ("MUSEUM_DAY",), "OUTDOOR": ("PARK_PICNIC",)},
    )
    spec = tied_spec(pseudo_traits=[setting])
    llm = FakeLanguageModel([CLARIFIER_REPLY])
    result = await TieResolver(llm).resolve(spec, _tied(spec), {})

    assert result.next_trait_key == "setting"
    assert result.resolution_mode == ResolutionMode.PSEUDO_TRAIT_CLARIFIER
    assert llm.calls == []


async def test_disabled_llm_never_called(disabled_llm):
    spec = tied_spec()
    result = await TieResolver(disabled_llm).resolve(
        spec, _tied(spec), {"llm_clarifier_1": TextValue("outdoors")},
    )
    assert result.resolution_mode == ResolutionMode.TIE_FALLBACK
    assert disabled_llm.calls == []


def _indoor_outdoor_spec():
    setting = trait(
        "setting", AnswerType.ENUM, required=False, pseudo=True,
        options=("Indoor", "Outdoor"),
        mapping={"INDOOR": ("MUSEUM_DAY", "ART_CLASS"), "OUTDOOR": ("PARK_PICNIC",)},
    )
    return make_spec(
        [trait("age")],
        [
            outcome("MUSEUM_DAY", "age >= 4", message="Museum visit"),
            outcome("ART_CLASS", "age >= 4", message="Painting workshop"),
            outcome("PARK_PICNIC", "age >= 4", message="Picnic in the park"),
        ],
        pseudo_traits=[setting],
        clarifier_max_attempts=1,
    )


async def test_winner_limited_to_narrowed_outcomes():
    spec = _indoor_outdoor_spec()
    llm = FakeLanguageModel(["WINNER: PARK_PICNIC"])
    known = {
        "age": IntValue(9),
        "setting": TextValue("INDOOR"),
        "llm_clarifier_1": TextValue("somewhere quiet"),
    }
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.outcome.outcome_id == "MUSEUM_DAY"
    assert result.resolution_mode == ResolutionMode.TIE_FALLBACK
    prompt = llm.calls[0].user_prompt
    assert "MUSEUM_DAY" in prompt and "ART_CLASS" in prompt
    assert "PARK_PICNIC" not in prompt
    assert len(llm.calls) == 1


async def test_winner_among_narrowed_outcomes_accepted():
    spec = _indoor_outdoor_spec()
    llm = FakeLanguageModel(["WINNER: ART_CLASS\nSUMMARY: They like making things."])
    known = {
        "age": IntValue(9),
        "setting": TextValue("INDOOR"),
        "llm_clarifier_1": TextValue("something hands-on"),
    }
    result = await TieResolver(llm).resolve(spec, _tied(spec), known)

    assert result.outcome.outcome_id == "ART_CLASS"
    assert result.resolution_mode == ResolutionMode.LLM_RESOLVED

"""Question Generator — tests for LLM-phrased and fallback questions.

Tests cover:
    - Fallback text when the LLM is disabled, fails, or the trait is ephemeral
    - LLM prompt carries the safety preamble and retry instructions
    - Presented options (ids, negative flag)
"""

from dataclasses import replace

from decision_router.core.domain_types import AnswerType
from decision_router.services.question_generator import QuestionGenerator

from tests.services.fake_language_model import FakeLanguageModel, failed
from tests.spec_builders import make_spec, outcome, trait

SIZE = trait("group_size", bounds=(1, 20))
SPEC = make_spec([SIZE], [outcome("ANY", "group_size >= 1")], safety_preamble="No medical advice.")


async def test_disabled_llm_uses_trait_text(disabled_llm):
    text = await QuestionGenerator(disabled_llm).generate_question(SPEC, SIZE)
    assert text == "What is your group size?"


async def test_llm_question_used(fake_llm):
    fake_llm.replies = ["  How many of you are heading out?  "]
    text = await QuestionGenerator(fake_llm).generate_question(SPEC, SIZE)
    assert text == "How many of you are heading out?"
    call = fake_llm.calls[0]
    assert "Safety Guidelines: No medical advice." in call.system_prompt
    assert "Valid range: 1 to 20" in call.system_prompt
    assert call.max_tokens == 150


async def test_retry_prompt_asks_for_format():
    llm = FakeLanguageModel(["Please type a number from 1 to 20."])
    await QuestionGenerator(llm).generate_question(SPEC, SIZE, retry_attempt=2)
    assert "Retry attempt: 2" in llm.calls[0].user_prompt
    assert "retry after invalid input" in llm.calls[0].system_prompt


async def test_llm_failure_falls_back_with_hints():
    llm = FakeLanguageModel([failed()])
    text = await QuestionGenerator(llm).generate_question(SPEC, SIZE, retry_attempt=1)
    assert text.startswith("Let me try again. What is your group size?")
    assert "between 1 and 20" in text


async def test_ephemeral_trait_asked_verbatim(fake_llm):
    clarifier = replace(
        trait("llm_clarifier_ab", AnswerType.STRING, pseudo=True), ephemeral=True,
    )
    text = await QuestionGenerator(fake_llm).generate_question(SPEC, clarifier)
    assert text == clarifier.question_text
    assert fake_llm.calls == []


async def test_options_presented_in_order(disabled_llm):
    setting = trait("setting", AnswerType.ENUM, options=("Indoor", "Outdoor", "None of these"))
    generated = await QuestionGenerator(disabled_llm).generate_with_options(SPEC, setting)
    assert [o.id for o in generated.options] == ["indoor", "outdoor", "none-of-these"]
    assert [o.is_negative for o in generated.options] == [False, False, True]

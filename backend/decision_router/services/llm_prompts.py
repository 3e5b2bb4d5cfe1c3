"""LLM Prompts: every system/user prompt the routing services send, plus sampling settings.

Invariants:
    - Each prompt names its exact reply format and sentinel
    - Sampling settings live next to the prompt they belong to
    - Builders are pure string functions
"""

import json
from dataclasses import dataclass

from decision_router.core.domain_types import (
    INTEGER_LIST_MAX, INTEGER_LIST_MIN, AnswerType,
)
from decision_router.core.spec_model import (
    DecisionSpec, OutcomeDefinition, TraitDefinition,
)
from decision_router.core.trait_values import TraitMap, describe


@dataclass(frozen=True)
class SamplingSettings:
    max_tokens: int
    temperature: float


PARSE_SAMPLING: dict[AnswerType, SamplingSettings] = {
    AnswerType.INTEGER: SamplingSettings(max_tokens=20, temperature=0.1),
    AnswerType.INTEGER_LIST: SamplingSettings(max_tokens=50, temperature=0.1),
    AnswerType.STRING: SamplingSettings(max_tokens=100, temperature=0.3),
    AnswerType.ENUM: SamplingSettings(max_tokens=50, temperature=0.3),
    AnswerType.ENUM_LIST: SamplingSettings(max_tokens=150, temperature=0.3),
}
QUESTION_SAMPLING = SamplingSettings(max_tokens=150, temperature=0.7)
CLARIFIER_SAMPLING = SamplingSettings(max_tokens=150, temperature=0.7)
WINNER_SAMPLING = SamplingSettings(max_tokens=200, temperature=0.3)


# ─── Trait parsing ───────────────────────────────────────────────

INTEGER_SYSTEM_PROMPT = """You are a number extractor. Your task is to extract a single integer from natural language input.

Rules:
- Extract ONLY the number, nothing else
- Convert written numbers to digits (e.g., 'six' -> 6, 'about 6' -> 6)
- If multiple numbers are mentioned, extract the most relevant one
- If no number can be determined, return 'NONE'
- Return ONLY the integer or 'NONE'"""

INTEGER_LIST_SYSTEM_PROMPT = f"""You are a number list extractor. Your task is to extract multiple integers from natural language input.

Rules:
- Extract ALL numbers mentioned
- Convert written numbers to digits (e.g., 'thirty-five' -> 35)
- Convert approximate ranges to single numbers (e.g., 'mid-thirties' -> 35)
- Return a comma-separated list: e.g., '8, 10, 35, 40'
- If no numbers can be determined, return 'NONE'
- Each number must be {INTEGER_LIST_MIN}-{INTEGER_LIST_MAX}"""

STRING_SYSTEM_PROMPT = """You are a text cleaner. Your task is to extract the relevant answer from the user's input according to the parse hint.

Rules:
- Return ONLY the cleaned answer text, without quotes or commentary
- Keep the user's meaning; remove filler words and pleasantries
- If the input does not answer the question at all, return 'INVALID'"""

ENUM_SYSTEM_PROMPT = """You are a parser that extracts structured values from user input.
Your task: map the user's natural language input to one of the expected enum values.

Rules:
- Return ONLY the enum value (uppercase, snake_case)
- If the input doesn't clearly match any option, return 'UNKNOWN'
- Be generous in interpretation but accurate"""

ENUM_LIST_SYSTEM_PROMPT = """You are a parser that extracts structured values from user input.
Your task: map the user's natural language input to every expected enum value it mentions.

Rules:
- Return a comma-separated list of enum values (uppercase, snake_case)
- Include each value at most once
- If the input doesn't clearly match any option, return 'UNKNOWN'"""

PARSE_SYSTEM_PROMPTS: dict[AnswerType, str] = {
    AnswerType.INTEGER: INTEGER_SYSTEM_PROMPT,
    AnswerType.INTEGER_LIST: INTEGER_LIST_SYSTEM_PROMPT,
    AnswerType.STRING: STRING_SYSTEM_PROMPT,
    AnswerType.ENUM: ENUM_SYSTEM_PROMPT,
    AnswerType.ENUM_LIST: ENUM_LIST_SYSTEM_PROMPT,
}

_PARSE_INSTRUCTIONS: dict[AnswerType, str] = {
    AnswerType.INTEGER: "Extract the integer:",
    AnswerType.INTEGER_LIST: "Extract the list of integers (comma-separated):",
    AnswerType.STRING: "Return the cleaned answer:",
    AnswerType.ENUM: "Return the appropriate enum value:",
    AnswerType.ENUM_LIST: "Return the appropriate enum values (comma-separated):",
}


def build_parse_prompt(answer_type: AnswerType, parse_hint: str, raw_input: str) -> str:
    return (
        f"Parse hint: {parse_hint}\n"
        f"User input: \"{raw_input}\"\n\n"
        f"{_PARSE_INSTRUCTIONS[answer_type]}"
    )


# ─── Outcome summary ─────────────────────────────────────────────

SUMMARY_SYSTEM_PROMPT = """You explain recommendations from a decision-routing assistant.
Write ONE short, friendly paragraph explaining why the recommendation fits the user.
Reference the facts the user provided. Do not invent facts. Do not use lists or headings."""


def build_summary_prompt(
    spec: DecisionSpec, outcome: OutcomeDefinition, known_traits: TraitMap,
) -> str:
    facts = "\n".join(
        f"- {key}: {describe(value)}" for key, value in known_traits.items()
    ) or "- (none)"
    preamble = f"Safety guidelines: {spec.safety_preamble}\n\n" if spec.safety_preamble else ""
    return (
        f"{preamble}"
        f"Recommendation: {outcome.outcome_id}: {outcome.summary}\n"
        f"Known facts:\n{facts}\n\n"
        "Write the justification paragraph:"
    )


# ─── Tie resolution ──────────────────────────────────────────────

WINNER_SYSTEM_PROMPT = """You resolve ties between equally valid recommendations using the user's clarifying answer.

Reply in EXACTLY this format:
WINNER: <one outcome id from the list>
SUMMARY: <one sentence explaining the choice>"""

CLARIFIER_SYSTEM_PROMPT = """You write ONE clarifying question that helps a user choose between equally valid recommendations.

Reply in EXACTLY this format:
QUESTION: <the question>
TYPE: text|enum|enum_list
OPTIONS: <comma-separated options, only for enum or enum_list>"""

_DEFAULT_CLARIFIER_TEMPLATE = (
    "These recommendations all fit the user equally well:\n{{summaries}}\n\n"
    "Ask one question whose answer would pick exactly one of them."
)


def format_outcome_summaries(outcomes: list[OutcomeDefinition]) -> str:
    return "\n".join(f"- {o.outcome_id}: {o.summary}" for o in outcomes)


def build_winner_prompt(tied: list[OutcomeDefinition], clarifier_answers: list[str]) -> str:
    answers = "\n".join(f"- {a}" for a in clarifier_answers)
    return (
        f"Tied recommendations:\n{format_outcome_summaries(tied)}\n\n"
        f"User's clarifying answer:\n{answers}\n\n"
        "Pick the winner:"
    )


def build_clarifier_prompt(
    template: str, tied: list[OutcomeDefinition], known_traits: TraitMap,
) -> str:
    body = (template or _DEFAULT_CLARIFIER_TEMPLATE).replace(
        "{{summaries}}", format_outcome_summaries(tied),
    )
    facts = ", ".join(f"{k}={describe(v)}" for k, v in known_traits.items())
    return f"{body}\n\nAlready known: {facts or 'nothing'}"


# ─── Question generation ─────────────────────────────────────────

def build_question_system_prompt(
    spec: DecisionSpec, trait: TraitDefinition, retry_attempt: int,
) -> str:
    lines = [
        "You are a helpful assistant generating clear, concise questions "
        "for a decision-making system.",
        "",
        f"Safety Guidelines: {spec.safety_preamble}",
        "",
        "Your task:",
        "- Generate a natural, conversational question to collect information",
        "- Keep it brief and easy to understand",
        "- Make it sound friendly but professional",
        f"- The question should collect: {trait.answer_type.value}",
    ]
    if trait.bounds:
        lines.append(f"- Valid range: {trait.bounds.min} to {trait.bounds.max}")
    if retry_attempt > 0:
        lines.append(
            "- This is a retry after invalid input, so rephrase to be clearer "
            "about what format is needed",
        )
    lines += ["", "Return ONLY the question text, nothing else."]
    return "\n".join(lines)


def build_question_user_prompt(trait: TraitDefinition, retry_attempt: int) -> str:
    if retry_attempt > 0:
        return (
            "The user gave invalid input for this question. Generate a rephrased "
            "version that's clearer about the expected format.\n\n"
            f"Base question: {trait.question_text}\n"
            f"Expected format: {trait.parse_hint}\n"
            f"Retry attempt: {retry_attempt}\n\n"
            "Generate a rephrased question that helps the user understand what "
            "format is needed."
        )
    context = {
        "trait_key": trait.key,
        "base_question": trait.question_text,
        "answer_type": trait.answer_type.value,
        "parse_hint": trait.parse_hint,
        "options": list(trait.options),
    }
    return (
        "Generate a natural, conversational version of this question:\n\n"
        f"Base question: {trait.question_text}\n"
        f"Context: {json.dumps(context)}\n\n"
        "Make it sound friendly and easy to understand while collecting the "
        "same information."
    )

"""Trait Parser: free-form user input -> typed trait value.

Invariants:
    - Blank input is invalid for every answer type
    - Deterministic fast path first; the language model is consulted only when
      the fast path finds nothing (integer, integer_list, enum) or to clean
      text (string with a parse hint) or split lists (enum_list)
    - Validation history is read only for diagnostic logging
    - parse() never raises: unexpected errors become an invalid result

Design Decisions:
    - Each LLM branch degrades to the deterministic result or a user-facing
      error reason, so an unavailable or failing model changes quality, never
      correctness
    - Bounds are checked after parsing so fast path and LLM answers share them
"""

import asyncio
import logging

from decision_router.core.domain_types import (
    INTEGER_LIST_MAX, INTEGER_LIST_MIN, AnswerType, LLMErrorType,
)
from decision_router.core.input_extraction import (
    enum_vocabulary, extract_bounded_integers, extract_integers,
    match_enum_keyword, split_enum_list,
)
from decision_router.core.llm_replies import (
    SENTINEL_INVALID, SENTINEL_UNKNOWN,
    parse_enum_list_reply, parse_enum_reply, parse_integer_list_reply,
    parse_integer_reply, parse_string_reply,
)
from decision_router.core.protocols import CompletionResult, LanguageModel
from decision_router.core.results import TraitParseResult
from decision_router.core.session_state import ConversationSession
from decision_router.core.spec_model import TraitBounds, TraitDefinition
from decision_router.core.trait_values import (
    IntListValue, IntValue, TextListValue, TextValue,
)
from decision_router.services.llm_prompts import (
    PARSE_SAMPLING, PARSE_SYSTEM_PROMPTS, build_parse_prompt,
)

logger = logging.getLogger(__name__)

MSG_EMPTY = "Please provide a response."
MSG_NO_NUMBER = "Could not find a number in your response."
MSG_NO_AGES = (
    f"Could not find valid ages in your response. Please list ages as numbers "
    f"({INTEGER_LIST_MIN}-{INTEGER_LIST_MAX})."
)
MSG_NOT_UNDERSTOOD = (
    "Could not understand your response. Please try rephrasing or choose one "
    "of the suggested options."
)
MSG_NO_SELECTION = "Please select at least one option."
MSG_UNEXPECTED = "Unexpected error parsing input"


class TraitParser:
    """Parses one answer for one trait."""

    def __init__(self, llm: LanguageModel):
        self.llm = llm

    async def parse_for_trait(
        self,
        raw_input: str,
        trait: TraitDefinition,
        session: ConversationSession | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> TraitParseResult:
        return await self.parse(
            raw_input, trait.key, trait.answer_type, trait.parse_hint, session,
            bounds=trait.bounds, options=trait.options, cancel=cancel,
        )

    async def parse(
        self,
        raw_input: str | None,
        trait_key: str,
        answer_type: AnswerType | str,
        parse_hint: str,
        session: ConversationSession | None = None,
        *,
        bounds: TraitBounds | None = None,
        options: tuple[str, ...] = (),
        cancel: asyncio.Event | None = None,
    ) -> TraitParseResult:
        if session is not None:
            prior = len(session.failures_for(trait_key))
            if prior:
                logger.debug(
                    f"Parsing '{trait_key}' after {prior} prior failure(s)",
                    extra={"session_id": session.session_id, "trait_key": trait_key},
                )

        text = (raw_input or "").strip()
        if not text:
            return TraitParseResult.invalid(MSG_EMPTY)

        try:
            kind = AnswerType.normalize(answer_type)
        except ValueError:
            return TraitParseResult.invalid(f"Unsupported answer type: {answer_type}")

        try:
            match kind:
                case AnswerType.INTEGER:
                    result = await self._parse_integer(text, parse_hint, cancel)
                case AnswerType.INTEGER_LIST:
                    result = await self._parse_integer_list(text, parse_hint, cancel)
                case AnswerType.STRING:
                    result = await self._parse_string(text, parse_hint, cancel)
                case AnswerType.ENUM:
                    result = await self._parse_enum(text, parse_hint, options, cancel)
                case AnswerType.ENUM_LIST:
                    result = await self._parse_enum_list(text, parse_hint, options, cancel)
        except Exception as e:
            logger.error(
                f"Error parsing trait {trait_key}: {e}", exc_info=True,
                extra={"trait_key": trait_key},
            )
            return TraitParseResult.invalid(MSG_UNEXPECTED)

        if result.is_valid and bounds is not None:
            result = _check_bounds(result, bounds)
        if not result.is_valid:
            logger.info(
                f"Rejected input for '{trait_key}': {result.error_reason}",
                extra={"trait_key": trait_key},
            )
        return result

    # ─── Per-type parsers ────────────────────────────────────────

    async def _parse_integer(
        self, text: str, parse_hint: str, cancel: asyncio.Event | None,
    ) -> TraitParseResult:
        numbers = extract_integers(text)
        if numbers:
            return TraitParseResult.valid(IntValue(numbers[0]))

        reply = await self._ask(AnswerType.INTEGER, parse_hint, text, cancel)
        value = parse_integer_reply(reply.text) if reply.success else None
        if value is None:
            return TraitParseResult.invalid(MSG_NO_NUMBER)
        logger.info(f"LLM parsed integer value {value}")
        return TraitParseResult.valid(IntValue(value))

    async def _parse_integer_list(
        self, text: str, parse_hint: str, cancel: asyncio.Event | None,
    ) -> TraitParseResult:
        numbers = extract_bounded_integers(text, INTEGER_LIST_MIN, INTEGER_LIST_MAX)
        if numbers:
            return TraitParseResult.valid(IntListValue(tuple(numbers)))

        reply = await self._ask(AnswerType.INTEGER_LIST, parse_hint, text, cancel)
        values = parse_integer_list_reply(reply.text) if reply.success else None
        if not values:
            return TraitParseResult.invalid(MSG_NO_AGES)
        logger.info(f"LLM parsed {len(values)} integers")
        return TraitParseResult.valid(IntListValue(tuple(values)))

    async def _parse_string(
        self, text: str, parse_hint: str, cancel: asyncio.Event | None,
    ) -> TraitParseResult:
        if not parse_hint.strip() or not self.llm.is_available():
            return TraitParseResult.valid(TextValue(text))

        reply = await self._ask(AnswerType.STRING, parse_hint, text, cancel)
        if not reply.success:
            return TraitParseResult.valid(TextValue(text))
        if _is_sentinel(reply.text, SENTINEL_INVALID):
            return TraitParseResult.invalid(MSG_NOT_UNDERSTOOD)
        return TraitParseResult.valid(TextValue(parse_string_reply(reply.text) or text))

    async def _parse_enum(
        self,
        text: str,
        parse_hint: str,
        options: tuple[str, ...],
        cancel: asyncio.Event | None,
    ) -> TraitParseResult:
        keyword = match_enum_keyword(text, parse_hint, options)
        if keyword:
            logger.debug(f"Keyword enum match: {keyword}")
            return TraitParseResult.valid(TextValue(keyword))

        reply = await self._ask(AnswerType.ENUM, parse_hint, text, cancel)
        token = parse_enum_reply(reply.text) if reply.success else None
        if token is None:
            return TraitParseResult.invalid(MSG_NOT_UNDERSTOOD)

        allowed = enum_vocabulary(parse_hint, options).tokens
        if allowed and token not in allowed:
            logger.warning(f"LLM returned undeclared enum value '{token}'")
            return TraitParseResult.invalid(MSG_NOT_UNDERSTOOD)
        return TraitParseResult.valid(TextValue(token))

    async def _parse_enum_list(
        self,
        text: str,
        parse_hint: str,
        options: tuple[str, ...],
        cancel: asyncio.Event | None,
    ) -> TraitParseResult:
        allowed = enum_vocabulary(parse_hint, options).tokens

        reply = await self._ask(AnswerType.ENUM_LIST, parse_hint, text, cancel)
        if reply.success and _is_sentinel(reply.text, SENTINEL_UNKNOWN):
            return TraitParseResult.invalid(MSG_NOT_UNDERSTOOD)

        tokens = parse_enum_list_reply(reply.text) if reply.success else None
        if tokens is None:
            tokens = split_enum_list(text)
            if not tokens:
                return TraitParseResult.invalid(MSG_NO_SELECTION)

        if allowed:
            tokens = [t for t in tokens if t in allowed]
            if not tokens:
                return TraitParseResult.invalid(MSG_NOT_UNDERSTOOD)
        return TraitParseResult.valid(TextListValue(tuple(tokens)))

    async def _ask(
        self,
        answer_type: AnswerType,
        parse_hint: str,
        text: str,
        cancel: asyncio.Event | None,
    ) -> CompletionResult:
        if not self.llm.is_available():
            return CompletionResult.failure(
                LLMErrorType.UNAVAILABLE, "Language model is not available",
            )
        sampling = PARSE_SAMPLING[answer_type]
        reply = await self.llm.complete(
            PARSE_SYSTEM_PROMPTS[answer_type],
            build_parse_prompt(answer_type, parse_hint, text),
            max_tokens=sampling.max_tokens,
            temperature=sampling.temperature,
            cancel=cancel,
        )
        if not reply.success:
            logger.warning(
                f"LLM {answer_type.value} parse failed: {reply.error_message}",
                extra={"error_type": reply.error_type.value if reply.error_type else None},
            )
        return reply


def _is_sentinel(text: str | None, sentinel: str) -> bool:
    return (text or "").strip().strip("\"'`.").upper() == sentinel


def _check_bounds(result: TraitParseResult, bounds: TraitBounds) -> TraitParseResult:
    match result.value:
        case IntValue(value=number) if not bounds.contains(number):
            return TraitParseResult.invalid(
                f"Please enter a number between {bounds.min} and {bounds.max}.",
            )
        case IntListValue(values=numbers) if not all(bounds.contains(n) for n in numbers):
            return TraitParseResult.invalid(
                f"Please enter values between {bounds.min} and {bounds.max}.",
            )
    return result

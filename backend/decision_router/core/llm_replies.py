"""LLM Replies: pure parsers for the text formats the prompts ask the model for.

Invariants:
    - Every parser returns None for a sentinel (NONE / INVALID / UNKNOWN) or an
      unusable reply; none of them raise
    - Line-prefixed formats (WINNER:, SUMMARY:, QUESTION:, TYPE:, OPTIONS:) are
      matched case-insensitively, first occurrence wins
"""

import re
from dataclasses import dataclass

from decision_router.core.domain_types import (
    INTEGER_LIST_MAX, INTEGER_LIST_MIN, AnswerType,
)
from decision_router.core.input_extraction import dedupe, normalize_enum_token

SENTINEL_NONE = "NONE"
SENTINEL_INVALID = "INVALID"
SENTINEL_UNKNOWN = "UNKNOWN"

_SIGNED_INT = re.compile(r"^[+-]?\d+$")


def _clean(text: str | None) -> str:
    # Models sometimes wrap the bare answer in quotes or end it with a period
    return (text or "").strip().rstrip(".").strip().strip("\"'`").strip()


def parse_integer_reply(text: str | None) -> int | None:
    reply = _clean(text)
    if not reply or reply.upper() == SENTINEL_NONE:
        return None
    return int(reply) if _SIGNED_INT.match(reply) else None


def parse_integer_list_reply(
    text: str | None,
    lower: int = INTEGER_LIST_MIN,
    upper: int = INTEGER_LIST_MAX,
) -> list[int] | None:
    reply = _clean(text)
    if not reply or reply.upper() == SENTINEL_NONE:
        return None
    numbers = [
        int(part.strip()) for part in reply.split(",")
        if _SIGNED_INT.match(part.strip())
    ]
    numbers = [n for n in numbers if lower <= n <= upper]
    return numbers or None


def parse_string_reply(text: str | None) -> str | None:
    reply = _clean(text)
    if not reply or reply.upper() == SENTINEL_INVALID:
        return None
    return reply


def parse_enum_reply(text: str | None) -> str | None:
    token = normalize_enum_token(_clean(text))
    if not token or token == SENTINEL_UNKNOWN:
        return None
    return token


def parse_enum_list_reply(text: str | None) -> list[str] | None:
    reply = _clean(text)
    if not reply or reply.upper() == SENTINEL_UNKNOWN:
        return None
    tokens = dedupe([normalize_enum_token(p) for p in reply.split(",")])
    tokens = [t for t in tokens if t != SENTINEL_UNKNOWN]
    return tokens or None


# ─── Line-prefixed replies ───────────────────────────────────────

def _line_value(text: str, prefix: str) -> str | None:
    wanted = prefix.upper() + ":"
    for line in (text or "").splitlines():
        stripped = line.strip()
        if stripped.upper().startswith(wanted):
            return stripped[len(wanted):].strip()
    return None


@dataclass(frozen=True)
class WinnerReply:
    winner_id: str
    summary: str | None


def parse_winner_reply(text: str | None) -> WinnerReply | None:
    """Parse `WINNER: <id>` and optional `SUMMARY: <text>` lines."""
    winner = _line_value(text or "", "WINNER")
    if not winner:
        return None
    summary = _line_value(text or "", "SUMMARY")
    return WinnerReply(winner_id=winner.strip("\"'`"), summary=summary or None)


@dataclass(frozen=True)
class ClarifierReply:
    question: str
    answer_type: AnswerType
    options: tuple[str, ...]


def parse_clarifier_reply(text: str | None) -> ClarifierReply | None:
    """Parse QUESTION / TYPE / OPTIONS lines.

    TYPE defaults to text. An enum or enum_list TYPE without OPTIONS is
    downgraded to text so the user is never asked to pick from nothing.
    """
    question = _line_value(text or "", "QUESTION")
    if not question:
        return None

    raw_type = _line_value(text or "", "TYPE") or "text"
    try:
        answer_type = AnswerType.normalize(raw_type)
    except ValueError:
        answer_type = AnswerType.STRING
    if answer_type not in (AnswerType.STRING, AnswerType.ENUM, AnswerType.ENUM_LIST):
        answer_type = AnswerType.STRING

    raw_options = _line_value(text or "", "OPTIONS") or ""
    options = tuple(o.strip() for o in raw_options.split(",") if o.strip())
    if not options:
        answer_type = AnswerType.STRING

    return ClarifierReply(question=question, answer_type=answer_type, options=options)

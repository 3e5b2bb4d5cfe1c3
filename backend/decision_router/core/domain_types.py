"""Domain Types: enums and constants shared across the routing engine.

Invariants:
    - All valid states encoded as Enums, no raw string matching downstream
    - AnswerType.normalize accepts the hyphenated and "text" spellings found in
      hand-written spec documents
    - CLARIFIER_KEY_PREFIX marks runtime-generated clarifier traits

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Constants ───────────────────────────────────────────────────

# Known-trait keys with this prefix belong to LLM-generated clarifier questions
CLARIFIER_KEY_PREFIX = "llm_clarifier_"

# Age bound applied by the integer_list fast path and its LLM fallback
INTEGER_LIST_MIN = 0
INTEGER_LIST_MAX = 120


# ─── Enums ───────────────────────────────────────────────────────

class AnswerType(str, Enum):
    """Value shape a trait collects."""
    STRING = "string"
    INTEGER = "integer"
    INTEGER_LIST = "integer_list"
    ENUM = "enum"
    ENUM_LIST = "enum_list"

    @classmethod
    def normalize(cls, raw: str) -> "AnswerType":
        """Map spec spellings ("text", "integer-list", "Enum") onto a member."""
        value = raw.strip().lower().replace("-", "_")
        if value == "text":
            value = "string"
        return cls(value)


class RoutingState(str, Enum):
    """Routing state machine states."""
    COLLECTING = "COLLECTING"
    TIE_PENDING = "TIE_PENDING"
    COMPLETE = "COMPLETE"


class ResolutionMode(str, Enum):
    """Which algorithmic path produced an evaluation result."""
    IMMEDIATE = "IMMEDIATE"
    SINGLE_MATCH = "SINGLE_MATCH"
    LLM_RESOLVED = "LLM_RESOLVED"
    PSEUDO_TRAIT_CLARIFIER = "PSEUDO_TRAIT_CLARIFIER"
    LLM_CLARIFIER = "LLM_CLARIFIER"
    TIE_FALLBACK = "TIE_FALLBACK"
    FALLBACK = "FALLBACK"


class TieMode(str, Enum):
    """Tie strategy modes. Anything but LLM_CLARIFIER resolves ties immediately."""
    LLM_CLARIFIER = "LLM_CLARIFIER"
    NONE = "NONE"


class QuestionType(str, Enum):
    """How a question is rendered to the end user."""
    TEXT = "text"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"


class LLMErrorType(str, Enum):
    """Failure categories reported by a LanguageModel completion."""
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    RATE_LIMIT = "rate_limit"
    CONNECTION_ERROR = "connection_error"
    CLIENT_ERROR = "client_error"
    EMPTY_RESPONSE = "empty_response"
    UNKNOWN = "unknown"

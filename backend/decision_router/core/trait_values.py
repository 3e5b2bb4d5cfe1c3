"""Trait Values: tagged union of the value shapes a trait can hold.

Invariants:
    - A known trait is exactly one of TextValue, IntValue, IntListValue, TextListValue
    - Values are frozen; lists are stored as tuples
    - bool is never accepted as an integer

Design Decisions:
    - Frozen dataclasses over bare object map entries: rule and derived
      evaluation match on the variant instead of probing runtime types
    - to_plain / trait_value_from_plain are the only JSON boundary crossings
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TextValue:
    value: str


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class IntListValue:
    values: tuple[int, ...]


@dataclass(frozen=True)
class TextListValue:
    values: tuple[str, ...]


TraitValue = Union[TextValue, IntValue, IntListValue, TextListValue]

# Known-trait map for one conversation session
TraitMap = dict[str, TraitValue]


def to_plain(value: TraitValue) -> str | int | list[int] | list[str]:
    """Convert a trait value into a JSON-friendly primitive."""
    match value:
        case TextValue(value=text):
            return text
        case IntValue(value=number):
            return number
        case IntListValue(values=numbers):
            return list(numbers)
        case TextListValue(values=texts):
            return list(texts)
    raise TypeError(f"Not a trait value: {value!r}")


def trait_value_from_plain(raw: Any) -> TraitValue:
    """Build a trait value from a JSON primitive. Raises TypeError on other shapes."""
    if isinstance(raw, bool):
        raise TypeError("Boolean trait values are not supported")
    if isinstance(raw, int):
        return IntValue(raw)
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, (list, tuple)):
        items = list(raw)
        if all(isinstance(i, int) and not isinstance(i, bool) for i in items):
            return IntListValue(tuple(items))
        if all(isinstance(i, str) for i in items):
            return TextListValue(tuple(items))
    raise TypeError(f"Unsupported trait value: {raw!r}")


def plain_trait_map(traits: TraitMap) -> dict[str, Any]:
    return {key: to_plain(value) for key, value in traits.items()}


def is_blank(value: TraitValue) -> bool:
    """True when a value carries no usable answer (empty text or empty list)."""
    match value:
        case TextValue(value=text):
            return not text.strip()
        case IntListValue(values=numbers):
            return not numbers
        case TextListValue(values=texts):
            return not any(t.strip() for t in texts)
    return False


def describe(value: TraitValue) -> str:
    """Human-readable rendering used in prompts and log lines."""
    plain = to_plain(value)
    if isinstance(plain, list):
        return ", ".join(str(v) for v in plain)
    return str(plain)

"""Rule Grammar: compiles rule and derived-expression strings into a small AST.

Invariants:
    - Rule form: <traitKey> <op> <value>, op one of ==, >=, <=, >, <
    - Operators are matched in that precedence order so >= and <= are never
      split by > or <
    - Derived form: min(K), max(K), count(K >= N); nothing else is recognized
    - Compilation never raises: bad input yields MalformedRule / UnsupportedExpression

Design Decisions:
    - Compiled once when the spec is built, evaluated many times
    - Literal kept as int | None: a non-numeric literal compiles but always
      evaluates false
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union


class ComparisonOp(str, Enum):
    EQ = "=="
    GE = ">="
    LE = "<="
    GT = ">"
    LT = "<"


# Order matters: two-character operators first
_OPERATOR_PRECEDENCE = (
    ComparisonOp.EQ, ComparisonOp.GE, ComparisonOp.LE,
    ComparisonOp.GT, ComparisonOp.LT,
)

_TRAIT_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
_INT_LITERAL = re.compile(r"^[+-]?\d+$")
_OPERATOR_CHARS = set("=<>")


@dataclass(frozen=True)
class Comparison:
    """Parsed `<trait> <op> <literal>` rule."""
    source: str
    trait: str
    op: ComparisonOp
    literal: int | None
    raw_literal: str


@dataclass(frozen=True)
class MalformedRule:
    source: str
    reason: str


CompiledRule = Union[Comparison, MalformedRule]


def compile_rule(rule: str) -> CompiledRule:
    """Compile a rule string. First operator found in precedence order splits it."""
    text = (rule or "").strip()
    if not text:
        return MalformedRule(source=rule, reason="empty rule")

    op = next((o for o in _OPERATOR_PRECEDENCE if o.value in text), None)
    if op is None:
        return MalformedRule(source=rule, reason="no comparison operator")

    left, _, right = text.partition(op.value)
    trait, raw_literal = left.strip(), right.strip()

    if not trait or not raw_literal:
        return MalformedRule(source=rule, reason="missing operand")
    if not _TRAIT_KEY.match(trait):
        return MalformedRule(source=rule, reason=f"invalid trait key '{trait}'")
    if _OPERATOR_CHARS & set(raw_literal):
        return MalformedRule(source=rule, reason="more than one operator")

    literal = int(raw_literal) if _INT_LITERAL.match(raw_literal) else None
    return Comparison(
        source=rule, trait=trait, op=op,
        literal=literal, raw_literal=raw_literal,
    )


# ─── Derived expressions ─────────────────────────────────────────

class DerivedKind(str, Enum):
    MIN = "min"
    MAX = "max"
    COUNT_AT_LEAST = "count"


_MIN_MAX = re.compile(r"^(min|max)\(\s*([A-Za-z_][A-Za-z0-9_\-]*)\s*\)$")
_COUNT = re.compile(
    r"^count\(\s*([A-Za-z_][A-Za-z0-9_\-]*)\s*>=\s*([+-]?\d+)\s*\)$",
)


@dataclass(frozen=True)
class DerivedExpression:
    source: str
    kind: DerivedKind
    source_trait: str
    threshold: int | None = None


@dataclass(frozen=True)
class UnsupportedExpression:
    source: str


CompiledExpression = Union[DerivedExpression, UnsupportedExpression]


def compile_derived_expression(expression: str) -> CompiledExpression:
    """Match the expression against the three supported forms."""
    text = (expression or "").strip()

    match = _MIN_MAX.match(text)
    if match:
        return DerivedExpression(
            source=expression,
            kind=DerivedKind(match.group(1)),
            source_trait=match.group(2),
        )

    match = _COUNT.match(text)
    if match:
        return DerivedExpression(
            source=expression,
            kind=DerivedKind.COUNT_AT_LEAST,
            source_trait=match.group(1),
            threshold=int(match.group(2)),
        )

    return UnsupportedExpression(source=expression)

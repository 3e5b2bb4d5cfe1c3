"""Spec Validation — tests for load-time structural checks and warnings.

Tests cover:
    - The bundled spec is clean
    - Duplicate keys / outcome ids, dangling references, inverted bounds
    - Authoring warnings (malformed rules, unsupported expressions, fallback keys)
"""

from decision_router.core.domain_types import AnswerType
from decision_router.core.spec_validation import spec_warnings, validate_spec

from tests.spec_builders import make_spec, outcome, trait


def test_bundled_spec_is_valid(family_spec):
    assert validate_spec(family_spec) == []
    assert spec_warnings(family_spec) == []


def test_empty_spec():
    problems = validate_spec(make_spec([], []))
    assert "at least one trait is required" in problems
    assert "at least one outcome is required" in problems


def test_duplicate_keys_across_traits_and_derived():
    spec = make_spec(
        [trait("age"), trait("age")], [outcome("A", "age > 1"), outcome("A", "age > 2")],
        derived={"age": "min(age)"},
    )
    problems = validate_spec(spec)
    assert "duplicate trait key 'age'" in problems
    assert "duplicate outcome id 'A'" in problems


def test_dangling_references():
    setting = trait(
        "setting", AnswerType.ENUM, pseudo=True, mapping={"X": ("MISSING",)},
    )
    spec = make_spec(
        [trait("ages", depends_on=("size",), bounds=(10, 1))],
        [outcome("A", "ages > 1"), outcome("B")],
        immediate=[("NOWHERE", "ages > 100")],
        pseudo_traits=[setting],
    )
    problems = validate_spec(spec)
    assert "trait 'ages' depends on unknown trait 'size'" in problems
    assert "trait 'ages' has min bound above max bound" in problems
    assert "outcome 'B' has no selection rules" in problems
    assert "immediate rule targets unknown outcome 'NOWHERE'" in problems
    assert "pseudo-trait 'setting' maps to unknown outcome 'MISSING'" in problems


def test_authoring_issues_are_warnings_only():
    spec = make_spec(
        [trait("age")], [outcome("A", "age 18")],
        derived={"avg_age": "avg(age)"},
        fallback_order=("budget",),
    )
    assert validate_spec(spec) == []
    warnings = spec_warnings(spec)
    assert len(warnings) == 3
    assert any("no comparison operator" in w for w in warnings)
    assert any("avg_age" in w for w in warnings)
    assert "fallback trait 'budget' is not defined" in warnings

"""Root conftest — shared test configuration and spec fixtures."""

import os
from pathlib import Path

import pytest

# Placeholder key: the language model stays disabled unless a test injects one
os.environ["ANTHROPIC_API_KEY"] = "placeholder-test-key"

from decision_router.core.spec_model import DecisionSpec  # noqa: E402
from decision_router.schemas.decision_spec import DecisionSpecDocument  # noqa: E402

SPECS_DIR = Path(__file__).resolve().parents[1] / "specs"
FAMILY_SPEC_FILE = SPECS_DIR / "FAMILY_SATURDAY_V1.1.0.0.active.json"


@pytest.fixture
def specs_dir() -> Path:
    return SPECS_DIR


@pytest.fixture
def family_spec_json() -> str:
    return FAMILY_SPEC_FILE.read_text(encoding="utf-8")


@pytest.fixture
def family_spec(family_spec_json) -> DecisionSpec:
    """The bundled FAMILY_SATURDAY_V1 spec, compiled."""
    return DecisionSpecDocument.model_validate_json(family_spec_json).to_domain()

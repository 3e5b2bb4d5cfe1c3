"""Service test fixtures — language model doubles and in-memory collaborators.

Invariants:
    - Every test gets fresh fakes; no state leaks between tests
    - disabled_llm never answers; fake_llm answers from its script

Design Decisions:
    - Fakes over patching: services take the LanguageModel by constructor, so
      tests inject it instead of monkeypatching module attributes
"""

import pytest

from tests.services.fake_language_model import FakeLanguageModel
from tests.spec_builders import StaticSpecSource


@pytest.fixture
def fake_llm():
    return FakeLanguageModel()


@pytest.fixture
def disabled_llm():
    return FakeLanguageModel(available=False)


@pytest.fixture
def spec_source(family_spec):
    return StaticSpecSource(family_spec)

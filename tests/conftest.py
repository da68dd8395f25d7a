"""Shared pytest fixtures for the lesson conversation tests."""

from __future__ import annotations

import pytest

from agents.factory import build_orchestrator
from services.collaborators import IntentClassifier
from tests.fakes import FakeGenerator, FakeRewriter, FakeSummarizer


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def rewriter() -> FakeRewriter:
    return FakeRewriter()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def make_orchestrator(generator, rewriter, summarizer):
    """Factory fixture: orchestrator over fakes, classifier chosen per test."""

    def _make(classifier: IntentClassifier, **overrides):
        return build_orchestrator(
            classifier=classifier,
            generator=overrides.get("generator", generator),
            rewriter=overrides.get("rewriter", rewriter),
            summarizer=overrides.get("summarizer", summarizer),
        )

    return _make

"""Global test fixtures for gh-feedback."""

from __future__ import annotations

import logging

import pytest
from helpers.fake_github import FakeGitHub


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo ``configure_logging`` so caplog sees ``ghfeedback`` records in every test."""
    yield
    logger = logging.getLogger("ghfeedback")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _no_token_env(monkeypatch):
    """Keep a developer's real token out of tests."""
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()

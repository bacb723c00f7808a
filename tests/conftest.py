"""Shared test fixtures for PRHawk."""

from __future__ import annotations

import pytest

from tests.fakes import BASE_SHA, HEAD_SHA, REPO, FakeGitHub, FakeOracle


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def pr_payload() -> dict:
    """A trimmed pull_request.opened webhook payload."""
    return {
        "action": "opened",
        "number": 7,
        "repository": {"full_name": REPO, "name": "app"},
        "pull_request": {
            "number": 7,
            "title": "Refactor cart",
            "base": {"sha": BASE_SHA, "ref": "main"},
            "head": {"sha": HEAD_SHA, "ref": "feature/cart"},
        },
        "sender": {"login": "octocat"},
    }


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's $PRHAWK_CONFIG out of the tests."""
    monkeypatch.delenv("PRHAWK_CONFIG", raising=False)

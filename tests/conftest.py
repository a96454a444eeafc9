"""
Shared fixtures for the test suite.

Why: Worker and service tests need the same collaborators and token setup
What: Provides fake collaborators and a clean GitHub token environment
How: Builds in-memory fakes from tests.fixtures.fakes
"""

import pytest

from tests.fixtures.fakes import (
    FakeNotificationService,
    FakePullRequestService,
    FakeSettingsStore,
)


@pytest.fixture
def fake_service() -> FakePullRequestService:
    return FakePullRequestService()


@pytest.fixture
def fake_settings_store() -> FakeSettingsStore:
    return FakeSettingsStore()


@pytest.fixture
def fake_notifications() -> FakeNotificationService:
    return FakeNotificationService()


@pytest.fixture
def clean_token_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove GitHub tokens from the environment."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    return monkeypatch

"""Test configuration and fixtures."""

from __future__ import annotations

import io
from unittest.mock import Mock

import pytest

from gh_subissue.github.api import GitHubAPI
from gh_subissue.repository import TargetRepository


@pytest.fixture
def repository() -> TargetRepository:
    """Provide the repository every command test operates on."""
    return TargetRepository(owner="octo-org", name="octo-repo")


@pytest.fixture
def out() -> io.StringIO:
    """Capture command output."""
    return io.StringIO()


@pytest.fixture
def client() -> Mock:
    """Provide an API client double honouring the `GitHubAPI` contract."""
    return Mock(spec=GitHubAPI)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GH_TOKEN",
        "GITHUB_TOKEN",
        "GH_ENTERPRISE_TOKEN",
        "GITHUB_ENTERPRISE_TOKEN",
        "GH_DEBUG",
        "GH_FORCE_TTY",
        "GH_REPO",
        "GH_SUBISSUE_VALIDATE_PARENT",
        "GH_SUBISSUE_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)

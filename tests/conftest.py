"""Shared fixtures for the plugin tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from vela_slack.models import BuildContext

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def testdata() -> Path:
    """Directory holding sample attachment documents."""
    return TESTDATA


@pytest.fixture
def build_context() -> BuildContext:
    """Create a populated build context."""
    return BuildContext(
        build_author="jdoe",
        build_author_email="jdoe@company.com",
        build_branch="main",
        build_commit="7fd1a60b01f91b314f59955a4e4d4e80d8edf11d",
        build_created=1556720958,
        build_enqueued=1556720959,
        build_event="push",
        build_finished=1556721000,
        build_link="https://vela.example.com/octocat/hello-world/42",
        build_message="Update README",
        build_number=42,
        build_parent=41,
        build_started=1556720960,
        build_source="https://github.com/octocat/hello-world/commit/7fd1a60",
        repository_branch="main",
        repository_full_name="octocat/hello-world",
        repository_link="https://github.com/octocat/hello-world",
        repository_name="hello-world",
        repository_org="octocat",
        repository_private="false",
        repository_timeout=60,
        repository_trusted="false",
    )

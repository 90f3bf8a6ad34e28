"""
Shared test fixtures and configuration.

Environment variables are set BEFORE any authgate imports so the settings
singleton never picks up a developer's real token or API URL.
"""

import os
import sys

# Ensure the authgate package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["GITHUB_API_URL"] = "https://api.github.test"
os.environ["LOG_LEVEL"] = "DEBUG"
for _var in ("OVERRIDE_GITHUB_TOKEN", "GITHUB_TOKEN", "GITHUB_TOKEN_SOURCE", "TRUSTED_BOTS", "ALLOWED_BOTS"):
    os.environ.pop(_var, None)

import pytest  # noqa: E402

from tests.mocks.github import (  # noqa: E402
    external_auth_context,
    make_github_context,
    make_settings,
    oidc_auth_context,
)


@pytest.fixture
def fast_settings():
    """Settings without retry delays."""
    return make_settings()


@pytest.fixture
def oidc_auth():
    return oidc_auth_context()


@pytest.fixture
def external_auth():
    return external_auth_context()


@pytest.fixture
def human_context():
    """Issue comment by a human collaborator."""
    return make_github_context()


@pytest.fixture
def actions_env(tmp_path):
    """Minimal GitHub Actions environment for a pull request opened by a human."""
    event_path = tmp_path / "event.json"
    event_path.write_text(
        '{"action": "opened", "sender": {"type": "User", "login": "octocat"},'
        ' "pull_request": {"number": 3, "user": {"login": "octocat"}}}',
        encoding="utf-8",
    )
    return {
        "GITHUB_REPOSITORY": "test-owner/test-repo",
        "GITHUB_ACTOR": "octocat",
        "GITHUB_EVENT_NAME": "pull_request",
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_RUN_ID": "42",
        "GITHUB_TOKEN": "oidc-app-token",
        "GITHUB_TOKEN_SOURCE": "oidc",
    }

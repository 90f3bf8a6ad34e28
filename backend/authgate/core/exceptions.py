"""
Exception hierarchy for the authorization gate.

Only conditions that must stop a run are exceptions. Expected policy outcomes
(a bot that may not skip the actor check, a token without push access) are
returned as values.
"""

from typing import Dict, Mapping, Optional


class AuthGateError(Exception):
    """Base class for all errors raised by authgate."""


class ApiCallError(AuthGateError):
    """A GitHub call failed in a way that cannot be read as "no permission"."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ApiCallError):
    """GitHub rejected the call because of rate limiting."""


class UnauthorizedActorError(AuthGateError):
    """The account that triggered the run may not start it."""

    def __init__(self, actor: str, actor_type: str):
        self.actor = actor
        self.actor_type = actor_type
        super().__init__(
            f"Workflow initiated by non-human actor: {actor} (type: {actor_type}). "
            "Only human accounts or explicitly trusted automated accounts may trigger this workflow."
        )


class ContextError(AuthGateError):
    """The run context or credential handed to authgate is missing or malformed."""


class GitHubAPIError(AuthGateError):
    """Raised by the GitHub client when the API returns a non-success status."""

    def __init__(self, status_code: int, message: str, headers: Optional[Mapping[str, str]] = None):
        self.status_code = status_code
        self.message = message
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        super().__init__(f"GitHub API error {status_code}: {message}")

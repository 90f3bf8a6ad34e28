"""
Build the run context from the GitHub Actions environment.

Reads the standard Actions variables plus the event payload file and returns a
frozen ``GitHubContext``. Only the fields the authorization gate needs are kept.
"""

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from authgate.core.constants import BOT_SUFFIX, ENTITY_EVENT_NAMES
from authgate.core.exceptions import ContextError
from authgate.models.github_context import ContextInputs, GitHubContext, Repository, TrustedBots

logger = logging.getLogger(__name__)

# Input names accepted for the trusted bots list, first match wins
_TRUSTED_BOTS_VARS = ("TRUSTED_BOTS", "INPUT_TRUSTED_BOTS", "ALLOWED_BOTS")


def _require(environ: Mapping[str, str], name: str) -> str:
    value = (environ.get(name) or "").strip()
    if not value:
        raise ContextError(f"Environment variable {name} is required")
    return value


def load_event_payload(event_path: Optional[str]) -> Dict[str, Any]:
    """Read the webhook payload GitHub writes to ``GITHUB_EVENT_PATH``."""
    if not event_path:
        logger.warning("GITHUB_EVENT_PATH not set - using empty event payload")
        return {}
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        raise ContextError(f"Could not read event payload {event_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ContextError(f"Event payload {event_path} is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ContextError(f"Event payload {event_path} must be a JSON object")
    return payload


def parse_trusted_bots(environ: Mapping[str, str]) -> TrustedBots:
    raw = None
    for name in _TRUSTED_BOTS_VARS:
        if environ.get(name):
            raw = environ[name]
            break

    trusted_bots = TrustedBots.parse(raw)
    for handle in trusted_bots.handles_without_suffix():
        logger.warning(
            f"Trusted bot entry '{handle}' has no {BOT_SUFFIX} suffix. Logins are matched exactly, "
            f"so it will only match an account named '{handle}'"
        )
    return trusted_bots


def parse_github_context(environ: Optional[Mapping[str, str]] = None) -> GitHubContext:
    """
    Parse the Actions environment into a ``GitHubContext``.

    Raises:
        ContextError: a required variable is missing or malformed
    """
    env = os.environ if environ is None else environ

    try:
        repository = Repository.from_full_name(_require(env, "GITHUB_REPOSITORY"))
    except ValueError as e:
        raise ContextError(str(e)) from e

    try:
        return GitHubContext(
            repository=repository,
            actor=_require(env, "GITHUB_ACTOR"),
            event_name=_require(env, "GITHUB_EVENT_NAME"),
            payload=load_event_payload(env.get("GITHUB_EVENT_PATH")),
            run_id=(env.get("GITHUB_RUN_ID") or "local").strip(),
            inputs=ContextInputs(trusted_bots=parse_trusted_bots(env)),
        )
    except ValidationError as e:
        raise ContextError(f"Invalid GitHub context: {e}") from e


def is_entity_context(context: GitHubContext) -> bool:
    """True for events about an issue or pull request, the only ones that need the write gate."""
    return context.event_name in ENTITY_EVENT_NAMES

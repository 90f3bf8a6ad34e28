"""
Actor validation: who triggered the run, and whether a trusted bot may skip
the actor write check.
"""

import logging

from authgate.core.constants import (
    ACCOUNT_TYPE_BOT,
    BOT_SUFFIX,
    EVENT_PULL_REQUEST,
    EVENT_PULL_REQUEST_TARGET,
)
from authgate.core.exceptions import UnauthorizedActorError
from authgate.models.account import Account, AccountKind
from authgate.models.github_context import GitHubContext
from authgate.models.verdict import BotValidationResult
from authgate.services.github import GitHubClient

logger = logging.getLogger(__name__)


async def resolve_account(client: GitHubClient, login: str) -> Account:
    """Look up ``login`` and return its account kind. API errors propagate."""
    user = await client.get_user(login)
    raw_type = user.get("type") if isinstance(user, dict) else None
    return Account(login=login, kind=AccountKind.from_api(raw_type), raw_type=raw_type)


async def check_human_actor(client: GitHubClient, context: GitHubContext) -> None:
    """
    Make sure the run was started by a human or by a trusted bot.

    Trusted bots (or any bot, with the ``"*"`` sentinel) are let through without
    a lookup. Everyone else is resolved through the users API; a lookup failure
    is not caught, since an actor we cannot resolve cannot be authorized.

    Raises:
        UnauthorizedActorError: the actor is not a ``User`` account
    """
    actor = context.actor
    trusted_bots = context.inputs.trusted_bots

    if trusted_bots.admits(actor):
        if trusted_bots.lists(actor):
            logger.info(f"Actor {actor} is in trusted bots list, skipping human check")
        else:
            logger.info(f"All bots are trusted ('*'), skipping human check for {actor}")
        return

    account = await resolve_account(client, actor)
    logger.info(f"Actor type: {account.raw_type}")

    if not account.is_human:
        raise UnauthorizedActorError(actor, account.raw_type or AccountKind.UNKNOWN.value)

    logger.info(f"Verified human actor: {actor}")


def validate_trusted_bot(actor: str, event_name: str, context: GitHubContext) -> BotValidationResult:
    """
    Decide whether a trusted bot may skip the actor permission check.

    Checks run in order and the first failure wins:

    1. The ``[bot]`` suffix of the login must agree with the sender type the
       event reports, in both directions.
    2. ``pull_request_target`` never qualifies; it runs with the base
       repository's privileges.
    3. Only ``pull_request`` events qualify.
    4. The pull request must have been opened by the bot itself. Events without
       pull request data pass this step.
    """
    claims_bot = actor.endswith(BOT_SUFFIX)
    sender_type = context.sender_type
    sender_is_bot = sender_type == ACCOUNT_TYPE_BOT

    if claims_bot and not sender_is_bot:
        return BotValidationResult.invalid(
            f"Account {actor} claims to be a bot but sender type doesn't match "
            f"(sender type: {sender_type}) - requiring permission check"
        )
    if sender_is_bot and not claims_bot:
        return BotValidationResult.invalid(
            f"Sender type is {ACCOUNT_TYPE_BOT} but account {actor} has no {BOT_SUFFIX} suffix "
            "- requiring permission check"
        )

    if event_name == EVENT_PULL_REQUEST_TARGET:
        return BotValidationResult.invalid(
            f"Trusted bot {actor} on {EVENT_PULL_REQUEST_TARGET} event - actor check required for security"
        )

    if event_name != EVENT_PULL_REQUEST:
        return BotValidationResult.invalid(
            f"Trusted bot {actor} on {event_name} event - "
            f"only {EVENT_PULL_REQUEST} events can skip actor checks"
        )

    pr_author = context.pull_request_author
    if pr_author is not None and pr_author != actor:
        return BotValidationResult.invalid(
            f"Bot {actor} is trusted but didn't create the PR (created by {pr_author}) "
            "- requiring permission check"
        )

    return BotValidationResult.valid()

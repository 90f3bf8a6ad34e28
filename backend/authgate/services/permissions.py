"""
Write-access gate.

Two independent questions are answered before the agent may write:

1. Can the *token* write to the repository? For OIDC-exchanged tokens the
   repository's ``permissions`` object is read. For externally supplied tokens
   that object is not reliable (fine-grained app installations), so a
   temporary label is created and deleted instead.
2. Can the *actor* write to the repository? Always asked for OIDC tokens.
   For external tokens a trusted bot may skip it on its own pull request.

Every GitHub call goes through ``execute_api_call``; 403/404 mean "no
permission", rate limits and unexpected failures raise.
"""

import asyncio
import logging
import re
import secrets
from typing import Any, Awaitable, Callable, Optional, Tuple

from authgate.core.api_call import execute_api_call
from authgate.core.config import Settings, settings
from authgate.core.constants import (
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_SERVER_ERROR,
    HTTP_STATUS_UNPROCESSABLE_ENTITY,
    LABEL_ALREADY_EXISTS_CODE,
    PROBE_LABEL_COLOR,
    PROBE_LABEL_DESCRIPTION,
    PROBE_LABEL_SUFFIX_BYTES,
    WRITE_PERMISSION_LEVELS,
)
from authgate.core.exceptions import ApiCallError, GitHubAPIError, RateLimitedError
from authgate.core.metrics import (
    authorization_decisions_total,
    track_write_probe,
    write_probe_cleanup_failures_total,
)
from authgate.core.retry import retry_with_backoff
from authgate.models.auth import AuthContext, TokenSource
from authgate.models.github_context import GitHubContext, Repository
from authgate.models.verdict import AuthorizationVerdict, VerdictReason
from authgate.services.actor import validate_trusted_bot
from authgate.services.github import GitHubClient

logger = logging.getLogger(__name__)

# GitHub rejects label names longer than this
_MAX_LABEL_LENGTH = 50

_DENIAL_SUMMARIES = {
    VerdictReason.TOKEN_LACKS_WRITE: "token lacked permission",
    VerdictReason.ACTOR_LACKS_WRITE: "actor lacked permission",
    VerdictReason.BYPASS_REJECTED: "trusted-bot bypass conditions not met",
}


# =============================================================================
# Actor (account-level) permission
# =============================================================================


async def check_actor_write_permissions(client: GitHubClient, repository: Repository, actor: str) -> bool:
    """
    Check whether ``actor`` is a collaborator with admin or write permission.

    A 403/404 from GitHub is a valid "no" answer. Rate limits and other
    failures propagate; a failed lookup must never read as "authorized".
    """
    logger.info(f"Checking permissions for actor: {actor}")

    result = await execute_api_call(
        lambda: client.get_collaborator_permission_level(repository, actor),
        f"check permissions for {actor}",
    )
    if result is False:
        logger.warning(f"Could not confirm permissions for {actor} on {repository.full_name}")
        return False

    permission = result.get("permission") if isinstance(result, dict) else None
    logger.info(f"Permission level retrieved: {permission}")

    if permission in WRITE_PERMISSION_LEVELS:
        logger.info(f"Actor has write access: {permission}")
        return True

    logger.warning(f"Actor has insufficient permissions: {permission}")
    return False


# =============================================================================
# Token permission
# =============================================================================


async def check_token_write_permissions(
    client: GitHubClient,
    repository: Repository,
    auth_context: AuthContext,
    run_id: str = "local",
    app_settings: Optional[Settings] = None,
) -> bool:
    """Check whether the token itself can write, using the strategy its source requires."""
    if auth_context.source is TokenSource.OIDC:
        return await _check_repository_permissions(client, repository)
    elif auth_context.source is TokenSource.EXTERNAL:
        return await probe_write_access(client, repository, run_id, app_settings)
    raise ValueError(f"Unsupported token source: {auth_context.source}")


async def _check_repository_permissions(client: GitHubClient, repository: Repository) -> bool:
    logger.info(f"Checking token permissions for repository: {repository.full_name}")

    response = await execute_api_call(
        lambda: client.get_repository(repository),
        f"read repository {repository.full_name}",
    )
    if response is False:
        logger.warning(f"Token lacks read access to repository: {repository.full_name}")
        return False

    permissions = response.get("permissions") if isinstance(response, dict) else None
    if not isinstance(permissions, dict):
        logger.warning(
            f"Could not determine token permissions: no permissions field in repository response "
            f"for {repository.full_name}"
        )
        return False

    push = permissions.get("push")
    admin = permissions.get("admin")
    logger.info(f"Token permissions retrieved: push={push}, admin={admin}")

    if push is True or admin is True:
        logger.info(f"Token has write access: push={push}, admin={admin}")
        return True

    logger.warning(f"Token has insufficient permissions: push={push}, admin={admin}")
    return False


# =============================================================================
# Write probe
# =============================================================================


def probe_label_name(prefix: str, run_id: str) -> str:
    """Unique, harmless label name: ``<prefix>-<run id>-<random hex>``."""
    suffix = secrets.token_hex(PROBE_LABEL_SUFFIX_BYTES)
    safe_run_id = re.sub(r"[^A-Za-z0-9_.-]", "", run_id) or "run"
    budget = _MAX_LABEL_LENGTH - len(prefix) - len(suffix) - 2
    if budget < 1:
        return f"{prefix[: _MAX_LABEL_LENGTH - len(suffix) - 1]}-{suffix}"
    return f"{prefix}-{safe_run_id[-budget:]}-{suffix}"


def _is_transient(error: BaseException) -> bool:
    """Timeouts, transport errors, 5xx and rate limits are worth another attempt; other 4xx are not."""
    if isinstance(error, RateLimitedError):
        return True
    if isinstance(error, ApiCallError):
        return error.status_code is None or error.status_code >= HTTP_STATUS_SERVER_ERROR
    return False


def _label_already_exists(error: GitHubAPIError) -> bool:
    return error.status_code == HTTP_STATUS_UNPROCESSABLE_ENTITY and LABEL_ALREADY_EXISTS_CODE in error.message


def _label_not_found(error: GitHubAPIError) -> bool:
    return error.status_code == HTTP_STATUS_NOT_FOUND


async def _probe_step(
    call: Callable[[], Awaitable[Any]],
    operation_name: str,
    cfg: Settings,
    landed_if: Optional[Callable[[GitHubAPIError], bool]] = None,
) -> Any:
    """
    One probe request: per-attempt timeout, wrapped, retried with backoff.

    A timed-out attempt may still have been applied by GitHub. Once an attempt
    has timed out, an error matching ``landed_if`` on a later attempt means the
    earlier one went through, and the step counts as done.
    """
    timed_out = False

    async def timed_call() -> Any:
        nonlocal timed_out
        try:
            return await asyncio.wait_for(call(), timeout=cfg.PROBE_STEP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            timed_out = True
            raise
        except GitHubAPIError as e:
            if timed_out and landed_if is not None and landed_if(e):
                logger.info(f"{operation_name}: earlier timed-out attempt was applied ({e.status_code}: {e.message})")
                return True
            raise

    async def attempt() -> Any:
        return await execute_api_call(timed_call, operation_name)

    return await retry_with_backoff(
        attempt,
        max_attempts=cfg.PROBE_MAX_ATTEMPTS,
        initial_delay=cfg.PROBE_INITIAL_DELAY_SECONDS,
        max_delay=cfg.PROBE_MAX_DELAY_SECONDS,
        backoff_factor=cfg.PROBE_BACKOFF_FACTOR,
        jitter=True,
        retry_on=(ApiCallError,),
        retry_if=_is_transient,
        operation_name=operation_name,
    )


async def _cleanup_probe_label(client: GitHubClient, repository: Repository, label: str, cfg: Settings) -> None:
    """Best-effort delete of a probe label. Never raises."""
    try:
        await asyncio.wait_for(client.delete_label(repository, label), timeout=cfg.PROBE_STEP_TIMEOUT_SECONDS)
        logger.info(f"Cleaned up probe label '{label}' on {repository.full_name}")
    except GitHubAPIError as e:
        if e.status_code == HTTP_STATUS_NOT_FOUND:
            logger.debug(f"Probe label '{label}' was not present on {repository.full_name}")
            return
        write_probe_cleanup_failures_total.inc()
        logger.warning(f"Failed to clean up probe label '{label}' on {repository.full_name}: {e}")
    except Exception as e:
        write_probe_cleanup_failures_total.inc()
        logger.warning(f"Failed to clean up probe label '{label}' on {repository.full_name}: {e}")


async def _run_write_probe(client: GitHubClient, repository: Repository, label: str, cfg: Settings) -> bool:
    # Unknown until the create call answers; a timed-out create may still have landed
    label_may_exist = True
    try:
        created = await _probe_step(
            lambda: client.create_label(repository, label, PROBE_LABEL_COLOR, PROBE_LABEL_DESCRIPTION),
            f"create probe label {label}",
            cfg,
            landed_if=_label_already_exists,
        )
        if created is False:
            label_may_exist = False
            logger.warning(f"Token cannot create labels on {repository.full_name} - no write access")
            return False

        deleted = await _probe_step(
            lambda: client.delete_label(repository, label),
            f"delete probe label {label}",
            cfg,
            landed_if=_label_not_found,
        )
        label_may_exist = False
        if deleted is False:
            logger.warning(f"Token cannot delete labels on {repository.full_name} - no write access")
            return False

        logger.info(f"Token has write access: probe label created and deleted on {repository.full_name}")
        return True
    finally:
        if label_may_exist:
            await _cleanup_probe_label(client, repository, label, cfg)


async def probe_write_access(
    client: GitHubClient,
    repository: Repository,
    run_id: str = "local",
    app_settings: Optional[Settings] = None,
) -> bool:
    """
    Confirm write access by creating and then deleting a uniquely named label.

    Each request has its own timeout and bounded retry; the whole probe has an
    overall timeout. If the label may have been created but was not deleted,
    a best-effort delete is issued before any error surfaces.

    Raises:
        RateLimitedError: GitHub kept rate limiting the probe
        ApiCallError: a probe step kept failing, or the probe timed out
    """
    cfg = app_settings or settings
    label = probe_label_name(cfg.PROBE_LABEL_PREFIX, run_id)
    logger.info(f"Probing write access on {repository.full_name} with temporary label '{label}'")

    with track_write_probe():
        try:
            return await asyncio.wait_for(
                _run_write_probe(client, repository, label, cfg),
                timeout=cfg.PROBE_TOTAL_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            msg = f"Write probe on {repository.full_name} timed out after {cfg.PROBE_TOTAL_TIMEOUT_SECONDS}s"
            logger.error(msg)
            raise ApiCallError(msg) from e


# =============================================================================
# Orchestration
# =============================================================================


def can_skip_actor_check(auth_context: AuthContext, context: GitHubContext) -> Tuple[bool, Optional[str]]:
    """
    Decide whether the actor permission check may be skipped.

    Returns ``(skip, rejection_reason)``. ``rejection_reason`` is set when the
    actor is a listed trusted bot but the bypass conditions were not met.
    """
    actor = context.actor

    if auth_context.source is TokenSource.OIDC:
        logger.info(f"OIDC token - actor permission check required for {actor}")
        return False, None
    elif auth_context.source is not TokenSource.EXTERNAL:
        raise ValueError(f"Unsupported token source: {auth_context.source}")

    if not context.inputs.trusted_bots.lists(actor):
        logger.warning(f"External token provided but actor {actor} is not a trusted bot - checking actor permissions")
        return False, None

    validation = validate_trusted_bot(actor, context.event_name, context)
    if not validation.is_valid:
        logger.warning(validation.reason or "Trusted bot validation failed")
        return False, validation.reason

    logger.info(
        f"Trusted bot verified: {actor} created PR on {context.event_name} event - skipping actor permission check"
    )
    return True, None


def _finish(verdict: AuthorizationVerdict) -> AuthorizationVerdict:
    outcome = "authorized" if verdict.authorized else "denied"
    authorization_decisions_total.labels(outcome=outcome, reason=verdict.reason.value).inc()
    if verdict.authorized:
        logger.info(f"Authorization granted ({verdict.reason.value}): {verdict.detail}")
    else:
        logger.warning(f"Authorization denied - {_DENIAL_SUMMARIES[verdict.reason]}: {verdict.detail}")
    return verdict


async def evaluate_write_access(
    client: GitHubClient,
    context: GitHubContext,
    auth_context: AuthContext,
    app_settings: Optional[Settings] = None,
) -> AuthorizationVerdict:
    """
    Decide whether this run may write to the repository.

    The token check always runs first; a token without write access ends the
    decision. Then the actor check runs unless a trusted bot qualifies for the
    bypass (external tokens only).
    """
    repository = context.repository
    actor = context.actor
    logger.info(f"Checking permissions with {auth_context.source.value} token source")

    if not await check_token_write_permissions(client, repository, auth_context, context.run_id, app_settings):
        return _finish(
            AuthorizationVerdict.deny(
                VerdictReason.TOKEN_LACKS_WRITE,
                f"{auth_context.source.value} token cannot write to {repository.full_name}",
            )
        )

    skip, bypass_rejection = can_skip_actor_check(auth_context, context)
    if skip:
        return _finish(
            AuthorizationVerdict.allow(
                VerdictReason.TRUSTED_BOT_BYPASS,
                f"trusted bot {actor} on its own pull request in {repository.full_name}",
            )
        )

    if await check_actor_write_permissions(client, repository, actor):
        return _finish(
            AuthorizationVerdict.allow(
                VerdictReason.ACTOR_HAS_WRITE,
                f"token and actor {actor} can write to {repository.full_name}",
            )
        )

    if bypass_rejection:
        return _finish(
            AuthorizationVerdict.deny(
                VerdictReason.BYPASS_REJECTED,
                f"{bypass_rejection}; actor {actor} has no write access to {repository.full_name}",
            )
        )
    return _finish(
        AuthorizationVerdict.deny(
            VerdictReason.ACTOR_LACKS_WRITE,
            f"actor {actor} has no write access to {repository.full_name}",
        )
    )


async def check_write_permissions(
    client: GitHubClient,
    context: GitHubContext,
    auth_context: AuthContext,
    app_settings: Optional[Settings] = None,
) -> bool:
    """Boolean form of ``evaluate_write_access`` for callers that log and stop."""
    verdict = await evaluate_write_access(client, context, auth_context, app_settings)
    return verdict.authorized

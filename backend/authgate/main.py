"""
Prepare step: verify that this run may act on the repository.

Order of operations:
1. Read the token produced by the token-setup step and its provenance.
2. Parse the Actions run context.
3. Make sure a human or trusted bot started the run (raises otherwise).
4. For issue / pull request events, run the write gate (token, then actor).
"""

import asyncio
import logging
import sys
from typing import Mapping, Optional

from authgate.core.config import Settings, settings
from authgate.core.exceptions import AuthGateError
from authgate.core.logging_utils import configure_logging
from authgate.models.verdict import AuthorizationVerdict
from authgate.services.actor import check_human_actor
from authgate.services.context import is_entity_context, parse_github_context
from authgate.services.github import GitHubClient
from authgate.services.permissions import evaluate_write_access
from authgate.services.token import resolve_auth_context

logger = logging.getLogger(__name__)


class InsufficientPermissionsError(AuthGateError):
    """The write gate denied the run."""

    def __init__(self, verdict: AuthorizationVerdict):
        self.verdict = verdict
        super().__init__("Insufficient permissions to write to the repository")


async def prepare(
    environ: Optional[Mapping[str, str]] = None,
    app_settings: Optional[Settings] = None,
    **client_kwargs,
) -> Optional[AuthorizationVerdict]:
    """
    Run the authorization checks for this workflow run.

    Returns the write verdict, or ``None`` when the event does not refer to an
    issue or pull request and the write gate was not needed.

    Raises:
        UnauthorizedActorError: the actor is neither human nor a trusted bot
        InsufficientPermissionsError: the write gate denied the run
    """
    cfg = app_settings or settings
    auth_context = resolve_auth_context(environ)
    context = parse_github_context(environ)
    logger.info(
        f"Authorizing {context.event_name} run {context.run_id} by {context.actor} "
        f"on {context.repository.full_name}"
    )

    async with GitHubClient(
        auth_context,
        api_url=cfg.GITHUB_API_URL,
        timeout=cfg.GITHUB_API_TIMEOUT,
        **client_kwargs,
    ) as github:
        await check_human_actor(github, context)

        if not is_entity_context(context):
            logger.info(f"{context.event_name} event does not target an issue or pull request - skipping write check")
            return None

        verdict = await evaluate_write_access(github, context, auth_context, cfg)
        if not verdict.authorized:
            raise InsufficientPermissionsError(verdict)
        return verdict


def main() -> None:
    configure_logging()
    try:
        asyncio.run(asyncio.wait_for(prepare(), timeout=settings.AUTHORIZATION_TIMEOUT_SECONDS))
    except asyncio.TimeoutError:
        logger.error(
            f"Prepare step failed with error: authorization did not finish within "
            f"{settings.AUTHORIZATION_TIMEOUT_SECONDS}s"
        )
        sys.exit(1)
    except Exception as e:
        logger.error(f"Prepare step failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

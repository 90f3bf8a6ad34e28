"""
Pick up the credential produced by the token-setup step.

Token minting (OIDC exchange) happens before authgate runs. This module only
reads the result and attaches the provenance tag the write gate keys on.
"""

import logging
import os
from typing import Mapping, Optional

from authgate.core.exceptions import ContextError
from authgate.models.auth import AuthContext, TokenSource

logger = logging.getLogger(__name__)

OVERRIDE_TOKEN_VAR = "OVERRIDE_GITHUB_TOKEN"
TOKEN_VAR = "GITHUB_TOKEN"
TOKEN_SOURCE_VAR = "GITHUB_TOKEN_SOURCE"


def resolve_auth_context(
    environ: Optional[Mapping[str, str]] = None,
    override_var: Optional[str] = None,
) -> AuthContext:
    """
    Build the ``AuthContext`` for this run.

    A token in the override variable is always treated as externally supplied.
    Otherwise ``GITHUB_TOKEN`` is used and ``GITHUB_TOKEN_SOURCE`` says where it
    came from. A specific ``override_var`` that is missing is an error rather
    than a fallback.
    """
    env = os.environ if environ is None else environ
    var_name = override_var or OVERRIDE_TOKEN_VAR

    token = (env.get(var_name) or "").strip()
    if token:
        logger.info(f"Using {var_name} for authentication")
        return AuthContext.create(token, TokenSource.EXTERNAL)

    if override_var:
        raise ContextError(f"{override_var} not found")

    token = (env.get(TOKEN_VAR) or "").strip()
    if not token:
        raise ContextError(
            f"No GitHub token available. Set {OVERRIDE_TOKEN_VAR} or provide {TOKEN_VAR} from the token setup step."
        )

    raw_source = (env.get(TOKEN_SOURCE_VAR) or "").strip().lower()
    try:
        source = TokenSource(raw_source)
    except ValueError as e:
        raise ContextError(
            f"{TOKEN_SOURCE_VAR} must be one of {', '.join(s.value for s in TokenSource)}, got '{raw_source}'"
        ) from e

    logger.info(f"Using {TOKEN_VAR} from {source.value} token source")
    return AuthContext.create(token, source)

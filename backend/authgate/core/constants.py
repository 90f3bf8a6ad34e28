"""
Shared Constants

Centralized constants used across the authorization gate so that event names,
permission levels and GitHub type strings are spelled the same everywhere.
"""

from typing import FrozenSet, Tuple

# =============================================================================
# GitHub account conventions
# =============================================================================

# GitHub App / integration accounts always carry this suffix in their login
BOT_SUFFIX = "[bot]"

# Values reported in the "type" field of users and event senders
ACCOUNT_TYPE_USER = "User"
ACCOUNT_TYPE_BOT = "Bot"
ACCOUNT_TYPE_ORGANIZATION = "Organization"

# Sentinel in the trusted bots input meaning "every bot may start a run"
TRUSTED_BOTS_WILDCARD = "*"

# =============================================================================
# Permission levels
# =============================================================================

# Collaborator permission levels that allow pushing to the repository
WRITE_PERMISSION_LEVELS: Tuple[str, ...] = ("admin", "write")

# =============================================================================
# Event names
# =============================================================================

EVENT_PULL_REQUEST = "pull_request"
# Runs with the base repository's token and secrets, even for forks
EVENT_PULL_REQUEST_TARGET = "pull_request_target"

# Events that refer to an issue or a pull request and therefore need the write gate
ENTITY_EVENT_NAMES: FrozenSet[str] = frozenset(
    {
        "issues",
        "issue_comment",
        "pull_request",
        "pull_request_review",
        "pull_request_review_comment",
        "pull_request_target",
    }
)

# =============================================================================
# HTTP
# =============================================================================

HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_UNPROCESSABLE_ENTITY = 422
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR = 500

GITHUB_API_VERSION = "2022-11-28"

# =============================================================================
# Write probe
# =============================================================================

PROBE_LABEL_COLOR = "ededed"
PROBE_LABEL_DESCRIPTION = "Temporary label used to verify write access. Safe to delete."
PROBE_LABEL_SUFFIX_BYTES = 4
# Validation error code GitHub returns when a label name is taken
LABEL_ALREADY_EXISTS_CODE = "already_exists"

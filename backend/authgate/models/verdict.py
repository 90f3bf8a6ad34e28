"""
Result types of the authorization decision.

A denied bot bypass and a denied write check are expected outcomes, so they are
values rather than exceptions.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class VerdictReason(str, Enum):
    """Which branch of the write gate produced the verdict."""

    TOKEN_LACKS_WRITE = "token_lacks_write"
    ACTOR_LACKS_WRITE = "actor_lacks_write"
    BYPASS_REJECTED = "bypass_rejected"
    ACTOR_HAS_WRITE = "actor_has_write"
    TRUSTED_BOT_BYPASS = "trusted_bot_bypass"


class AuthorizationVerdict(BaseModel):
    """Outcome of the write gate. ``authorized`` is only True if every required check passed."""

    model_config = ConfigDict(frozen=True)

    authorized: bool
    reason: VerdictReason
    detail: str = ""

    @classmethod
    def allow(cls, reason: VerdictReason, detail: str = "") -> "AuthorizationVerdict":
        return cls(authorized=True, reason=reason, detail=detail)

    @classmethod
    def deny(cls, reason: VerdictReason, detail: str = "") -> "AuthorizationVerdict":
        return cls(authorized=False, reason=reason, detail=detail)

    def __bool__(self) -> bool:
        return self.authorized


class BotValidationResult(BaseModel):
    """Whether a trusted bot may skip the actor permission check, and why not."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    reason: Optional[str] = None

    @classmethod
    def valid(cls) -> "BotValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "BotValidationResult":
        return cls(is_valid=False, reason=reason)

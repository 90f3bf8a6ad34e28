from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from authgate.core.constants import (
    ACCOUNT_TYPE_BOT,
    ACCOUNT_TYPE_ORGANIZATION,
    ACCOUNT_TYPE_USER,
)


class AccountKind(str, Enum):
    """Account type as reported by GitHub's users API."""

    USER = ACCOUNT_TYPE_USER
    BOT = ACCOUNT_TYPE_BOT
    ORGANIZATION = ACCOUNT_TYPE_ORGANIZATION
    UNKNOWN = "Unknown"

    @classmethod
    def from_api(cls, value: Optional[str]) -> "AccountKind":
        """Map the raw ``type`` field onto a kind; anything unexpected is UNKNOWN."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.UNKNOWN


class Account(BaseModel):
    """A GitHub login together with the kind GitHub reports for it."""

    model_config = ConfigDict(frozen=True)

    login: str
    kind: AccountKind
    raw_type: Optional[str] = None

    @property
    def is_human(self) -> bool:
        return self.kind is AccountKind.USER

"""
Credential models.

The token arrives from the token-setup step together with a tag saying how it
was obtained. That tag decides which checks the write gate runs.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, SecretStr


class TokenSource(str, Enum):
    """How the GitHub token was obtained."""

    # Short-lived app token exchanged from the workflow's OIDC identity token
    OIDC = "oidc"
    # Token supplied by the user: PAT, GitHub App installation token, ...
    EXTERNAL = "external"


class AuthContext(BaseModel):
    """A GitHub token plus its provenance. Lives for a single run."""

    model_config = ConfigDict(frozen=True)

    token: SecretStr
    source: TokenSource

    @classmethod
    def create(cls, token: str, source: TokenSource) -> "AuthContext":
        return cls(token=SecretStr(token), source=source)

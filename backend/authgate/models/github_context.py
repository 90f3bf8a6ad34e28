"""
Pydantic models for the parsed GitHub Actions run context.

These are built once per run from the Actions environment and the event
payload file, then passed explicitly to every check. Nothing in authgate reads
the trusted bots list from a global.
"""

from typing import Any, Dict, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from authgate.core.constants import BOT_SUFFIX, TRUSTED_BOTS_WILDCARD


class Repository(BaseModel):
    """Repository coordinates."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "Repository":
        owner, sep, repo = full_name.strip().partition("/")
        if not sep or not owner or not repo or "/" in repo:
            raise ValueError(f"Repository must be in 'owner/repo' format, got '{full_name}'")
        return cls(owner=owner, repo=repo)


class TrustedBots(BaseModel):
    """
    Bot accounts the repository owner declared as trusted.

    Logins are compared exactly. ``allow_all`` comes from the ``"*"`` sentinel
    and only lets any bot *start* a run; skipping the actor write check always
    requires the login to be listed by name.
    """

    model_config = ConfigDict(frozen=True)

    handles: Tuple[str, ...] = ()
    allow_all: bool = False

    @classmethod
    def parse(cls, raw: Union[str, Iterable[str], None]) -> "TrustedBots":
        """Build from a comma/newline separated string or a list of logins."""
        if raw is None:
            return cls()
        if isinstance(raw, str):
            items = raw.replace("\n", ",").split(",")
        else:
            items = list(raw)

        handles = []
        allow_all = False
        for item in items:
            handle = item.strip()
            if not handle:
                continue
            if handle == TRUSTED_BOTS_WILDCARD:
                allow_all = True
                continue
            if handle not in handles:
                handles.append(handle)
        return cls(handles=tuple(handles), allow_all=allow_all)

    def lists(self, actor: str) -> bool:
        """True if ``actor`` is named explicitly (the wildcard does not count)."""
        return actor in self.handles

    def admits(self, actor: str) -> bool:
        """True if ``actor`` may start a run without the human check."""
        return self.allow_all or self.lists(actor)

    def handles_without_suffix(self) -> Tuple[str, ...]:
        """Configured entries that lack the ``[bot]`` suffix and so match no bot login."""
        return tuple(h for h in self.handles if not h.endswith(BOT_SUFFIX))


class ContextInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    trusted_bots: TrustedBots = Field(default_factory=TrustedBots)


class GitHubContext(BaseModel):
    """The subset of the Actions run context the authorization gate needs."""

    model_config = ConfigDict(frozen=True)

    repository: Repository
    actor: str
    event_name: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    run_id: str = "local"
    inputs: ContextInputs = Field(default_factory=ContextInputs)

    @property
    def sender_type(self) -> Optional[str]:
        sender = self.payload.get("sender")
        if isinstance(sender, dict):
            return sender.get("type")
        return None

    @property
    def pull_request_author(self) -> Optional[str]:
        pull_request = self.payload.get("pull_request")
        if isinstance(pull_request, dict):
            user = pull_request.get("user")
            if isinstance(user, dict):
                return user.get("login")
        return None

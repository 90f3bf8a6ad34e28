"""Tests for run-context models."""

import pytest
from pydantic import ValidationError

from authgate.models.account import AccountKind
from authgate.models.auth import AuthContext, TokenSource
from authgate.models.github_context import Repository, TrustedBots
from authgate.models.verdict import AuthorizationVerdict, VerdictReason
from tests.mocks.github import make_bot_pr_context, make_github_context


class TestRepository:
    def test_from_full_name(self):
        repo = Repository.from_full_name("octo-org/hello-world")
        assert repo.owner == "octo-org"
        assert repo.repo == "hello-world"
        assert repo.full_name == "octo-org/hello-world"

    @pytest.mark.parametrize("value", ["", "no-slash", "/repo", "owner/", "a/b/c"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            Repository.from_full_name(value)


class TestTrustedBots:
    def test_parse_comma_separated(self):
        bots = TrustedBots.parse("dependabot[bot], renovate[bot]")
        assert bots.handles == ("dependabot[bot]", "renovate[bot]")
        assert bots.allow_all is False

    def test_parse_newlines_and_blanks(self):
        bots = TrustedBots.parse("dependabot[bot]\n\n renovate[bot] ,")
        assert bots.handles == ("dependabot[bot]", "renovate[bot]")

    def test_parse_list_keeps_order_and_dedupes(self):
        bots = TrustedBots.parse(["renovate[bot]", "dependabot[bot]", "renovate[bot]"])
        assert bots.handles == ("renovate[bot]", "dependabot[bot]")

    def test_parse_none(self):
        bots = TrustedBots.parse(None)
        assert bots.handles == ()
        assert bots.admits("dependabot[bot]") is False

    def test_wildcard_admits_without_listing(self):
        bots = TrustedBots.parse("*")
        assert bots.allow_all is True
        assert bots.admits("anything[bot]") is True
        assert bots.lists("anything[bot]") is False

    def test_exact_match_only(self):
        bots = TrustedBots.parse("dependabot")
        assert bots.lists("dependabot[bot]") is False
        assert bots.admits("dependabot[bot]") is False

    def test_handles_without_suffix(self):
        bots = TrustedBots.parse("dependabot, renovate[bot]")
        assert bots.handles_without_suffix() == ("dependabot",)

    def test_is_immutable(self):
        bots = TrustedBots.parse("dependabot[bot]")
        with pytest.raises(ValidationError):
            bots.handles = ("other[bot]",)


class TestGitHubContext:
    def test_sender_type_and_pr_author(self):
        context = make_bot_pr_context()
        assert context.sender_type == "Bot"
        assert context.pull_request_author == "dependabot[bot]"

    def test_missing_payload_fields(self):
        context = make_github_context(payload={})
        assert context.sender_type is None
        assert context.pull_request_author is None

    def test_malformed_payload_fields(self):
        context = make_github_context(payload={"sender": "nope", "pull_request": {"user": None}})
        assert context.sender_type is None
        assert context.pull_request_author is None


class TestAuthContext:
    def test_token_hidden_from_repr(self):
        auth = AuthContext.create("ghp_supersecret", TokenSource.EXTERNAL)
        assert "ghp_supersecret" not in repr(auth)
        assert auth.token.get_secret_value() == "ghp_supersecret"

    def test_source_values(self):
        assert TokenSource("oidc") is TokenSource.OIDC
        assert TokenSource("external") is TokenSource.EXTERNAL


class TestAccountKind:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("User", AccountKind.USER),
            ("Bot", AccountKind.BOT),
            ("Organization", AccountKind.ORGANIZATION),
            ("Mannequin", AccountKind.UNKNOWN),
            (None, AccountKind.UNKNOWN),
        ],
    )
    def test_from_api(self, raw, expected):
        assert AccountKind.from_api(raw) is expected


class TestAuthorizationVerdict:
    def test_allow_and_deny(self):
        assert AuthorizationVerdict.allow(VerdictReason.ACTOR_HAS_WRITE).authorized is True
        assert AuthorizationVerdict.deny(VerdictReason.TOKEN_LACKS_WRITE).authorized is False

    def test_truthiness_follows_authorized(self):
        assert not AuthorizationVerdict.deny(VerdictReason.ACTOR_LACKS_WRITE)
        assert AuthorizationVerdict.allow(VerdictReason.TRUSTED_BOT_BYPASS)

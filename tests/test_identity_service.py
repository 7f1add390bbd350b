"""Tests for profile-to-account resolution (oauthlogin/services/identity_service.py)."""

import pytest

from oauthlogin.core.exceptions import (
    AccountNameTakenError,
    AutoCreateDisabledError,
    DomainNotAllowedError,
    DomainRequiredError,
    InvalidUsernameError,
    MissingIdentifierError,
)
from oauthlogin.services.identity_service import (
    IdentityService,
    derive_candidate_username,
    enforce_domain_policy,
)


class TestDeriveCandidateUsername:
    def test_safe_preferred_username_is_unchanged(self):
        assert derive_candidate_username({"preferred_username": "alice.b"}) == "alice.b"

    def test_unsafe_characters_are_replaced(self):
        assert derive_candidate_username({"preferred_username": "al!ce@b"}) == "al_ce_b"

    def test_preferred_username_wins_over_email(self):
        profile = {"preferred_username": "bob", "email": "carol@x.com"}
        assert derive_candidate_username(profile) == "bob"

    def test_email_local_part_when_no_preferred_username(self):
        profile = {"preferred_username": "", "email": "carol@x.com", "sub": "123"}
        assert derive_candidate_username(profile) == "carol"

    def test_email_without_at_falls_through_to_sub(self):
        assert derive_candidate_username({"email": "nobody", "sub": "xyz"}) == "oauth-xyz"

    def test_sub_is_stripped_and_truncated(self):
        profile = {"sub": "abc123!!"}
        assert derive_candidate_username(profile) == "oauth-abc123"

        long_sub = {"sub": "a-b-c-d-e-f-g-h-i-j-k-l-m-n-o"}
        assert derive_candidate_username(long_sub) == "oauth-abcdefghijkl"

    def test_numeric_sub_is_accepted(self):
        assert derive_candidate_username({"sub": 4815162342}) == "oauth-4815162342"

    def test_edges_are_trimmed(self):
        assert derive_candidate_username({"preferred_username": " _.-jane-._ "}) == "jane"

    def test_no_identifier_raises(self):
        with pytest.raises(MissingIdentifierError):
            derive_candidate_username({"name": "Nobody"})

    @pytest.mark.parametrize(
        "preferred",
        ["!!!", "...", "127.0.0.1", "12345", "x" * 101],
    )
    def test_unusable_names_raise(self, preferred):
        with pytest.raises(InvalidUsernameError):
            derive_candidate_username({"preferred_username": preferred})


class TestEnforceDomainPolicy:
    def test_empty_allow_list_is_unrestricted(self):
        enforce_domain_policy(None, [])
        enforce_domain_policy("x@anything.com", [])

    def test_domain_match_is_case_insensitive(self):
        enforce_domain_policy("x@EXAMPLE.ORG", ["example.org"])
        enforce_domain_policy("x@example.org", ["Example.Org"])

    def test_other_domain_is_rejected(self):
        with pytest.raises(DomainNotAllowedError):
            enforce_domain_policy("x@other.org", ["example.org"])

    def test_missing_email_is_rejected(self):
        with pytest.raises(DomainRequiredError):
            enforce_domain_policy(None, ["example.org"])

    def test_uses_last_at_sign(self):
        enforce_domain_policy('"a@b"@example.org', ["example.org"])

    def test_subdomain_does_not_match(self):
        with pytest.raises(DomainNotAllowedError):
            enforce_domain_policy("x@mail.example.org", ["example.org"])


class TestIdentityServiceResolve:
    async def test_binds_existing_account(self, account_repo):
        existing = await account_repo.create_account(name="bob")
        service = IdentityService(account_repo)

        account, is_new = await service.resolve(
            {"preferred_username": "bob", "email": "bob@x.com"}, auto_create_enabled=False
        )

        assert account.id == existing.id
        assert is_new is False

    async def test_creates_account_from_profile(self, account_repo):
        service = IdentityService(account_repo, ["allowed.org"])

        account, is_new = await service.resolve(
            {"sub": "abc123!!", "email": "new@allowed.org", "name": "New Person"},
            auto_create_enabled=True,
        )

        assert is_new is True
        assert account.name == "new"
        assert account.email == "new@allowed.org"
        assert account.is_email_verified is True
        assert account.display_name == "New Person"
        assert account.auth_token and len(account.auth_token) == 32

    async def test_created_account_without_email_is_unconfirmed(self, account_repo):
        service = IdentityService(account_repo)

        account, _ = await service.resolve({"sub": "abc123!!"}, auto_create_enabled=True)

        assert account.name == "oauth-abc123"
        assert account.email is None
        assert account.is_email_verified is False

    async def test_auto_create_disabled_raises(self, account_repo):
        service = IdentityService(account_repo)

        with pytest.raises(AutoCreateDisabledError):
            await service.resolve({"preferred_username": "ghost"}, auto_create_enabled=False)

        assert await account_repo.find_by_exact_name("ghost") is None

    async def test_forbidden_domain_creates_nothing(self, account_repo):
        service = IdentityService(account_repo, ["allowed.org"])

        with pytest.raises(DomainNotAllowedError):
            await service.resolve(
                {"preferred_username": "mallory", "email": "m@evil.org"},
                auto_create_enabled=True,
            )

        assert await account_repo.find_by_exact_name("mallory") is None

    async def test_domain_checked_before_identifier(self, account_repo):
        service = IdentityService(account_repo, ["allowed.org"])

        with pytest.raises(DomainRequiredError):
            await service.resolve({}, auto_create_enabled=True)

    async def test_lookup_is_exact(self, account_repo):
        await account_repo.create_account(name="Bob")
        service = IdentityService(account_repo)

        account, is_new = await service.resolve(
            {"preferred_username": "bob"}, auto_create_enabled=True
        )

        assert is_new is True
        assert account.name == "bob"


class TestAccountRepositoryConflicts:
    async def test_duplicate_name_raises_and_rolls_back(self, account_repo):
        await account_repo.create_account(name="carol")
        await account_repo.commit()

        with pytest.raises(AccountNameTakenError) as exc_info:
            await account_repo.create_account(name="carol", email="c@example.org")

        assert exc_info.value.details == {"username": "carol"}
        existing = await account_repo.find_by_exact_name("carol")
        assert existing is not None
        assert existing.email is None

"""
IdentityService: maps an untrusted provider profile onto a local account.

Responsibilities:
    1. Enforce the email-domain allow-list
    2. Derive a safe, deterministic account name from the profile
    3. Bind to an existing account by exact name, or create one when allowed

Domain policy runs before anything touches the account store, so a profile
from a forbidden domain never causes an account to be created.
"""

import ipaddress
import logging
import re
from collections.abc import Iterable
from typing import Any

from oauthlogin.auth_strategies.constants import (
    CLAIM_EMAIL,
    CLAIM_NAME,
    CLAIM_PREFERRED_USERNAME,
    CLAIM_SUB,
    SUB_USERNAME_LENGTH,
    SUB_USERNAME_PREFIX,
)
from oauthlogin.core.exceptions import (
    AccountNameTakenError,
    AutoCreateDisabledError,
    DomainNotAllowedError,
    DomainRequiredError,
    InvalidUsernameError,
    MissingIdentifierError,
)
from oauthlogin.models.account import ACCOUNT_NAME_MAX_LENGTH, AccountORM
from oauthlogin.repositories.account_repo import AccountRepository
from oauthlogin.schemas.oauth import Profile

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_TRIM_CHARS = " _.-"


def _string_claim(profile: Profile, claim: str) -> str | None:
    value = profile.get(claim)
    if isinstance(value, str) and value:
        return value
    return None


def validate_username(candidate: str) -> str:
    """Apply account-name rules to an already sanitized candidate."""
    if not candidate:
        raise InvalidUsernameError(candidate, "empty")
    if len(candidate) > ACCOUNT_NAME_MAX_LENGTH:
        raise InvalidUsernameError(candidate, "too long")
    if candidate.isdigit():
        raise InvalidUsernameError(candidate, "numeric")
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return candidate
    raise InvalidUsernameError(candidate, "ip address")


def sanitize_username(raw: str) -> str:
    return _UNSAFE_CHARS.sub("_", raw).strip(_TRIM_CHARS)


def derive_candidate_username(profile: Profile) -> str:
    """
    Pick and sanitize the account name for a profile.

    Preference order:
        preferred_username → local part of email → "oauth-" + first 12
        alphanumerics of sub

    Raises:
        MissingIdentifierError: None of the above is present
        InvalidUsernameError: The sanitized result is unusable
    """
    preferred = _string_claim(profile, CLAIM_PREFERRED_USERNAME)
    email = _string_claim(profile, CLAIM_EMAIL)
    sub: Any = profile.get(CLAIM_SUB)

    if preferred:
        candidate = preferred
    elif email and "@" in email:
        candidate = email.split("@", 1)[0]
    elif sub not in (None, ""):
        # Some providers send numeric subjects
        candidate = SUB_USERNAME_PREFIX + _NON_ALNUM.sub("", str(sub))[:SUB_USERNAME_LENGTH]
    else:
        raise MissingIdentifierError()

    return validate_username(sanitize_username(candidate))


def enforce_domain_policy(email: str | None, allowed_domains: Iterable[str]) -> None:
    allowed = {d.lower() for d in allowed_domains if d}
    if not allowed:
        return

    if not email:
        raise DomainRequiredError()

    domain = email.rpartition("@")[2].lower() if "@" in email else ""
    if not domain or domain not in allowed:
        raise DomainNotAllowedError(domain)


class IdentityService:
    def __init__(self, account_repo: AccountRepository, allowed_domains: Iterable[str] = ()):
        self.account_repo = account_repo
        self.allowed_domains = tuple(allowed_domains)

    async def resolve(
        self, profile: Profile, auto_create_enabled: bool
    ) -> tuple[AccountORM, bool]:
        """
        Resolve a profile to a local account.

        Returns:
            Tuple of (account, is_new_account)

        Raises:
            DomainRequiredError, DomainNotAllowedError: Allow-list rejected the email
            MissingIdentifierError, InvalidUsernameError: No usable account name
            AutoCreateDisabledError: No match and creation is off
        """
        email = _string_claim(profile, CLAIM_EMAIL)
        enforce_domain_policy(email, self.allowed_domains)

        username = derive_candidate_username(profile)

        existing = await self.account_repo.find_by_exact_name(username)
        if existing:
            logger.info(f"[oauthlogin] Bound login to existing account '{username}'")
            return existing, False

        if not auto_create_enabled:
            raise AutoCreateDisabledError(username)

        try:
            account = await self.account_repo.create_account(
                name=username,
                email=email,
                display_name=_string_claim(profile, CLAIM_NAME),
            )
        except AccountNameTakenError:
            # Lost an insert race with another session
            existing = await self.account_repo.find_by_exact_name(username)
            if existing is None:
                raise
            logger.info(
                f"[oauthlogin] Bound login to concurrently created account '{username}'"
            )
            return existing, False

        await self.account_repo.issue_auth_token(account)
        return account, True

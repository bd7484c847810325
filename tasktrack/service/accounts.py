from __future__ import annotations

import asyncio
import threading
from typing import List, Optional

from tasktrack.logging import get_logger
from tasktrack.service.authz import AccessRule, authenticate, require
from tasktrack.service.boundary import service_boundary
from tasktrack.service.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tasktrack.service.passwords import CredentialHasher
from tasktrack.service.responses import AccountResponse, AuthResponse
from tasktrack.service.tokens import TokenService
from tasktrack.service.validation import (
    clean_text,
    collect_errors,
    sanitize_input,
    validate_email,
    validate_full_name,
    validate_password,
)
from tasktrack.storage.memory import MemoryStore
from tasktrack.storage.models import Account, Role

logger = get_logger(__name__)

_BAD_CREDENTIALS = "Invalid email or password"
_DUPLICATE_EMAIL = "User with this email already exists"


class AccountService:
    """Registration, login, session verification and admin user listing."""

    def __init__(
        self, store: MemoryStore, hasher: CredentialHasher, tokens: TokenService
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.logger = logger
        # The store trusts its caller on email uniqueness; this serializes
        # the duplicate check with the insert.
        self._registration_lock = threading.Lock()

    def _issue(self, account: Account) -> AuthResponse:
        token = self.tokens.issue(account.id, account.email, account.role.value)
        return AuthResponse(user=AccountResponse.from_account(account), token=token)

    @service_boundary(201, "Internal server error during registration")
    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        full_name: Optional[str],
    ) -> AuthResponse:
        clean_name = clean_text(full_name)
        errors = collect_errors(
            [
                validate_email(email),
                validate_password(password),
                validate_full_name(clean_name),
            ]
        )
        if errors:
            raise ValidationError(field_errors=errors)

        normalized_email = sanitize_input(email.lower())
        if self.store.find_account_by_email(normalized_email):
            raise ConflictError(_DUPLICATE_EMAIL)

        # Hash outside any lock and off the event loop
        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        with self._registration_lock:
            # Re-check: a concurrent registration may have won while hashing
            if self.store.find_account_by_email(normalized_email):
                raise ConflictError(_DUPLICATE_EMAIL)
            account = self.store.create_account(
                normalized_email, password_hash, clean_name, role=Role.USER
            )

        self.logger.info("account_registered", account_id=account.id)
        return self._issue(account)

    @service_boundary(200, "Internal server error during login")
    async def login(self, email: Optional[str], password: Optional[str]) -> AuthResponse:
        errors = collect_errors([validate_email(email), validate_password(password)])
        if errors:
            raise ValidationError(field_errors=errors)

        account = self.store.find_account_by_email(sanitize_input(email.lower()))
        if not account:
            self.logger.info("login_failed", reason="unknown_email")
            raise AuthenticationError(_BAD_CREDENTIALS)
        valid = await asyncio.to_thread(
            self.hasher.verify, password, account.password_hash
        )
        if not valid:
            self.logger.info("login_failed", reason="bad_password", account_id=account.id)
            raise AuthenticationError(_BAD_CREDENTIALS)

        if self.hasher.needs_rehash(account.password_hash):
            new_hash = await asyncio.to_thread(self.hasher.hash, password)
            self.store.update_account(account.id, {"password_hash": new_hash})
            self.logger.info("password_rehashed", account_id=account.id)

        self.logger.info("login_succeeded", account_id=account.id)
        return self._issue(account)

    @service_boundary(200, "Internal server error")
    def verify_session(self, authorization: Optional[str]) -> AccountResponse:
        claims = authenticate(self.tokens, authorization)
        account = self.store.find_account_by_id(claims.sub)
        if not account:
            raise NotFoundError("User not found")
        return AccountResponse.from_account(account)

    @service_boundary(200, "Internal server error")
    def list_accounts(self, authorization: Optional[str]) -> List[AccountResponse]:
        claims = authenticate(self.tokens, authorization)
        require(claims, AccessRule.ADMIN_ONLY)
        return [AccountResponse.from_account(a) for a in self.store.list_accounts()]

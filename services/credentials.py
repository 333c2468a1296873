"""
CredentialService: registration, login, refresh and logout.

Rules owned here:
- every successful register/login/refresh issues a fresh access/refresh pair
- exactly one live refresh token per user, persisted only as its Argon2 hash
  (issuing a new one overwrites the previous hash, logout clears it)
- codec errors never leave this module; callers only see UnauthorizedError

Security assumption: logout revokes the refresh chain only. An access token
issued before logout stays valid until its own (short) expiry.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from services.errors import (
    ConflictError,
    DuplicateEmailError,
    TokenError,
    UnauthorizedError,
)
from services.interfaces import SecretHasher, UserRecord, UserStore
from utils.security import TokenClaims, TokenCodec, TokenPair

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid credentials"
ACCESS_DENIED = "access denied"
INVALID_REFRESH_TOKEN = "invalid refresh token"
INVALID_ACCESS_TOKEN = "invalid access token"


@dataclass(frozen=True)
class TokenSettings:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta = timedelta(minutes=1)
    refresh_ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
        )


class CredentialService:
    def __init__(
        self,
        store: UserStore,
        hasher: SecretHasher,
        codec: TokenCodec,
        settings: TokenSettings,
    ):
        self.store = store
        self.hasher = hasher
        self.codec = codec
        self.settings = settings
        # verified against when the email is unknown, so both login failures cost one hash check
        self._decoy_hash = hasher.hash(secrets.token_urlsafe(16))

    def register(self, email: str, password: str) -> TokenPair:
        if self.store.find_by_email(email) is not None:
            raise ConflictError("Email already registered")

        try:
            user = self.store.create(email, self.hasher.hash(password))
        except DuplicateEmailError as exc:
            # lost a race with a concurrent registration of the same email
            raise ConflictError("Email already registered") from exc

        logger.info("Registered user %s", user.id)
        return self._start_session(user)

    def login(self, email: str, password: str) -> TokenPair:
        user = self.store.find_by_email(email)
        if user is None:
            self.hasher.verify(password, self._decoy_hash)
            logger.info("Login rejected: unknown email")
            raise UnauthorizedError(INVALID_CREDENTIALS, detail="unknown email")

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login rejected for user %s: password mismatch", user.id)
            raise UnauthorizedError(INVALID_CREDENTIALS, detail="password mismatch")

        return self._start_session(user)

    def refresh(self, user_id: str, refresh_token: str) -> TokenPair:
        """
        Issue a new pair for a presented refresh token and rotate the stored
        hash to the new refresh token. The presented token stops working.

        Token encoding is deterministic and timestamps have one-second
        resolution: a refresh in the same second as the previous issue
        returns a byte-identical pair, so the presented token stays live
        until a later issue replaces the stored hash.
        """
        user = self.store.find_by_id(user_id)
        if user is None or not user.refresh_token_hash:
            logger.info("Refresh rejected for user %s: no active session", user_id)
            raise UnauthorizedError(ACCESS_DENIED, detail="no stored refresh token hash")

        if not self.hasher.verify(refresh_token, user.refresh_token_hash):
            logger.info("Refresh rejected for user %s: refresh token mismatch", user_id)
            raise UnauthorizedError(ACCESS_DENIED, detail="refresh token hash mismatch")

        return self._start_session(user)

    def logout(self, user_id: str) -> bool:
        """Clear the stored refresh hash. Idempotent; access tokens are not revoked."""
        self.store.update_refresh_hash(user_id, None)
        logger.info("Logged out user %s", user_id)
        return True

    def decode_refresh_token(self, token: str) -> TokenClaims:
        try:
            return self.codec.verify(token, self.settings.refresh_secret)
        except TokenError as exc:
            logger.warning("Error decoding refresh token: %s", exc)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN, detail=str(exc)) from exc

    def verify_access_token(self, token: str) -> TokenClaims:
        try:
            return self.codec.verify(token, self.settings.access_secret)
        except TokenError as exc:
            logger.warning("Error verifying access token: %s", exc)
            raise UnauthorizedError(INVALID_ACCESS_TOKEN, detail=str(exc)) from exc

    def refresh_tokens_match(self, refresh_token: str, stored_hash: str) -> bool:
        return self.hasher.verify(refresh_token, stored_hash)

    def generate_tokens(self, user_id: str, email: str) -> TokenPair:
        return TokenPair(
            access_token=self.codec.sign(
                user_id, email, self.settings.access_secret, self.settings.access_ttl
            ),
            refresh_token=self.codec.sign(
                user_id, email, self.settings.refresh_secret, self.settings.refresh_ttl
            ),
        )

    def _start_session(self, user: UserRecord) -> TokenPair:
        tokens = self.generate_tokens(user.id, user.email)
        self.store.update_refresh_hash(user.id, self.hasher.hash(tokens.refresh_token))
        return tokens

"""
SessionGuard: per-request admission check for protected routes.

A request is admitted only when, in order:
  1. an access token is presented as a Bearer credential
  2. the access token verifies under the access key
  3. a refresh token is presented (session cookie)
  4. the refresh token verifies under the refresh key
  5. both tokens name the same subject
  6. that user exists and has a stored refresh hash
  7. the presented refresh token matches the stored hash

The first failing step ends the evaluation. The reason and internal cause are
logged; what goes back to the client is decided by the caller and should not
tell the steps apart (see SESSION_REJECTED_MESSAGE).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from services.credentials import CredentialService
from services.errors import UnauthorizedError
from services.interfaces import UserStore
from utils.security import TokenClaims

logger = logging.getLogger(__name__)

SESSION_REJECTED_MESSAGE = "invalid or expired session"


class GuardState(str, Enum):
    START = "start"
    ACCESS_VERIFIED = "access_verified"
    REFRESH_PRESENT = "refresh_present"
    REFRESH_VERIFIED = "refresh_verified"
    SUBJECTS_MATCH = "subjects_match"
    USER_LOADED = "user_loaded"
    HASH_MATCH = "hash_match"
    ADMITTED = "admitted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    claims: Optional[TokenClaims] = None
    # last state reached before the rejection
    failed_after: Optional[GuardState] = None
    reason: Optional[str] = None
    cause: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.state is GuardState.ADMITTED


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        return None
    return token


class SessionGuard:
    def __init__(self, credentials: CredentialService, store: UserStore):
        self.credentials = credentials
        self.store = store

    def evaluate(self, authorization: Optional[str], refresh_token: Optional[str]) -> GuardDecision:
        """
        Run the admission steps. Returns a decision instead of raising for
        authentication failures; StoreError/HashingError still propagate.
        """
        state = GuardState.START

        access_token = extract_bearer_token(authorization)
        if access_token is None:
            return self._reject(state, "authentication required", "no bearer token in Authorization header")

        try:
            access = self.credentials.verify_access_token(access_token)
        except UnauthorizedError as exc:
            return self._reject(state, "invalid access token", exc.detail)
        state = GuardState.ACCESS_VERIFIED

        if not refresh_token:
            return self._reject(state, "session expired", "no refresh token cookie")
        state = GuardState.REFRESH_PRESENT

        try:
            refresh = self.credentials.decode_refresh_token(refresh_token)
        except UnauthorizedError as exc:
            return self._reject(state, "invalid or expired session", exc.detail)
        state = GuardState.REFRESH_VERIFIED

        if access.subject != refresh.subject:
            return self._reject(
                state,
                "invalid session",
                f"access subject {access.subject} != refresh subject {refresh.subject}",
            )
        state = GuardState.SUBJECTS_MATCH

        user = self.store.find_by_id(access.subject)
        if user is None or not user.refresh_token_hash:
            return self._reject(
                state,
                "session revoked or expired",
                "user not found" if user is None else "no stored refresh token hash",
            )
        state = GuardState.USER_LOADED

        if not self.credentials.refresh_tokens_match(refresh_token, user.refresh_token_hash):
            return self._reject(state, "session revoked or invalid", "refresh token hash mismatch")

        return GuardDecision(state=GuardState.ADMITTED, claims=access)

    def admit(self, authorization: Optional[str], refresh_token: Optional[str]) -> TokenClaims:
        """Exception flavour of evaluate(): returns the access claims or raises UnauthorizedError."""
        decision = self.evaluate(authorization, refresh_token)
        if not decision.admitted:
            raise UnauthorizedError(SESSION_REJECTED_MESSAGE, detail=decision.reason)
        return decision.claims

    @staticmethod
    def _reject(state: GuardState, reason: str, cause: Optional[str]) -> GuardDecision:
        logger.warning("Session rejected after %s: %s (%s)", state.value, reason, cause)
        return GuardDecision(
            state=GuardState.REJECTED, failed_after=state, reason=reason, cause=cause
        )

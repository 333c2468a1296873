"""
security helpers:
- Argon2 hashing of secrets (passwords and refresh tokens) via argon2-cffi
- JWT signing/verification via PyJWT
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from services.errors import HashingError, TokenExpired, TokenInvalid

REQUIRED_CLAIMS = ("sub", "email", "iat", "exp")


class Argon2SecretHasher:
    """One-way hash + constant-time verify for arbitrary secret strings."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self.ph = PasswordHasher(
            time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism
        )

    def hash(self, secret: str) -> str:
        try:
            return self.ph.hash(secret)
        except Argon2HashingError as exc:
            raise HashingError("Failed to hash secret", detail=str(exc)) from exc

    def verify(self, secret: str, secret_hash: str) -> bool:
        """Return False on mismatch; raise HashingError if the hash itself is unusable."""
        try:
            return self.ph.verify(secret_hash, secret)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise HashingError("Failed to verify secret", detail=str(exc)) from exc


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    issued_at: int
    expires_at: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "sub": self.subject,
            "email": self.email,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Signs and verifies bearer tokens carrying {sub, email, iat, exp}.

    The codec holds no keys: access and refresh tokens are signed with
    different secrets chosen by the caller. Expiry is checked against the
    codec's own clock so that it can be frozen in tests.
    """

    def __init__(
        self,
        algorithm: str = "HS256",
        leeway: int = 0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.algorithm = algorithm
        self.leeway = leeway
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock().timestamp())

    def sign(self, subject: str, email: str, key: str, ttl: timedelta) -> str:
        issued_at = self._now()
        claims = TokenClaims(
            subject=str(subject),
            email=email,
            issued_at=issued_at,
            expires_at=issued_at + int(ttl.total_seconds()),
        )
        return jwt.encode(claims.to_payload(), key, algorithm=self.algorithm)

    def verify(self, token: str, key: str) -> TokenClaims:
        """
        Decode and validate a token. Raises TokenInvalid on bad signature,
        malformed token or missing claims; TokenExpired once now > exp.
        """
        try:
            decoded = jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                options={
                    "require": list(REQUIRED_CLAIMS),
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}") from exc

        try:
            claims = TokenClaims(
                subject=str(decoded["sub"]),
                email=str(decoded["email"]),
                issued_at=int(decoded["iat"]),
                expires_at=int(decoded["exp"]),
            )
        except (TypeError, ValueError) as exc:
            raise TokenInvalid(f"Invalid token claims: {exc}") from exc

        if self._now() > claims.expires_at + self.leeway:
            raise TokenExpired("Token expired")
        return claims

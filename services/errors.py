"""
Error taxonomy for the credential core.

The Flask layer maps these to status codes (see api/errors.py):
- ConflictError      -> 409
- UnauthorizedError  -> 401 (message is always generic)
- StoreError         -> 500 (message never leaves the server)
- HashingError       -> 500 (message never leaves the server)

TokenError and its subclasses are raised by the TokenCodec only and are
translated to UnauthorizedError by CredentialService before reaching callers.
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class for every error raised by the credential core."""

    status = 500
    error = "INTERNAL_ERROR"
    public_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.public_message
        # internal cause, logged but never rendered to the client
        self.detail = detail
        super().__init__(self.message)

    @property
    def exposed_message(self) -> str:
        """Message safe to put in an HTTP response."""
        if self.status >= 500:
            return self.public_message
        return self.message


class ConflictError(AuthError):
    status = 409
    error = "CONFLICT"
    public_message = "Email already registered"


class UnauthorizedError(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    public_message = "Unauthorized"


class StoreError(AuthError):
    """Any failure of the user store, wrapping the driver error as __cause__."""


class DuplicateEmailError(StoreError):
    """Unique constraint on users.email violated during create()."""


class HashingError(AuthError):
    """The secret hasher could not hash or verify (not a plain mismatch)."""


class TokenError(Exception):
    pass


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass

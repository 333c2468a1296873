"""Capabilities the credential core consumes. Concrete adapters live in models/ and utils/."""
from __future__ import annotations

from typing import Optional, Protocol


class UserRecord(Protocol):
    id: str
    email: str
    password_hash: str
    refresh_token_hash: Optional[str]


class UserStore(Protocol):
    """All methods raise StoreError on failure."""

    def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    def find_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    def create(self, email: str, password_hash: str) -> UserRecord: ...

    def update_refresh_hash(self, user_id: str, refresh_hash: Optional[str]) -> None: ...


class SecretHasher(Protocol):
    """All methods raise HashingError on failure."""

    def hash(self, secret: str) -> str: ...

    def verify(self, secret: str, secret_hash: str) -> bool: ...

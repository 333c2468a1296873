"""
SQLUserStore: the UserStore capability on top of DBStorage.

Every SQLAlchemy failure is rolled back and re-raised as StoreError (the
driver error is kept as __cause__). A unique violation on users.email during
create() is reported as DuplicateEmailError.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User
from services.errors import DuplicateEmailError, StoreError

logger = logging.getLogger(__name__)


class SQLUserStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.storage.rollback()
            logger.error("Failed to %s: %s", action, exc)
            raise StoreError(f"Failed to {action}", detail=str(exc)) from exc

    def find_by_email(self, email: str) -> Optional[User]:
        with self._store_errors("find user by email"):
            session = self.storage.get_session()
            return session.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._store_errors("find user by id"):
            return self.storage.get_session().get(User, user_id)

    def create(self, email: str, password_hash: str) -> User:
        user = User(email=email, password_hash=password_hash)
        try:
            with self._store_errors("create user"):
                self.storage.new(user)
                self.storage.save()
        except StoreError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise DuplicateEmailError("Failed to create user", detail=exc.detail) from exc.__cause__
            raise
        return user

    def update_refresh_hash(self, user_id: str, refresh_hash: Optional[str]) -> None:
        """Overwrite (or clear, with None) the stored refresh token hash. Unknown ids are a no-op."""
        with self._store_errors("update refresh token"):
            user = self.storage.get_session().get(User, user_id)
            if user is None:
                return
            user.refresh_token_hash = refresh_hash
            self.storage.save()

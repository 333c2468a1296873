"""Tests for the SQLAlchemy-backed user store."""
import pytest
from sqlalchemy.exc import OperationalError

from services.errors import DuplicateEmailError, StoreError


def test_create_and_find(store):
    user = store.create("a@x.com", "hash")

    assert store.find_by_email("a@x.com").id == user.id
    assert store.find_by_id(user.id).email == "a@x.com"
    assert user.refresh_token_hash is None


def test_find_missing_returns_none(store):
    assert store.find_by_email("nobody@x.com") is None
    assert store.find_by_id("missing") is None


def test_duplicate_email_raises_duplicate_error(store):
    store.create("a@x.com", "hash")

    with pytest.raises(DuplicateEmailError):
        store.create("a@x.com", "other-hash")

    # the session is usable again after the rollback
    assert store.find_by_email("a@x.com") is not None


def test_update_refresh_hash_overwrites_and_clears(store, storage):
    user = store.create("a@x.com", "hash")

    store.update_refresh_hash(user.id, "first")
    store.update_refresh_hash(user.id, "second")
    storage.close()
    assert store.find_by_id(user.id).refresh_token_hash == "second"

    store.update_refresh_hash(user.id, None)
    storage.close()
    assert store.find_by_id(user.id).refresh_token_hash is None


def test_update_unknown_user_is_noop(store):
    store.update_refresh_hash("missing", "hash")


def test_password_is_write_only(store):
    user = store.create("a@x.com", "hash")

    with pytest.raises(AttributeError):
        user.password


def test_driver_errors_are_wrapped(store, storage, monkeypatch):
    def broken_session():
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(storage, "get_session", broken_session)

    with pytest.raises(StoreError) as exc_info:
        store.find_by_id("any")

    assert "disk I/O error" in exc_info.value.detail

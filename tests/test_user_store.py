"""Unit tests for auth/store.py -- UserStore.

Covers:
- create_user() assigns an id, default role "user", and timestamps
- Emails are normalized, so lookups and uniqueness ignore case and padding
- Duplicate emails raise IntegrityError at the store
- get_by_id() / get_by_email() return None for unknown identities
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_USER, User
from auth.store import UserStore, normalize_email


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def _user(email: str = "john@x.com") -> User:
    return User(name="John", email=email, hashed_password="$2b$04$placeholderplaceholderplaceholderplacehold")


def test_create_assigns_id_role_and_timestamps(store):
    uid = store.create_user(_user())
    user = store.get_by_id(uid)
    assert user is not None
    assert user.id == uid
    assert user.role == ROLE_USER
    assert user.created_at
    assert user.created_at == user.updated_at


def test_email_is_stored_lowercase(store):
    uid = store.create_user(_user("  John@X.com "))
    assert store.get_by_id(uid).email == "john@x.com"


def test_get_by_email_is_case_insensitive(store):
    uid = store.create_user(_user("john@x.com"))
    found = store.get_by_email("JOHN@X.COM")
    assert found is not None
    assert found.id == uid


def test_duplicate_email_raises_integrity_error(store):
    store.create_user(_user("john@x.com"))
    with pytest.raises(IntegrityError):
        store.create_user(_user("john@x.com"))


def test_duplicate_email_differing_in_case_raises(store):
    store.create_user(_user("john@x.com"))
    with pytest.raises(IntegrityError):
        store.create_user(_user("John@X.Com"))


def test_unknown_lookups_return_none(store):
    assert store.get_by_id(999) is None
    assert store.get_by_email("nobody@x.com") is None


def test_normalize_email():
    assert normalize_email("  Mixed.Case@Example.COM\n") == "mixed.case@example.com"

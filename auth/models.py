"""
auth/models.py -- Domain dataclass for the authenticated identity.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in records/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass
class User:
    """A registered principal.

    email is the login key. The store lower-cases it on every write and
    lookup, so two addresses differing only in case are the same identity.

    hashed_password is the bcrypt output; the raw password is never held on
    this object. API response models copy the public fields only.
    """

    name: str
    email: str
    hashed_password: str
    role: str = ROLE_USER  # "user" | "admin"
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

"""
records/models.py -- Domain dataclass for ownership-scoped user data.

Pure data container with zero logic. Ownership rules live in records/store.py,
where every mutating query matches on both the record id and the owner id.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Record:
    """A user-owned data item.

    owner_id references users.id. A record is only ever read or written
    through queries that include the owner's id, so it is invisible to every
    other identity.

    id and the timestamps are None/"" before the record is written.
    """

    title: str
    description: str
    owner_id: int
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every update

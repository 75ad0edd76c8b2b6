"""
records/store.py -- SQLAlchemy-backed persistence layer for user records.

Uses SQLAlchemy Core (not ORM) so the dataclass in records/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. RecordStore is the repository; _row_to_record
is the mapper. Route handlers never touch SQL directly.

Ownership: every read and write takes owner_id, and the WHERE clause of each
UPDATE/DELETE requires BOTH the record id and the owner id to match. A caller
who guesses another identity's record id gets the same "no row" result as for
an id that never existed, so the route layer cannot leak existence even by
accident. Each of these is a single statement, so the match and the write
happen atomically in the database.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = RecordStore("sqlite:///./recordvault.db")
    record = store.create_record(Record(title="t", description="d", owner_id=1))
    store.list_for_owner(1)
    store.update_for_owner(record.id, 1, title="t2", description="d2")
    store.delete_for_owner(record.id, 1)
    store.close()
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from records.models import Record

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_records = Table(
    "records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False),
    # users.id lives in auth/store.py's metadata; ownership is enforced by
    # the owner-scoped queries below rather than a cross-metadata FK.
    Column("owner_id", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_records_owner_created", "owner_id", "created_at"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RecordStore:
    """Repository for Record entities, always scoped to an owner."""

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_record(self, record: Record) -> Record:
        """Insert a record and return it with its assigned ID and timestamps."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _records.insert().values(
                    title=record.title,
                    description=record.description,
                    owner_id=record.owner_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return replace(record, id=result.inserted_primary_key[0], created_at=now, updated_at=now)

    def list_for_owner(self, owner_id: int) -> list[Record]:
        """Return all records owned by owner_id, newest first.

        id DESC breaks ties between records created within the same timestamp
        tick so the order is stable.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _records.select()
                .where(_records.c.owner_id == owner_id)
                .order_by(_records.c.created_at.desc(), _records.c.id.desc())
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def update_for_owner(self, record_id: int, owner_id: int, title: str, description: str) -> Optional[Record]:
        """Replace title and description on a record the caller owns.

        Returns the updated Record, or None when no row matches both record_id
        and owner_id (missing and foreign records are indistinguishable).
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _records.update()
                .where((_records.c.id == record_id) & (_records.c.owner_id == owner_id))
                .values(title=title, description=description, updated_at=_now_iso())
            )
            if result.rowcount == 0:
                conn.rollback()
                return None
            row = conn.execute(_records.select().where(_records.c.id == record_id)).fetchone()
            conn.commit()
        return _row_to_record(row)

    def delete_for_owner(self, record_id: int, owner_id: int) -> bool:
        """Delete a record the caller owns. Returns False if nothing matched."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _records.delete().where((_records.c.id == record_id) & (_records.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_record(row) -> Record:
    return Record(
        id=row.id,
        title=row.title,
        description=row.description,
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )

"""
api/routes/data.py -- Ownership-scoped CRUD routes for user records.

Routes:
  GET    /data            -- list the caller's records, newest first
  POST   /data            -- create a record owned by the caller (201)
  PUT    /data/{id}       -- replace title/description on the caller's record
  DELETE /data/{id}       -- delete the caller's record

Every route requires a bearer token: get_current_user is attached at router
level, and each handler also takes it as a parameter to learn who the owner
is. FastAPI caches a dependency per request, so the token is verified and the
identity resolved exactly once.

Ownership: handlers never load a record and then compare owners. They pass
(record_id, owner_id) to the store, which matches both in one statement.
"Not yours" and "does not exist" therefore produce the same 404, and so does
an id that is not even a number.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, RecordResponse, RecordWrite
from auth.dependencies import get_current_user
from auth.models import User
from core.errors import NotFound
from records.models import Record
from records.store import RecordStore

logger = logging.getLogger("recordvault.api.data")

router = APIRouter(dependencies=[Depends(get_current_user)])

_NOT_FOUND = "Data item not found"

# Largest value an INTEGER primary key can hold (signed 64-bit).
_MAX_RECORD_ID = 2**63 - 1


def _parse_record_id(raw: str) -> Optional[int]:
    try:
        record_id = int(raw)
    except ValueError:
        return None
    return record_id if 0 < record_id <= _MAX_RECORD_ID else None


@router.get("/data", response_model=list[RecordResponse])
def list_records(request: Request, current_user: User = Depends(get_current_user)) -> list[RecordResponse]:
    store: RecordStore = request.app.state.record_store
    return [RecordResponse.from_record(r) for r in store.list_for_owner(current_user.id)]


@router.post("/data", response_model=RecordResponse, status_code=201)
def create_record(
    request: Request,
    body: RecordWrite,
    current_user: User = Depends(get_current_user),
) -> RecordResponse:
    """Create a record owned by the authenticated identity."""
    store: RecordStore = request.app.state.record_store
    created = store.create_record(Record(title=body.title, description=body.description, owner_id=current_user.id))
    return RecordResponse.from_record(created)


@router.put("/data/{record_id}", response_model=RecordResponse)
def update_record(
    request: Request,
    record_id: str,
    body: RecordWrite,
    current_user: User = Depends(get_current_user),
) -> RecordResponse:
    """Replace title and description. 404 unless the caller owns the record."""
    parsed_id = _parse_record_id(record_id)
    if parsed_id is None:
        raise NotFound(_NOT_FOUND)
    store: RecordStore = request.app.state.record_store
    updated = store.update_for_owner(parsed_id, current_user.id, title=body.title, description=body.description)
    if updated is None:
        raise NotFound(_NOT_FOUND)
    return RecordResponse.from_record(updated)


@router.delete("/data/{record_id}", response_model=MessageResponse)
def delete_record(
    request: Request,
    record_id: str,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    parsed_id = _parse_record_id(record_id)
    if parsed_id is None or not request.app.state.record_store.delete_for_owner(parsed_id, current_user.id):
        raise NotFound(_NOT_FOUND)
    logger.info("user_id=%s deleted record %s", current_user.id, parsed_id)
    return MessageResponse(message="Data item deleted successfully")

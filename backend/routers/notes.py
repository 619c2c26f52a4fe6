"""
Notes router.
Owner-scoped CRUD, pinning, visibility and search over the caller's notes.

Every handler passes the request's Principal to the access controller;
a note that exists but belongs to someone else answers 404, the same as
a note that does not exist.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from config import Settings
from dependencies import get_app_settings, get_note_access
from errors import NotFoundError
from models import NoteCreate, NoteUpdate, PinUpdate, VisibilityUpdate, envelope
from security.identity import Principal, require_principal
from services.note_access import NoteAccessController

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/add-note", status_code=status.HTTP_201_CREATED)
async def add_note(
    data: NoteCreate,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    """Create a new private note."""
    note = await notes.create(
        principal, data.title, data.content, data.tags, data.is_pinned
    )
    return envelope("Note added successfully", note=note)


@router.put("/edit-note/{note_id}")
async def edit_note(
    note_id: str,
    data: NoteUpdate,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    """Update only the fields present in the request body."""
    note = await notes.update(principal, note_id, data.supplied())
    return envelope("Note updated successfully", note=note)


@router.put("/update-note-pinned/{note_id}")
async def update_note_pinned(
    note_id: str,
    data: PinUpdate,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    note = await notes.update(principal, note_id, data.supplied())
    return envelope("Note pinned status updated successfully", note=note)


@router.put("/notes/{note_id}/visibility")
async def set_visibility(
    note_id: str,
    data: VisibilityUpdate,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    note = await notes.set_visibility(principal, note_id, data.is_public)
    return envelope("Note visibility updated successfully", note=note)


@router.delete("/delete-note/{note_id}")
async def delete_note(
    note_id: str,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    await notes.delete(principal, note_id)
    return envelope("Note deleted successfully")


@router.get("/get-all-notes")
async def get_all_notes(
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    """The caller's notes, pinned first."""
    return envelope(
        "All notes retrieved successfully", notes=await notes.list_own(principal)
    )


@router.get("/get-note/{note_id}")
async def get_note(
    note_id: str,
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    note = await notes.get(principal, note_id)
    return envelope("Note retrieved successfully", note=note)


@router.get("/search-notes")
async def search_notes(
    query: Optional[str] = Query(None, description="Substring to find in title, content or tags"),
    principal: Principal = Depends(require_principal),
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    matches = await notes.search(principal, query)
    return envelope(
        "Notes matching the search query retrieved successfully", notes=matches
    )


@router.get("/notes")
async def list_all_notes(
    notes: NoteAccessController = Depends(get_note_access),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """
    Every user's notes, newest first then pinned.

    Unauthenticated and unscoped; only served when GLOBAL_LISTING_ENABLED
    is set.
    """
    if not settings.global_listing_enabled:
        raise NotFoundError("Not found")
    all_notes = await notes.list_all_pinned_first()
    logger.info(f"Unscoped note listing served ({len(all_notes)} notes)")
    return envelope("All notes retrieved successfully", notes=all_notes)

"""
Public router.
Unauthenticated read-only access to a user's profile and public notes.
"""

import logging

from fastapi import APIRouter, Depends

from dependencies import get_credential_store, get_note_access
from errors import NotFoundError, ValidationError
from models import envelope
from services.credential_store import CredentialStore
from services.note_access import NoteAccessController
from sqlite_db import ObjectId

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/public-profile/{user_id}")
async def public_profile(
    user_id: str,
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    if not ObjectId.is_valid(user_id):
        raise ValidationError("Invalid user ID")
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return envelope("User retrieved successfully", user=user.public())


@router.get("/public-notes/{user_id}")
async def public_notes(
    user_id: str,
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    """A user's public notes, newest first."""
    public = await notes.list_public(user_id)
    logger.debug(f"Served {len(public)} public notes of user {user_id}")
    return envelope("Public notes retrieved successfully", notes=public)


@router.get("/public-notes/{user_id}/{note_id}")
async def public_note(
    user_id: str,
    note_id: str,
    notes: NoteAccessController = Depends(get_note_access),
) -> dict:
    note = await notes.public_get(user_id, note_id)
    logger.debug(f"Served public note {note_id} of user {user_id}")
    return envelope("Note retrieved successfully", note=note)

"""
Note access controller.

Every owner-scoped operation filters on ``userId == principal.user_id``
as well as the note id, so a note id alone never grants access. A note
owned by someone else is reported exactly like a missing note.

Public reads need no principal but always filter on ``isPublic == True``.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from errors import NotFoundError, ValidationError
from models.note import Note
from security.principal import Principal
from services.note_store import NoteStore
from sqlite_db import ObjectId
from utils.clock import utc_now
from utils.validators import is_blank, validate_required, validate_tags

logger = logging.getLogger(__name__)

NOTE_NOT_FOUND = "Note not found"

# Pinned first; newest first within each group
OWN_ORDER = [("isPinned", -1), ("createdAt", -1), ("_id", -1)]
# Legacy global view: newest first, then pinned
GLOBAL_ORDER = [("createdAt", -1), ("isPinned", -1)]
PUBLIC_ORDER = [("createdAt", -1)]

# Editable attribute → document key
_EDITABLE = {
    "title": "title",
    "content": "content",
    "tags": "tags",
    "is_pinned": "isPinned",
}


class NoteAccessController:
    """Ownership and visibility rules for every note operation."""

    def __init__(self, store: NoteStore):
        self._store = store

    @staticmethod
    def _owned(principal: Principal, note_id: str) -> Dict[str, Any]:
        return {"_id": note_id, "userId": principal.user_id}

    async def create(self, principal: Principal, title: Optional[str],
                     content: Optional[str], tags: Optional[List[str]] = None,
                     is_pinned: bool = False) -> Note:
        """Create a private note owned by the principal."""
        ok, message = validate_required({"Title": title, "Content": content})
        if not ok:
            raise ValidationError(message)
        tags = [] if tags is None else tags
        ok, message = validate_tags(tags)
        if not ok:
            raise ValidationError(message)
        if not isinstance(is_pinned, bool):
            raise ValidationError("isPinned must be a boolean")

        now = utc_now()
        note = await self._store.insert({
            "userId": principal.user_id,
            "title": title,
            "content": content,
            "tags": tags,
            "isPinned": is_pinned,
            "isPublic": False,
            "createdAt": now,
            "updatedAt": now,
        })
        logger.info(f"Note {note.id} created by user {principal.user_id}")
        return note

    async def get(self, principal: Principal, note_id: str) -> Note:
        note = await self._store.find_one(self._owned(principal, note_id))
        if note is None:
            raise NotFoundError(NOTE_NOT_FOUND)
        return note

    async def update(self, principal: Principal, note_id: str,
                     fields: Dict[str, Any]) -> Note:
        """Apply the supplied fields to an owned note.

        Args:
            fields: Attribute name → new value, containing only the keys the
                client sent. A present falsy value (``is_pinned=False``,
                ``tags=[]``) is applied.

        Raises:
            ValidationError: No field supplied, or a supplied value is invalid.
            NotFoundError: Note missing or not owned by the principal.
        """
        if not fields:
            raise ValidationError("No changes provided")

        changes: Dict[str, Any] = {}
        for name, value in fields.items():
            if name not in _EDITABLE:
                raise ValidationError(f"{name} cannot be edited")
            if name in ("title", "content") and is_blank(value):
                raise ValidationError(f"{name.capitalize()} cannot be empty")
            if name == "tags":
                ok, message = validate_tags(value)
                if not ok:
                    raise ValidationError(message)
            if name == "is_pinned" and not isinstance(value, bool):
                raise ValidationError("isPinned must be a boolean")
            changes[_EDITABLE[name]] = value

        changes["updatedAt"] = utc_now()
        note = await self._store.update(self._owned(principal, note_id), changes)
        if note is None:
            raise NotFoundError(NOTE_NOT_FOUND)
        return note

    async def set_visibility(self, principal: Principal, note_id: str,
                             is_public: Any) -> Note:
        if not isinstance(is_public, bool):
            raise ValidationError("isPublic must be a boolean")
        note = await self._store.update(
            self._owned(principal, note_id),
            {"isPublic": is_public, "updatedAt": utc_now()},
        )
        if note is None:
            raise NotFoundError("Note not found or unauthorized")
        logger.info(
            f"Note {note_id} visibility set to "
            f"{'public' if is_public else 'private'} by user {principal.user_id}"
        )
        return note

    async def delete(self, principal: Principal, note_id: str) -> None:
        """Delete an owned note; a missing or foreign note is NotFound."""
        deleted = await self._store.delete(self._owned(principal, note_id))
        if not deleted:
            raise NotFoundError(NOTE_NOT_FOUND)
        logger.info(f"Note {note_id} deleted by user {principal.user_id}")

    async def list_own(self, principal: Principal) -> List[Note]:
        return await self._store.find({"userId": principal.user_id}, sort=OWN_ORDER)

    async def list_all_pinned_first(self) -> List[Note]:
        """Every user's notes, unscoped. Not an authorization boundary."""
        return await self._store.find({}, sort=GLOBAL_ORDER)

    async def search(self, principal: Principal, query: Optional[str]) -> List[Note]:
        """Case-insensitive substring match on title, content or any tag."""
        if is_blank(query):
            raise ValidationError("Search query is required")
        pattern = {"$regex": re.escape(query), "$options": "i"}
        return await self._store.find(
            {
                "userId": principal.user_id,
                "$or": [
                    {"title": pattern},
                    {"content": pattern},
                    {"tags": pattern},
                ],
            },
            sort=OWN_ORDER,
        )

    async def public_get(self, owner_id: str, note_id: str) -> Note:
        if not ObjectId.is_valid(owner_id):
            raise ValidationError("Invalid user ID")
        note = await self._store.find_one(
            {"_id": note_id, "userId": owner_id, "isPublic": True}
        )
        if note is None:
            raise NotFoundError(NOTE_NOT_FOUND)
        return note

    async def list_public(self, owner_id: str) -> List[Note]:
        if not ObjectId.is_valid(owner_id):
            raise ValidationError("Invalid user ID")
        return await self._store.find(
            {"userId": owner_id, "isPublic": True}, sort=PUBLIC_ORDER
        )

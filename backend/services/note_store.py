"""
Note store: thin typed wrapper over the ``notes`` collection.

Knows nothing about ownership; every filter comes from the access
controller.
"""

from typing import Any, Dict, List, Optional

from models.note import Note
from sqlite_db import SQLiteDatabase, SortSpec


class NoteStore:
    def __init__(self, db: SQLiteDatabase):
        self._notes = db.notes

    async def insert(self, note_doc: Dict[str, Any]) -> Note:
        result = await self._notes.insert_one(note_doc)
        return Note.from_doc({**note_doc, "_id": result.inserted_id})

    async def find_one(self, query: Dict[str, Any]) -> Optional[Note]:
        doc = await self._notes.find_one(query)
        return Note.from_doc(doc) if doc else None

    async def find(self, query: Dict[str, Any],
                   sort: Optional[SortSpec] = None) -> List[Note]:
        cursor = self._notes.find(query)
        if sort:
            cursor = cursor.sort(sort)
        return [Note.from_doc(doc) async for doc in cursor]

    async def update(self, query: Dict[str, Any],
                     fields: Dict[str, Any]) -> Optional[Note]:
        """$set fields on the first match and return the updated note."""
        doc = await self._notes.find_one_and_update(query, {"$set": fields})
        return Note.from_doc(doc) if doc else None

    async def delete(self, query: Dict[str, Any]) -> bool:
        result = await self._notes.delete_one(query)
        return result.deleted_count > 0

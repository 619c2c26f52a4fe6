"""
Note model definitions.

Each note belongs to exactly one user (``userId``) and carries a
visibility flag; public notes are readable by anyone, writable only
by their owner.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class NoteCreate(_CamelModel):
    """Schema for creating a new note."""
    title: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_pinned: bool = False


class NoteUpdate(_CamelModel):
    """Schema for a partial note update.

    Only keys present in the request body are applied, so an explicit
    ``"isPinned": false`` is honoured.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    is_pinned: Optional[bool] = None

    def supplied(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class PinUpdate(_CamelModel):
    """Body of PUT /update-note-pinned/{id}."""
    is_pinned: Optional[bool] = None

    def supplied(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class VisibilityUpdate(_CamelModel):
    """Body of PUT /notes/{id}/visibility."""
    is_public: Optional[bool] = None


class Note(_CamelModel):
    """Note as stored and as returned to clients."""
    id: str
    user_id: str
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    is_pinned: bool = False
    is_public: bool = False
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Note":
        """Convert a stored document (camelCase keys) to a Note."""
        return cls(
            id=str(doc["_id"]),
            user_id=doc["userId"],
            title=doc["title"],
            content=doc["content"],
            tags=doc.get("tags", []),
            is_pinned=bool(doc.get("isPinned", False)),
            is_public=bool(doc.get("isPublic", False)),
            created_at=doc["createdAt"],
            updated_at=doc["updatedAt"],
        )

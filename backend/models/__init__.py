"""
Pydantic models package.
Each module contains models for a specific domain.
"""

from models.envelope import envelope, error_envelope
from models.note import Note, NoteCreate, NoteUpdate, PinUpdate, VisibilityUpdate
from models.user import LoginRequest, RegisterRequest, User, UserResponse

__all__ = [
    "envelope", "error_envelope",
    "Note", "NoteCreate", "NoteUpdate", "PinUpdate", "VisibilityUpdate",
    "LoginRequest", "RegisterRequest", "User", "UserResponse",
]

"""
Domain services: credential store, note store and note access control.
"""

from services.credential_store import CredentialStore
from services.note_access import NoteAccessController
from services.note_store import NoteStore

__all__ = ["CredentialStore", "NoteAccessController", "NoteStore"]

"""
FastAPI dependencies for the components built in main.create_app().

Components are constructed once at startup with their configuration
(signing secret, store handle) and parked on ``app.state``; handlers
receive them through these accessors.
"""

from fastapi import Request

from config import Settings
from security.tokens import TokenService
from services.credential_store import CredentialStore
from services.note_access import NoteAccessController


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credentials


def get_note_access(request: Request) -> NoteAccessController:
    return request.app.state.notes

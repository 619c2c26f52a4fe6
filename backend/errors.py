"""
Application error taxonomy.

Services raise these; nothing in between catches them. A single handler
registered in main.py maps each error kind to a status code and the
response envelope ``{"error": true, "message": ...}``.

    NotekeeperError (base)
    ├── ValidationError          → 400
    ├── AuthError                → 401
    │   ├── InvalidCredentials
    │   ├── Unauthenticated
    │   ├── TokenExpired
    │   └── TokenInvalid
    ├── NotFoundError            → 404
    ├── ConflictError            → 409
    └── ServerError              → 500
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER = "server"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SERVER: 500,
}


class NotekeeperError(Exception):
    """Base class for errors that carry a client-safe message.

    Attributes:
        kind: Error kind used by the boundary translator.
        message: Text returned to the client.
    """

    kind: ErrorKind = ErrorKind.SERVER
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(NotekeeperError):
    """A required field is missing, empty, or malformed."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class AuthError(NotekeeperError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class InvalidCredentials(AuthError):
    """Unknown email or wrong password; the two are not distinguished."""

    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class Unauthenticated(AuthError):
    default_message = "Authentication required"


class TokenExpired(AuthError):
    default_message = "Token expired"


class TokenInvalid(AuthError):
    default_message = "Invalid token"


class NotFoundError(NotekeeperError):
    """Resource is absent or not owned by the caller."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class ConflictError(NotekeeperError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class ServerError(NotekeeperError):
    kind = ErrorKind.SERVER
    default_message = "Server error"

"""
Request-scoped authenticated identity.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    """Authenticated identity for the duration of one request.

    Built by the identity dependency after token verification and passed
    to services by parameter. full_name and email are a copy taken at
    authentication time and are None when the user was not re-fetched.
    """
    user_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None

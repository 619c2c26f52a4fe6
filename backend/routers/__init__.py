"""
API routers package.
Each router handles a specific domain of endpoints.
"""

from routers import auth, notes, public

__all__ = [
    "auth",
    "notes",
    "public",
]

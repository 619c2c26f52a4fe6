"""
User model definitions.
Handles account registration, login and profile data.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    """Schema for user registration.

    Fields are optional here so that a missing value reaches the
    credential store and is reported as a 400, not a schema error.
    """
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LoginRequest(BaseModel):
    """Schema for bearer and cookie login."""
    email: Optional[str] = None
    password: Optional[str] = None


class User(BaseModel):
    """
    Full user model as stored in database.
    Password hash is never exposed in responses.
    """
    id: str
    full_name: str
    email: str
    password_hash: str = Field(repr=False)
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "User":
        return cls(
            id=str(doc["_id"]),
            full_name=doc["fullName"],
            email=doc["email"],
            password_hash=doc.get("passwordHash", ""),
            created_at=doc.get("createdAt"),
        )

    def public(self) -> "UserResponse":
        return UserResponse(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            created_at=self.created_at,
        )


class UserResponse(BaseModel):
    """
    User data returned in API responses.
    Excludes sensitive fields like password_hash.
    """
    id: str
    full_name: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

"""
Credential store: user accounts and their bcrypt password hashes.

Emails are unique (enforced by a unique index on the users collection)
and compared exactly as stored. Raw passwords are hashed before they
touch the store and are never logged or returned.
"""

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from errors import ConflictError, InvalidCredentials, ValidationError
from models.user import User
from security.passwords import dummy_hash, hash_password, password_too_long, verify_password
from sqlite_db import DuplicateKeyError, SQLiteDatabase
from utils.clock import utc_now
from utils.validators import validate_required

logger = logging.getLogger(__name__)


class CredentialStore:
    """Register users and check their credentials.

    Args:
        db: Document store; users live in ``db.users``.
        bcrypt_rounds: bcrypt work factor for new hashes.
    """

    def __init__(self, db: SQLiteDatabase, bcrypt_rounds: int = 12):
        self._users = db.users
        self._rounds = bcrypt_rounds
        self._indexed = False

    async def _ensure_indexes(self) -> None:
        if not self._indexed:
            await self._users.create_index("email", unique=True)
            self._indexed = True

    async def register(self, full_name: Optional[str], email: Optional[str],
                       raw_password: Optional[str]) -> User:
        """Create a new account.

        Raises:
            ValidationError: A field is missing or the password is too long.
            ConflictError: The email is already registered.
        """
        ok, message = validate_required(
            {"fullName": full_name, "email": email, "password": raw_password},
            message="All fields are required",
        )
        if not ok:
            raise ValidationError(message)
        if password_too_long(raw_password):
            raise ValidationError("Password must be at most 72 bytes")

        await self._ensure_indexes()
        if await self._users.find_one({"email": email}):
            raise ConflictError("Email already in use")

        password_hash = await run_in_threadpool(hash_password, raw_password, self._rounds)
        user_doc = {
            "fullName": full_name,
            "email": email,
            "passwordHash": password_hash,
            "createdAt": utc_now(),
        }
        try:
            result = await self._users.insert_one(user_doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration of the same email
            raise ConflictError("Email already in use")

        logger.info(f"Registered user {result.inserted_id}")
        return User.from_doc({**user_doc, "_id": result.inserted_id})

    async def verify_credentials(self, email: Optional[str],
                                 raw_password: Optional[str]) -> User:
        """Return the user whose email and password match.

        Raises:
            ValidationError: Email or password missing.
            InvalidCredentials: Unknown email or wrong password (not distinguished).
        """
        ok, message = validate_required(
            {"email": email, "password": raw_password},
            message="Email and password are required",
        )
        if not ok:
            raise ValidationError(message)

        doc = await self._users.find_one({"email": email})
        if doc is None:
            # Burn the same bcrypt time as a real comparison
            await run_in_threadpool(verify_password, raw_password, dummy_hash(self._rounds))
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentials()

        matches = await run_in_threadpool(verify_password, raw_password, doc["passwordHash"])
        if not matches:
            logger.info(f"Login failed for user {doc['_id']}: invalid credentials")
            raise InvalidCredentials()

        return User.from_doc(doc)

    async def get_user(self, user_id: str) -> Optional[User]:
        """Fetch a user by id, or None if it does not exist."""
        doc = await self._users.find_one({"_id": user_id})
        return User.from_doc(doc) if doc else None

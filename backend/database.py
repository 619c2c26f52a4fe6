"""
Database lifecycle: SQLite document store.

The store handle is built once from settings in the application factory,
connected in the lifespan, and reached by handlers through
``request.app.state``; nothing keeps it in a module global.

Typical usage:
    db = build_database(settings)
    await connect_db(db)
    user = await db.users.find_one({"email": "alice@example.com"})
"""

import logging

from fastapi import Request

from config import Settings
from sqlite_db import SQLiteDatabase

logger = logging.getLogger(__name__)


def build_database(settings: Settings) -> SQLiteDatabase:
    """Create (but do not open) the store configured by settings."""
    return SQLiteDatabase(settings.database_path)


async def connect_db(db: SQLiteDatabase) -> None:
    """Open the connection unless it is already open.

    Called once during application startup (main.py lifespan).
    Creates the database file if it doesn't exist.
    """
    if db.is_connected:
        return
    await db.connect()
    logger.info("SQLite database connected successfully")


async def close_db(db: SQLiteDatabase) -> None:
    """Close the database connection gracefully.

    Called during application shutdown.
    """
    if db.is_connected:
        await db.close()
        logger.info("Database connection closed")


def get_database(request: Request) -> SQLiteDatabase:
    """FastAPI dependency returning the application's store."""
    return request.app.state.database

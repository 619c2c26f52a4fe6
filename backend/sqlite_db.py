"""
SQLite document store with a Motor/MongoDB-style async API.

Notes and users are kept as JSON documents, one table per collection.
Services talk to collections through find/insert/update/delete by filter
and never see SQL.

Architecture:
  - Each collection is a SQLite table with:
    - _id TEXT PRIMARY KEY (24-char hex id generated on insert)
    - data TEXT (the full document as JSON)
  - Filters (exact match, $or, $regex) are translated to SQL WHERE clauses
    over json_extract / json_each
  - Unique indexes are expression indexes on json_extract and surface as
    DuplicateKeyError
  - One aiosqlite connection is shared by every request; each write runs
    under the database's write lock, so a rollback only ever undoes the
    statement that failed

Usage:
    db = SQLiteDatabase("data/app.db")
    await db.connect()
    doc = await db.users.find_one({"email": "test@example.com"})
    await db.notes.insert_one({"title": "hello", "userId": "123"})
"""

import asyncio
import json
import logging
import re
import sqlite3
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import aiosqlite

logger = logging.getLogger(__name__)

_OBJECT_ID_RE = re.compile(r"^[0-9a-f]{24}$")

# Document keys holding datetimes (stored as ISO strings)
_DATE_FIELDS = ("createdAt", "updatedAt")


class DuplicateKeyError(Exception):
    """Raised when an insert or update violates a unique index."""


# ============================================================
# ObjectId: MongoDB-style hex ids
# ============================================================

class ObjectId:
    """24-character hex id in the shape of a MongoDB ObjectId."""

    def __init__(self):
        self._id = uuid.uuid4().hex[:24]

    @staticmethod
    def is_valid(oid: Any) -> bool:
        """True if oid is a well-formed 24-char lowercase hex id."""
        return isinstance(oid, str) and bool(_OBJECT_ID_RE.match(oid))

    def __str__(self) -> str:
        return self._id


# ============================================================
# Query translator: MongoDB filter operators → SQL
# ============================================================

def _serialize_value(val: Any) -> Any:
    """Serialize a Python value for JSON storage."""
    if isinstance(val, datetime):
        return val.isoformat(timespec="microseconds")
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {k: _serialize_value(v) for k, v in val.items()}
    return val


def _dump(doc: Dict[str, Any]) -> str:
    return json.dumps(_serialize_value(doc), default=str)


def _deserialize_doc(doc_json: str, _id: str) -> Dict[str, Any]:
    """Deserialize a JSON document, converting ISO dates back to datetime."""
    doc = json.loads(doc_json)
    for key in _DATE_FIELDS:
        if isinstance(doc.get(key), str):
            try:
                doc[key] = datetime.fromisoformat(doc[key])
            except ValueError:
                pass
    doc["_id"] = _id
    return doc


def _regexp(pattern: str, value: Any) -> int:
    """SQLite REGEXP implementation (``value REGEXP pattern``)."""
    if value is None:
        return 0
    return 1 if re.search(pattern, str(value)) else 0


def _regex_pattern(pattern: str, options: str) -> str:
    """Fold Mongo-style $options flags into an inline regex prefix."""
    flags = "".join(f for f in options if f in "imsx")
    return f"(?{flags}){pattern}" if flags else pattern


def _build_where(query: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Translate a MongoDB query dict to SQL WHERE clause + params.

    Supports: exact match (``_id`` included), $or, $regex (+ $options).

    $regex matches scalar fields and any element of array fields, the
    way MongoDB does, by walking the value with json_each.

    Returns:
        (where_clause, params): clause does NOT include 'WHERE' keyword.
    """
    if not query:
        return "1=1", []

    conditions = []
    params: List[Any] = []

    for key, value in query.items():
        if key == "$or":
            or_parts = []
            for sub_query in value:
                sub_where, sub_params = _build_where(sub_query)
                or_parts.append(f"({sub_where})")
                params.extend(sub_params)
            conditions.append(f"({' OR '.join(or_parts)})" if or_parts else "0")

        elif key == "_id":
            conditions.append("_id = ?")
            params.append(str(value))

        elif isinstance(value, dict):
            unsupported = set(value) - {"$regex", "$options"}
            if unsupported or "$regex" not in value:
                raise ValueError(f"Unsupported query operator(s) on {key}: {sorted(value)}")
            pattern = _regex_pattern(str(value["$regex"]), value.get("$options", ""))
            conditions.append(
                f"EXISTS (SELECT 1 FROM json_each(data, '{_json_path(key)}') "
                f"AS elem WHERE elem.value REGEXP ?)"
            )
            params.append(pattern)

        else:
            conditions.append(f"{_json_extract(key)} = ?")
            params.append(_sql_param(value))

    return " AND ".join(conditions), params


def _sql_param(value: Any) -> Any:
    """Convert a filter value to what json_extract yields for it."""
    if isinstance(value, bool):
        return 1 if value else 0
    return _serialize_value(value)


def _json_path(field: str) -> str:
    """Sanitize a field name into a JSON path ('$.field')."""
    # Only allow alphanumeric, dots, underscores, and hyphens in field paths
    sanitized = re.sub(r"[^a-zA-Z0-9._\-]", "", field)
    return f"$.{sanitized}"


def _json_extract(field: str) -> str:
    return f"json_extract(data, '{_json_path(field)}')"


SortSpec = List[Tuple[str, int]]


def _build_sort(sort_spec: Optional[SortSpec]) -> str:
    """Translate [("field", 1 | -1), ...] to SQL ORDER BY."""
    if not sort_spec:
        return ""
    parts = []
    for field, direction in sort_spec:
        d = "DESC" if direction == -1 else "ASC"
        column = "_id" if field == "_id" else _json_extract(field)
        parts.append(f"{column} {d}")
    return "ORDER BY " + ", ".join(parts)


def _apply_update(doc: Dict, update: Dict) -> Dict:
    """Apply a $set update to a document in-memory."""
    for op, fields in update.items():
        if op != "$set":
            raise ValueError(f"Unsupported update operator: {op}")
        doc.update(fields)
    return doc


# ============================================================
# Cursor: async iterator over query results
# ============================================================

class SQLiteCursor:
    """Async cursor that mimics Motor's cursor with sort.

    Lazily executes the query on first iteration.
    """

    def __init__(self, collection: "SQLiteCollection", query: Dict):
        self._collection = collection
        self._query = query
        self._sort_spec: Optional[SortSpec] = None
        self._results: Optional[List[Dict]] = None

    def sort(self, sort_spec: SortSpec) -> "SQLiteCursor":
        """Set sort order: a list of (field, 1 | -1) pairs."""
        self._sort_spec = list(sort_spec)
        return self

    async def _execute(self) -> List[Dict]:
        if self._results is not None:
            return self._results

        await self._collection._ensure_table()
        where, params = _build_where(self._query)
        order = _build_sort(self._sort_spec)
        sql = f"SELECT _id, data FROM [{self._collection.name}] WHERE {where} {order}"

        results = []
        async with self._collection._db._get_conn() as conn:
            async with conn.execute(sql, params) as cursor:
                async for row in cursor:
                    results.append(_deserialize_doc(row[1], row[0]))

        self._results = results
        return results

    def __aiter__(self):
        self._iter_index = 0
        self._results = None  # Reset for re-iteration
        return self

    async def __anext__(self) -> Dict:
        results = await self._execute()
        if self._iter_index >= len(results):
            raise StopAsyncIteration
        doc = results[self._iter_index]
        self._iter_index += 1
        return doc


# ============================================================
# Collection: mimics Motor's AsyncIOMotorCollection
# ============================================================

class SQLiteCollection:
    """Async SQLite collection that mimics Motor's MongoDB collection API.

    Each collection is a SQLite table with columns:
      - _id TEXT PRIMARY KEY
      - data TEXT (JSON document)
    """

    def __init__(self, db: "SQLiteDatabase", name: str):
        self._db = db
        self.name = name
        self._table_ready = False

    async def _ensure_table(self) -> None:
        """Create the table if it doesn't exist."""
        if self._table_ready:
            return
        async with self._db._writing() as conn:
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS [{self.name}] (
                    _id TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
            """)
        self._table_ready = True

    async def create_index(self, field: str, unique: bool = False) -> None:
        """Create an expression index on a document field."""
        await self._ensure_table()
        index_name = f"{self.name}_{re.sub(r'[^a-zA-Z0-9_]', '_', field)}"
        kind = "UNIQUE INDEX" if unique else "INDEX"
        async with self._db._writing() as conn:
            await conn.execute(
                f"CREATE {kind} IF NOT EXISTS [{index_name}] "
                f"ON [{self.name}] ({_json_extract(field)})"
            )
        logger.debug(f"Index ready: {index_name} (unique={unique})")

    async def insert_one(self, document: Dict) -> "InsertOneResult":
        """Insert a single document.

        Raises:
            DuplicateKeyError: If the document violates a unique index.
        """
        await self._ensure_table()
        _id = str(ObjectId())
        async with self._db._writing() as conn:
            await conn.execute(
                f"INSERT INTO [{self.name}] (_id, data) VALUES (?, ?)",
                (_id, _dump(document)),
            )
        return InsertOneResult(_id)

    async def find_one(self, query: Optional[Dict] = None) -> Optional[Dict]:
        """Find a single document matching the query."""
        await self._ensure_table()
        where, params = _build_where(query or {})
        sql = f"SELECT _id, data FROM [{self.name}] WHERE {where} LIMIT 1"

        async with self._db._get_conn() as conn:
            async with conn.execute(sql, params) as cursor:
                row = await cursor.fetchone()
        return _deserialize_doc(row[1], row[0]) if row else None

    def find(self, query: Optional[Dict] = None) -> SQLiteCursor:
        """Return a cursor for documents matching the query."""
        return SQLiteCursor(self, query or {})

    async def find_one_and_update(self, query: Dict, update: Dict) -> Optional[Dict]:
        """Apply a $set update to the first match and return the updated document.

        The read and the write happen under one hold of the write lock, so
        concurrent updates of the same document are applied one after the
        other.
        """
        await self._ensure_table()
        where, params = _build_where(query)
        async with self._db._writing() as conn:
            async with conn.execute(
                f"SELECT _id, data FROM [{self.name}] WHERE {where} LIMIT 1", params
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            _id, data = row
            updated = _dump(_apply_update(json.loads(data), update))
            await conn.execute(
                f"UPDATE [{self.name}] SET data = ? WHERE _id = ?", (updated, _id)
            )
        return _deserialize_doc(updated, _id)

    async def delete_one(self, query: Dict) -> "DeleteResult":
        """Delete the first document matching the query."""
        await self._ensure_table()
        where, params = _build_where(query)
        async with self._db._writing() as conn:
            cursor = await conn.execute(
                f"DELETE FROM [{self.name}] WHERE _id IN "
                f"(SELECT _id FROM [{self.name}] WHERE {where} LIMIT 1)",
                params,
            )
            deleted = cursor.rowcount
        return DeleteResult(deleted)


# ============================================================
# Result types: mimic Motor/PyMongo result objects
# ============================================================

class InsertOneResult:
    def __init__(self, inserted_id: str):
        self.inserted_id = inserted_id


class DeleteResult:
    def __init__(self, deleted_count: int):
        self.deleted_count = deleted_count


# ============================================================
# Database: mimics Motor's AsyncIOMotorDatabase
# ============================================================

class SQLiteDatabase:
    """Async SQLite database that mimics Motor's MongoDB database API.

    Collections are accessed as attributes: db.users, db.notes.
    Each collection becomes a table in the SQLite database.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        self._collections: Dict[str, SQLiteCollection] = {}
        self._write_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        """Open the SQLite connection."""
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path, timeout=30.0)
        # Enable WAL mode for better concurrent read/write performance
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA busy_timeout=5000")
        await self._conn.create_function("regexp", 2, _regexp, deterministic=True)
        logger.info(f"SQLite database connected: {self._db_path}")

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            self._collections.clear()
            logger.info("SQLite database closed")

    def _get_conn(self):
        """Get the connection (context manager compatible)."""
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return _ConnContext(self._conn)

    @asynccontextmanager
    async def _writing(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run one write unit: commit on success, roll back on failure.

        The lock keeps another request's statements out of the transaction,
        so a rollback never discards someone else's uncommitted write.

        Raises:
            DuplicateKeyError: A statement violated a unique index.
        """
        async with self._write_lock:
            async with self._get_conn() as conn:
                try:
                    yield conn
                except sqlite3.IntegrityError as e:
                    await conn.rollback()
                    raise DuplicateKeyError(str(e)) from e
                except BaseException:
                    await conn.rollback()
                    raise
                await conn.commit()

    async def command(self, cmd: str) -> Dict:
        """Mimic MongoDB admin commands (ping)."""
        if cmd != "ping":
            raise ValueError(f"Unsupported command: {cmd}")
        async with self._get_conn() as conn:
            await conn.execute("SELECT 1")
        return {"ok": 1}

    def __getattr__(self, name: str) -> SQLiteCollection:
        """Access collections as attributes: db.users, db.notes."""
        if name.startswith("_"):
            raise AttributeError(name)
        if name not in self._collections:
            self._collections[name] = SQLiteCollection(self, name)
        return self._collections[name]


class _ConnContext:
    """Async context manager wrapper for the shared connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def __aenter__(self) -> aiosqlite.Connection:
        return self._conn

    async def __aexit__(self, *args):
        pass  # Connection stays open: managed by SQLiteDatabase

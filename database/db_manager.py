"""
Database Manager for the local persisted cache.
Handles all SQLite database operations including:
- Schema initialization
- Key/value reads, writes and deletes for cached collections
"""

import aiosqlite
import os
from datetime import datetime, timezone
from typing import List, Optional

from config import DB_PATH as CONFIGURED_DB_PATH

DB_PATH = CONFIGURED_DB_PATH or "data/cheatsheet_cache.db"


# ========================================
# Database Initialization
# ========================================

async def init_db():
    """Initialize database schema."""
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)

    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS cache_entries (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await db.commit()


# ========================================
# Key/Value Operations
# ========================================

async def get_value(key: str) -> Optional[str]:
    """Return the stored string for key, or None if absent."""
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            "SELECT value FROM cache_entries WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
    return row[0] if row else None


async def set_value(key: str, value: str) -> None:
    """Insert or replace the string stored under key."""
    now = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute("""
            INSERT INTO cache_entries (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """, (key, value, now))
        await db.commit()


async def delete_value(key: str) -> None:
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
        await db.commit()


async def list_keys(prefix: str = "") -> List[str]:
    """List stored keys, optionally restricted to a prefix."""
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            "SELECT key FROM cache_entries WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
            (prefix.replace("%", r"\%").replace("_", r"\_") + "%",),
        ) as cursor:
            rows = await cursor.fetchall()
    return [row[0] for row in rows]

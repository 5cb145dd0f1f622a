"""SQLite database connection and schema initialization."""

import os
from pathlib import Path

import aiosqlite

DATABASE_PATH = os.getenv("DATABASE_PATH", "./data/mediaflow.db")

# Global connection holder
_db_connection: aiosqlite.Connection | None = None


async def init_database(db_path: str | None = None) -> None:
    """Initialize the database connection and create schema."""
    global _db_connection

    db_path = db_path or DATABASE_PATH

    # Ensure the data directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    _db_connection = await aiosqlite.connect(db_path)
    _db_connection.row_factory = aiosqlite.Row

    await _create_schema(_db_connection)


async def close_database() -> None:
    """Close the database connection."""
    global _db_connection
    if _db_connection:
        await _db_connection.close()
        _db_connection = None


async def get_db() -> aiosqlite.Connection:
    """Get the database connection."""
    if _db_connection is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _db_connection


async def _create_schema(db: aiosqlite.Connection) -> None:
    """Create database tables and indexes."""
    # Saved workflows; the graph is stored as JSON in wire form
    await db.execute("""
        CREATE TABLE IF NOT EXISTS workflows (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            nodes_json TEXT NOT NULL DEFAULT '[]',
            edges_json TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_workflows_updated
        ON workflows(updated_at)
    """)

    await db.commit()

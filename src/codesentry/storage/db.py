"""SQLite database connection management and schema migrations."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS scan_jobs (
    code_id TEXT PRIMARY KEY,
    status TEXT NOT NULL DEFAULT 'PENDING',
    attempts_made INTEGER NOT NULL DEFAULT 0,
    max_attempts INTEGER NOT NULL DEFAULT 10,
    poll_interval REAL NOT NULL DEFAULT 3.0,
    timed_out INTEGER NOT NULL DEFAULT 0,
    outcome TEXT NOT NULL DEFAULT '',
    started_at REAL NOT NULL,
    finished_at REAL
);

CREATE TABLE IF NOT EXISTS scan_reports (
    code_id TEXT PRIMARY KEY,
    report_id TEXT NOT NULL DEFAULT '',
    security_score INTEGER NOT NULL,
    summary TEXT NOT NULL DEFAULT '',
    scan_time TEXT NOT NULL DEFAULT '',
    saved_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS vulnerabilities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    type TEXT NOT NULL DEFAULT '',
    severity TEXT NOT NULL DEFAULT 'LOW',
    line INTEGER NOT NULL DEFAULT 0,
    description TEXT NOT NULL DEFAULT '',
    suggestion TEXT NOT NULL DEFAULT '',
    code_snippet TEXT NOT NULL DEFAULT '',
    FOREIGN KEY (code_id) REFERENCES scan_reports(code_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_vulnerabilities_code
    ON vulnerabilities(code_id);
"""


async def get_db(db_path: str | Path) -> aiosqlite.Connection:
    """Open (or create) the database and run migrations."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(str(db_path))
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")

    await _migrate(db)
    return db


async def _migrate(db: aiosqlite.Connection) -> None:
    """Run schema migrations if needed."""
    cursor = await db.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    row = await cursor.fetchone()

    if row is None:
        # Fresh database, create everything
        await db.executescript(SCHEMA_SQL)
        await db.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        await db.commit()
        logger.info("Database initialized at schema version %d", SCHEMA_VERSION)
        return

    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    current = row[0] if row else 0

    if current < SCHEMA_VERSION:
        logger.info(
            "Migrating database from version %d to %d",
            current,
            SCHEMA_VERSION,
        )
        await db.execute(
            "UPDATE schema_version SET version = ?",
            (SCHEMA_VERSION,),
        )
        await db.commit()

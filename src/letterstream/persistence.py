# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite-backed durable queue storage.

This module provides ``SqliteQueueStorage``, a ``QueueStorage`` that keeps
pending letters in a database table so the queue survives a process
restart. Letters are stored as JSON payloads in insertion order (an
autoincrement ``seq`` column) together with the attachment name, path and the size measured
at enqueue time.

Each operation opens and closes its own aiosqlite connection, so the
database path must point to a file; ``":memory:"`` would give every call
a fresh empty database.

Example:
    Using a durable queue::

        storage = SqliteQueueStorage("/var/lib/letters/queue.db")
        await storage.init_db()
        queue = LetterQueue(storage)
"""

from __future__ import annotations

import json
import re

import aiosqlite

from .letter_queue import QueueStorage
from .models import Letter

DEFAULT_TABLE = "letter_queue"

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqliteQueueStorage(QueueStorage):
    """Queue storage persisted in an SQLite table.

    Attributes:
        db_path: Path to the SQLite database file.
        table: Name of the queue table.
    """

    def __init__(self, db_path: str, table: str = DEFAULT_TABLE):
        """Initialize the storage.

        Args:
            db_path: Path to the SQLite database file.
            table: Queue table name; letters, digits and underscores only.

        Raises:
            ValueError: If ``table`` is not a plain SQL identifier.
        """
        if not _TABLE_NAME_RE.match(table):
            raise ValueError(f"Invalid queue table name: {table!r}")
        self.db_path = db_path
        self.table = table
        self._initialized = False

    async def init_db(self) -> None:
        """Create the queue table if needed. Idempotent."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    unique_doc_id TEXT UNIQUE NOT NULL,
                    document_file_name TEXT NOT NULL DEFAULT '',
                    document_path TEXT NOT NULL DEFAULT '',
                    payload TEXT NOT NULL,
                    file_size INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            await db.commit()
        self._initialized = True

    async def _ensure_db(self) -> None:
        if not self._initialized:
            await self.init_db()

    async def enqueue(self, letter: Letter, file_size: int) -> None:
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"INSERT INTO {self.table} "
                "(unique_doc_id, document_file_name, document_path, payload, file_size) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    letter.unique_doc_id,
                    letter.document_file_name,
                    letter.document_path,
                    letter.model_dump_json(),
                    int(file_size),
                ),
            )
            await db.commit()

    async def drain(self) -> list[Letter]:
        """Select and delete every row inside a single transaction."""
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            async with db.execute(f"SELECT seq, payload FROM {self.table} ORDER BY seq") as cur:
                rows = await cur.fetchall()
            if rows:
                await db.execute(f"DELETE FROM {self.table} WHERE seq <= ?", (rows[-1][0],))
            await db.commit()
        return [Letter.model_validate(json.loads(payload)) for _, payload in rows]

    async def count(self) -> int:
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(f"SELECT COUNT(*) FROM {self.table}") as cur:
                row = await cur.fetchone()
        return int(row[0])

    async def cumulative_size(self) -> int:
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(f"SELECT COALESCE(SUM(file_size), 0) FROM {self.table}") as cur:
                row = await cur.fetchone()
        return int(row[0])

    async def contains(self, unique_doc_id: str) -> bool:
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                f"SELECT 1 FROM {self.table} WHERE unique_doc_id = ? LIMIT 1", (unique_doc_id,)
            ) as cur:
                row = await cur.fetchone()
        return row is not None

    async def document_path_for(self, file_name: str) -> str | None:
        await self._ensure_db()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                f"SELECT document_path FROM {self.table} WHERE document_file_name = ? ORDER BY seq LIMIT 1",
                (file_name,),
            ) as cur:
                row = await cur.fetchone()
        return row[0] if row else None

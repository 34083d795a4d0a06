"""Persistent state: open threads, relayed messages and blocked users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

_U64 = 2**64
_I64_MAX = 2**63

_MIGRATIONS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS "threads" (
        "id" INTEGER PRIMARY KEY,
        "dm_channel_id" INTEGER NOT NULL,
        "user_id" INTEGER NOT NULL,
        "opened_by_id" INTEGER NOT NULL,
        "created_at" TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS "threads_dm_channel_id" ON "threads" ("dm_channel_id");
    CREATE INDEX IF NOT EXISTS "threads_user_id" ON "threads" ("user_id");
    CREATE TABLE IF NOT EXISTS "sent_messages" (
        "id" INTEGER PRIMARY KEY,
        "thread_id" INTEGER NOT NULL REFERENCES "threads" ("id") ON DELETE CASCADE,
        "forwarded_message_id" INTEGER NOT NULL,
        "author_id" INTEGER NOT NULL,
        "anonymous" INTEGER NOT NULL,
        "image_filename" TEXT
    );
    CREATE INDEX IF NOT EXISTS "sent_messages_forwarded"
        ON "sent_messages" ("forwarded_message_id");
    CREATE TABLE IF NOT EXISTS "received_messages" (
        "id" INTEGER PRIMARY KEY,
        "thread_id" INTEGER NOT NULL REFERENCES "threads" ("id") ON DELETE CASCADE,
        "forwarded_message_id" INTEGER NOT NULL,
        "image_filename" TEXT
    );
    CREATE TABLE IF NOT EXISTS "blocked_users" (
        "id" INTEGER PRIMARY KEY
    );
    """,
)


def _to_db(value: int) -> int:
    """Store an unsigned 64-bit ID in a signed 64-bit column."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < _U64:
        raise ValueError(f"ID out of range: {value!r}")
    return value - _U64 if value >= _I64_MAX else value


def _from_db(value: int) -> int:
    return value + _U64 if value < 0 else value


def _timestamp_to_db(when: datetime) -> str:
    if when.tzinfo is None or when.utcoffset() is None:
        raise ValueError("timestamps must be timezone-aware")
    return when.astimezone(timezone.utc).isoformat()


def _timestamp_from_db(text: str) -> datetime:
    return datetime.fromisoformat(text).astimezone(timezone.utc)


@dataclass(frozen=True)
class Thread:
    id: int
    dm_channel_id: int
    user_id: int
    opened_by_id: int
    created_at: datetime

    @classmethod
    def _from_row(cls, row: Any) -> Thread:
        return cls(
            id=_from_db(row["id"]),
            dm_channel_id=_from_db(row["dm_channel_id"]),
            user_id=_from_db(row["user_id"]),
            opened_by_id=_from_db(row["opened_by_id"]),
            created_at=_timestamp_from_db(row["created_at"]),
        )


@dataclass(frozen=True)
class SentMessage:
    id: int
    thread_id: int
    forwarded_message_id: int
    author_id: int
    anonymous: bool
    image_filename: str | None = None

    @classmethod
    def _from_row(cls, row: Any) -> SentMessage:
        return cls(
            id=_from_db(row["id"]),
            thread_id=_from_db(row["thread_id"]),
            forwarded_message_id=_from_db(row["forwarded_message_id"]),
            author_id=_from_db(row["author_id"]),
            anonymous=bool(row["anonymous"]),
            image_filename=row["image_filename"],
        )


@dataclass(frozen=True)
class ReceivedMessage:
    id: int
    thread_id: int
    forwarded_message_id: int
    image_filename: str | None = None

    @classmethod
    def _from_row(cls, row: Any) -> ReceivedMessage:
        return cls(
            id=_from_db(row["id"]),
            thread_id=_from_db(row["thread_id"]),
            forwarded_message_id=_from_db(row["forwarded_message_id"]),
            image_filename=row["image_filename"],
        )


class Database:
    """An SQLite store for the bot's state."""

    def __init__(self, connection: aiosqlite.Connection):
        self._conn = connection

    @classmethod
    async def open(cls, path: str | Path) -> Database:
        """Connect to the database at ``path``; ``":memory:"`` keeps it in memory."""
        connection = await aiosqlite.connect(str(path))
        connection.row_factory = aiosqlite.Row
        await connection.execute("PRAGMA foreign_keys = ON")
        return cls(connection)

    async def close(self) -> None:
        await self._conn.close()

    async def __aenter__(self) -> Database:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def migrate(self) -> None:
        """Apply every schema migration not yet applied."""
        async with self._conn.execute("PRAGMA user_version") as cursor:
            (version,) = await cursor.fetchone()
        for number, script in enumerate(_MIGRATIONS[version:], start=version + 1):
            await self._conn.executescript(script)
            await self._conn.execute(f"PRAGMA user_version = {number}")
            await self._conn.commit()

    async def _execute(self, sql: str, params: tuple = ()) -> None:
        await self._conn.execute(sql, params)
        await self._conn.commit()

    async def _fetch_one(self, sql: str, params: tuple) -> Any:
        async with self._conn.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        if len(rows) > 1:
            raise RuntimeError(f"expected at most one row, found {len(rows)}")
        return rows[0] if rows else None

    # Blocked users

    async def block_user(self, user_id: int) -> None:
        await self._execute(
            'INSERT INTO "blocked_users" ("id") VALUES (?) ON CONFLICT DO NOTHING',
            (_to_db(user_id),),
        )

    async def unblock_user(self, user_id: int) -> None:
        await self._execute(
            'DELETE FROM "blocked_users" WHERE "id" = ?', (_to_db(user_id),)
        )

    async def is_user_blocked(self, user_id: int) -> bool:
        async with self._conn.execute(
            'SELECT 1 FROM "blocked_users" WHERE "id" = ?', (_to_db(user_id),)
        ) as cursor:
            return await cursor.fetchone() is not None

    # Received messages

    async def get_received_message(self, message_id: int) -> ReceivedMessage | None:
        row = await self._fetch_one(
            'SELECT * FROM "received_messages" WHERE "id" = ?', (_to_db(message_id),)
        )
        return None if row is None else ReceivedMessage._from_row(row)

    async def insert_received_message(self, message: ReceivedMessage) -> None:
        await self._execute(
            'INSERT INTO "received_messages" '
            '("id", "thread_id", "forwarded_message_id", "image_filename") '
            "VALUES (?, ?, ?, ?)",
            (
                _to_db(message.id),
                _to_db(message.thread_id),
                _to_db(message.forwarded_message_id),
                message.image_filename,
            ),
        )

    # Sent messages

    async def get_sent_message(self, message_id: int) -> SentMessage | None:
        row = await self._fetch_one(
            'SELECT * FROM "sent_messages" WHERE "id" = ?', (_to_db(message_id),)
        )
        return None if row is None else SentMessage._from_row(row)

    async def get_sent_message_by_forwarded_message(
        self, forwarded_message_id: int
    ) -> SentMessage | None:
        row = await self._fetch_one(
            'SELECT * FROM "sent_messages" WHERE "forwarded_message_id" = ?',
            (_to_db(forwarded_message_id),),
        )
        return None if row is None else SentMessage._from_row(row)

    async def insert_sent_message(self, message: SentMessage) -> None:
        await self._execute(
            'INSERT INTO "sent_messages" ("id", "thread_id", "forwarded_message_id", '
            '"author_id", "anonymous", "image_filename") VALUES (?, ?, ?, ?, ?, ?)',
            (
                _to_db(message.id),
                _to_db(message.thread_id),
                _to_db(message.forwarded_message_id),
                _to_db(message.author_id),
                bool(message.anonymous),
                message.image_filename,
            ),
        )

    async def delete_sent_message(self, message_id: int) -> None:
        await self._execute(
            'DELETE FROM "sent_messages" WHERE "id" = ?', (_to_db(message_id),)
        )

    # Threads

    async def get_thread(self, thread_id: int) -> Thread | None:
        row = await self._fetch_one(
            'SELECT * FROM "threads" WHERE "id" = ?', (_to_db(thread_id),)
        )
        return None if row is None else Thread._from_row(row)

    async def get_thread_by_dm_channel(self, dm_channel_id: int) -> Thread | None:
        row = await self._fetch_one(
            'SELECT * FROM "threads" WHERE "dm_channel_id" = ?', (_to_db(dm_channel_id),)
        )
        return None if row is None else Thread._from_row(row)

    async def get_thread_by_user(self, user_id: int) -> Thread | None:
        row = await self._fetch_one(
            'SELECT * FROM "threads" WHERE "user_id" = ?', (_to_db(user_id),)
        )
        return None if row is None else Thread._from_row(row)

    async def insert_thread(self, thread: Thread) -> None:
        await self._execute(
            'INSERT INTO "threads" ("id", "dm_channel_id", "user_id", "opened_by_id", '
            '"created_at") VALUES (?, ?, ?, ?, ?)',
            (
                _to_db(thread.id),
                _to_db(thread.dm_channel_id),
                _to_db(thread.user_id),
                _to_db(thread.opened_by_id),
                _timestamp_to_db(thread.created_at),
            ),
        )

    async def delete_thread(self, thread_id: int) -> None:
        await self._execute('DELETE FROM "threads" WHERE "id" = ?', (_to_db(thread_id),))
"""
Remote Store - The slower, authoritative tier.

Records are keyed by player identity. The engine consumes three
operations:
- fetch_record(player_id) -> RemoteRecord, or raises RecordNotFound
- upsert_record(player_id, fields)
- query_top(n) -> records ordered by balance, highest first

Every backend failure surfaces as RemoteUnavailable.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable
import sqlite3

from .errors import RecordNotFound, RemoteUnavailable
from .schema import REMOTE_FIELDS, RemoteRecord


@runtime_checkable
class RemoteStore(Protocol):
    """Remote player record store."""

    def fetch_record(self, player_id: str) -> RemoteRecord:
        ...

    def upsert_record(self, player_id: str, fields: Mapping[str, Any]) -> None:
        ...

    def query_top(self, n: int) -> list[RemoteRecord]:
        ...


def _checked_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - REMOTE_FIELDS
    if unknown:
        raise ValueError(f"Unknown remote fields: {sorted(unknown)}")
    return dict(fields)


class InMemoryRemoteStore:
    """
    Dictionary-backed store with failure injection.

    Set available=False to make every call raise RemoteUnavailable.
    upserts records every successful write in order.
    """

    def __init__(self, records: list[RemoteRecord] | None = None):
        self.records: dict[str, RemoteRecord] = {r.player_id: r for r in records or []}
        self.available = True
        self.upserts: list[tuple[str, dict[str, Any]]] = []

    def _check_available(self):
        if not self.available:
            raise RemoteUnavailable("Remote store is offline")

    def fetch_record(self, player_id: str) -> RemoteRecord:
        self._check_available()
        record = self.records.get(player_id)
        if record is None:
            raise RecordNotFound(player_id)
        return record

    def upsert_record(self, player_id: str, fields: Mapping[str, Any]) -> None:
        self._check_available()
        fields = _checked_fields(fields)
        existing = self.records.get(player_id)
        base = existing.model_dump() if existing is not None else {"player_id": player_id}
        self.records[player_id] = RemoteRecord.model_validate({**base, **fields})
        self.upserts.append((player_id, fields))

    def query_top(self, n: int) -> list[RemoteRecord]:
        self._check_available()
        ranked = sorted(self.records.values(), key=lambda r: r.balance, reverse=True)
        return ranked[:max(n, 0)]


_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    player_id         TEXT PRIMARY KEY,
    balance           INTEGER NOT NULL DEFAULT 0,
    income_per_minute REAL NOT NULL DEFAULT 50,
    last_accrual_at   REAL NOT NULL DEFAULT 0,
    display_name      TEXT,
    avatar_url        TEXT
);

CREATE INDEX IF NOT EXISTS idx_users_balance ON users(balance DESC);
"""

_COLUMNS = [
    "player_id", "balance", "income_per_minute",
    "last_accrual_at", "display_name", "avatar_url",
]


class SqliteRemoteStore:
    """
    SQLite-backed store with a single `users` table.

    A connection is opened per call, so the store can be used from the
    flush worker thread as well as the event loop.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    def _connect(self) -> _ClosingConnection:
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=5.0)
        except sqlite3.Error as e:
            raise RemoteUnavailable(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return _ClosingConnection(conn)

    def fetch_record(self, player_id: str) -> RemoteRecord:
        col_names = ", ".join(_COLUMNS)
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {col_names} FROM users WHERE player_id = ?",
                    (player_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise RemoteUnavailable(str(e)) from e

        if row is None:
            raise RecordNotFound(player_id)
        return RemoteRecord(**dict(row))

    def upsert_record(self, player_id: str, fields: Mapping[str, Any]) -> None:
        fields = _checked_fields(fields)
        columns = ["player_id"] + list(fields)
        placeholders = ", ".join("?" for _ in columns)
        if fields:
            updates = ", ".join(f"{c} = excluded.{c}" for c in fields)
            conflict = f"ON CONFLICT(player_id) DO UPDATE SET {updates}"
        else:
            conflict = "ON CONFLICT(player_id) DO NOTHING"
        sql = f"INSERT INTO users ({', '.join(columns)}) VALUES ({placeholders}) {conflict}"

        try:
            with self._connect() as conn:
                conn.execute(sql, [player_id] + list(fields.values()))
        except sqlite3.Error as e:
            raise RemoteUnavailable(str(e)) from e

    def query_top(self, n: int) -> list[RemoteRecord]:
        col_names = ", ".join(_COLUMNS)
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {col_names} FROM users ORDER BY balance DESC, player_id LIMIT ?",
                    (max(n, 0),),
                ).fetchall()
        except sqlite3.Error as e:
            raise RemoteUnavailable(str(e)) from e
        return [RemoteRecord(**dict(row)) for row in rows]


class _ClosingConnection:
    """Commit-or-rollback, then close. sqlite3's own context manager does not close."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def __enter__(self) -> sqlite3.Connection:
        return self._conn

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            self._conn.close()
        return False

"""Entity store backends (memory/SQLite/Postgres)."""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
import sqlite3
from typing import Any, Iterator

import psycopg

from .entities import Entity, entity_type

MEMORY_DSN = "memory://"


def is_postgres_dsn(value: str | None) -> bool:
    if not value:
        return False
    return value.startswith("postgres://") or value.startswith("postgresql://")


def build_store(dsn: str) -> "EntityStore":
    if dsn == MEMORY_DSN:
        return InMemoryEntityStore()
    if is_postgres_dsn(dsn):
        return PostgresEntityStore(dsn=dsn)
    return SqliteEntityStore(path=Path(_sqlite_path(dsn)))


class EntityStore:
    """Key/value entity storage keyed by (kind, id).

    Reads observe every earlier write made through the same store. Writes made
    inside ``transaction()`` become durable together when the block exits and
    are all discarded if it raises. Nested blocks join the outer one.
    """

    def load(self, kind: str, entity_id: str) -> Entity | None:
        entity_cls = entity_type(kind)
        record = self._get(kind, str(entity_id))
        if record is None:
            return None
        return entity_cls.from_record(str(entity_id), record)

    def save(self, entity: Entity) -> None:
        entity_type(entity.kind)
        self._put(entity.kind, entity.id, entity.to_record())

    def create(self, kind: str, entity_id: str) -> Entity:
        return entity_type(kind)(id=str(entity_id))

    def exists(self, kind: str, entity_id: str) -> bool:
        entity_type(kind)
        return self._get(kind, str(entity_id)) is not None

    def transaction(self) -> AbstractContextManager[None]:
        raise NotImplementedError

    def _get(self, kind: str, entity_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def _put(self, kind: str, entity_id: str, record: dict[str, Any]) -> None:
        raise NotImplementedError


@dataclass
class InMemoryEntityStore(EntityStore):
    records: dict[tuple[str, str], str] = field(default_factory=dict)
    _in_transaction: bool = field(default=False, init=False, repr=False)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            yield
            return
        snapshot = dict(self.records)
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self.records = snapshot
            raise
        finally:
            self._in_transaction = False

    def _get(self, kind: str, entity_id: str) -> dict[str, Any] | None:
        body = self.records.get((kind, entity_id))
        if body is None:
            return None
        return json.loads(body)

    def _put(self, kind: str, entity_id: str, record: dict[str, Any]) -> None:
        self.records[(kind, entity_id)] = _encode(record)


@dataclass
class SqliteEntityStore(EntityStore):
    path: Path
    _tx_conn: sqlite3.Connection | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._session() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rollup_entities (
                    kind TEXT NOT NULL,
                    entity_id TEXT NOT NULL,
                    body_json TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL,
                    PRIMARY KEY (kind, entity_id)
                )
                """
            )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._tx_conn is not None:
            yield
            return
        conn = self._connect()
        self._tx_conn = conn
        try:
            with conn:
                yield
        finally:
            self._tx_conn = None
            conn.close()

    def _get(self, kind: str, entity_id: str) -> dict[str, Any] | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT body_json FROM rollup_entities WHERE kind = ? AND entity_id = ?",
                (kind, entity_id),
            ).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def _put(self, kind: str, entity_id: str, record: dict[str, Any]) -> None:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO rollup_entities (kind, entity_id, body_json, updated_at_utc)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(kind, entity_id)
                DO UPDATE SET
                    body_json = excluded.body_json,
                    updated_at_utc = excluded.updated_at_utc
                """,
                (kind, entity_id, _encode(record), _utc_now()),
            )

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        if self._tx_conn is not None:
            yield self._tx_conn
            return
        conn = self._connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.path))


@dataclass
class PostgresEntityStore(EntityStore):
    dsn: str
    _tx_conn: psycopg.Connection | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        with self._session() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rollup_entities (
                    kind TEXT NOT NULL,
                    entity_id TEXT NOT NULL,
                    body_json TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL,
                    PRIMARY KEY (kind, entity_id)
                )
                """
            )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._tx_conn is not None:
            yield
            return
        with self._connect() as conn:
            self._tx_conn = conn
            try:
                yield
            finally:
                self._tx_conn = None

    def _get(self, kind: str, entity_id: str) -> dict[str, Any] | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT body_json FROM rollup_entities WHERE kind = %s AND entity_id = %s",
                (kind, entity_id),
            ).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def _put(self, kind: str, entity_id: str, record: dict[str, Any]) -> None:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO rollup_entities (kind, entity_id, body_json, updated_at_utc)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (kind, entity_id)
                DO UPDATE SET
                    body_json = EXCLUDED.body_json,
                    updated_at_utc = EXCLUDED.updated_at_utc
                """,
                (kind, entity_id, _encode(record), _utc_now()),
            )

    @contextmanager
    def _session(self) -> Iterator[psycopg.Connection]:
        if self._tx_conn is not None:
            yield self._tx_conn
            return
        with self._connect() as conn:
            yield conn

    def _connect(self) -> psycopg.Connection:
        return psycopg.connect(self.dsn)


def _encode(record: dict[str, Any]) -> str:
    return json.dumps(record, sort_keys=True, ensure_ascii=True, separators=(",", ":"))


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _sqlite_path(dsn: str) -> str:
    if dsn.startswith("sqlite:///"):
        return dsn.replace("sqlite:///", "", 1)
    if dsn.startswith("sqlite://"):
        return dsn.replace("sqlite://", "", 1)
    return dsn

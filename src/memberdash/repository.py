from __future__ import annotations

import json
import re
import sqlite3
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from memberdash.errors import CollectionNotFound, StorageFailure

_COLLECTION_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*$")
_DIRECTIONS = {"asc": "ASC", "desc": "DESC"}

# Numbers and numeric text sort by value; other text reads as 0; bool, null and
# absent sort as NULL.
_NUMERIC_SORT_KEY = (
    "CASE json_type(doc, ?)"
    " WHEN 'integer' THEN json_extract(doc, ?)"
    " WHEN 'real' THEN json_extract(doc, ?)"
    " WHEN 'text' THEN CAST(trim(json_extract(doc, ?)) AS REAL)"
    " END"
)


@dataclass(slots=True, frozen=True)
class Range:
    """Half-open range predicate: ``gte <= value < lt``. Either bound may be omitted."""

    gte: Any = None
    lt: Any = None


Where = Mapping[str, Any]


def encode_value(value: Any) -> Any:
    # Timestamps are kept as UTC ISO strings so text order equals time order.
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat(timespec="microseconds")
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return encode_value(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _json_path(collection: str, field: str) -> str:
    if not isinstance(field, str) or not _FIELD_RE.match(field):
        raise StorageFailure(collection, f"malformed field name {field!r}")
    return f"$.{field}"


def _bind(collection: str, field: str, value: Any) -> Any:
    value = encode_value(value)
    if isinstance(value, (str, int, float)):
        return value
    raise StorageFailure(
        collection, f"unsupported filter value for {field!r}: {type(value).__name__}"
    )


def compile_where(collection: str, where: Where | None) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for field, cond in (where or {}).items():
        path = _json_path(collection, field)
        if isinstance(cond, Range):
            if cond.gte is None and cond.lt is None:
                raise StorageFailure(collection, f"empty range on {field!r}")
            if cond.gte is not None:
                clauses.append("json_extract(doc, ?) >= ?")
                params.extend([path, _bind(collection, field, cond.gte)])
            if cond.lt is not None:
                clauses.append("json_extract(doc, ?) < ?")
                params.extend([path, _bind(collection, field, cond.lt)])
        elif cond is None:
            clauses.append("json_extract(doc, ?) IS NULL")
            params.append(path)
        else:
            clauses.append("json_extract(doc, ?) = ?")
            params.extend([path, _bind(collection, field, cond)])

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def _is_missing_table(exc: sqlite3.OperationalError) -> bool:
    return str(exc).startswith("no such table")


class Query:
    def __init__(
        self,
        collection: Collection,
        where: Where | None = None,
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
        numeric: bool = False,
    ) -> None:
        self._collection = collection
        self._where = where
        self._order_by = order_by
        self._limit = limit
        self._numeric = numeric

    def _sql(self) -> tuple[str, list[Any]]:
        name = self._collection.name
        clause, params = compile_where(name, self._where)
        sql = f'SELECT doc FROM "{name}"{clause}'

        if self._order_by is not None:
            field, direction = self._order_by
            path = _json_path(name, field)
            keyword = _DIRECTIONS.get(str(direction).lower())
            if keyword is None:
                raise StorageFailure(name, f"malformed order direction {direction!r}")
            if self._numeric:
                sql += f" ORDER BY {_NUMERIC_SORT_KEY} {keyword}, rowid ASC"
                params.extend([path] * 4)
            else:
                sql += f" ORDER BY json_extract(doc, ?) {keyword}, rowid ASC"
                params.append(path)
        else:
            sql += " ORDER BY rowid ASC"

        if self._limit is not None:
            if isinstance(self._limit, bool) or not isinstance(self._limit, int) or self._limit <= 0:
                raise StorageFailure(name, f"malformed limit {self._limit!r}")
            sql += " LIMIT ?"
            params.append(self._limit)
        return sql, params

    async def fetch(self) -> list[dict[str, Any]]:
        sql, params = self._sql()
        rows = await self._collection.store.execute(self._collection.name, sql, params)
        return [json.loads(row[0]) for row in rows]


class Collection:
    def __init__(self, store: DocumentStore, name: str) -> None:
        self.store = store
        self.name = name

    async def count(self, where: Where | None = None) -> int:
        clause, params = compile_where(self.name, where)
        rows = await self.store.execute(
            self.name, f'SELECT COUNT(*) FROM "{self.name}"{clause}', params
        )
        return int(rows[0][0]) if rows else 0

    def query(
        self,
        where: Where | None = None,
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
        numeric: bool = False,
    ) -> Query:
        return Query(self, where=where, order_by=order_by, limit=limit, numeric=numeric)

    async def add(self, doc: Mapping[str, Any]) -> str:
        ids = await self.add_many([doc])
        return ids[0]

    async def add_many(self, docs: Iterable[Mapping[str, Any]]) -> list[str]:
        rows: list[tuple[str, str]] = []
        for doc in docs:
            payload = dict(doc)
            doc_id = str(payload.setdefault("_id", uuid.uuid4().hex))
            rows.append((doc_id, json.dumps(payload, default=_json_default, ensure_ascii=False)))

        try:
            async with aiosqlite.connect(self.store.db_path) as db:
                # Collections are created lazily on first write.
                await db.execute(
                    f'CREATE TABLE IF NOT EXISTS "{self.name}" ('
                    "id TEXT PRIMARY KEY, doc TEXT NOT NULL)"
                )
                await db.executemany(
                    f'INSERT INTO "{self.name}" (id, doc) VALUES (?, ?)', rows
                )
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageFailure(self.name, str(exc)) from exc
        return [doc_id for doc_id, _ in rows]


class DocumentStore:
    """Schema-less document store: one SQLite table of JSON documents per collection."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    async def init(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def collection(self, name: str) -> Collection:
        if not isinstance(name, str) or not _COLLECTION_RE.match(name):
            raise StorageFailure(str(name), "malformed collection name")
        return Collection(self, name)

    async def execute(self, collection: str, sql: str, params: list[Any]) -> list[Any]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(sql, params)
                return list(await cursor.fetchall())
        except sqlite3.OperationalError as exc:
            if _is_missing_table(exc):
                raise CollectionNotFound(collection) from exc
            raise StorageFailure(collection, str(exc)) from exc
        except sqlite3.Error as exc:
            raise StorageFailure(collection, str(exc)) from exc

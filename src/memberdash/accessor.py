from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

from nonebot.log import logger

from memberdash.errors import CollectionNotFound
from memberdash.repository import DocumentStore

T = TypeVar("T")


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run reads concurrently and return their results in argument order.

    The first failure propagates; sibling reads are left to finish and their
    results are dropped.
    """
    return list(await asyncio.gather(*aws))


def as_number(value: Any) -> int | float:
    """Numeric value of a loosely-typed field; anything non-numeric reads as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return 0


def sum_magnitude(records: list[dict[str, Any]], field: str = "points") -> int | float:
    return sum(abs(as_number(r.get(field))) for r in records)


class SafeAccessor:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def guard(self, read: Awaitable[T], default: T, collection: str) -> T:
        try:
            return await read
        except CollectionNotFound:
            logger.debug("Collection {} not provisioned, using {!r}", collection, default)
            return default

    async def count(self, collection: str, where: Mapping[str, Any] | None = None) -> int:
        async def _read() -> int:
            return await self.store.collection(collection).count(where)

        return await self.guard(_read(), 0, collection)

    async def list(
        self,
        collection: str,
        where: Mapping[str, Any] | None = None,
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
        numeric: bool = False,
    ) -> list[dict[str, Any]]:
        async def _read() -> list[dict[str, Any]]:
            query = self.store.collection(collection).query(
                where, order_by=order_by, limit=limit, numeric=numeric
            )
            return await query.fetch()

        return await self.guard(_read(), [], collection)

    async def sum_points(self, collection: str, where: Mapping[str, Any] | None = None) -> int | float:
        records = await self.list(collection, where)
        return sum_magnitude(records)

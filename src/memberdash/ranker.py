from __future__ import annotations

from typing import Any

from memberdash.accessor import SafeAccessor, as_number
from memberdash.errors import require_positive
from memberdash.models import USERS, CheckinRankEntry

DEFAULT_LIMIT = 10


def _counter(value: Any) -> int:
    # Numeric text counts by value; absent, null and other values read as zero.
    return int(as_number(value))


def to_rank_entry(doc: dict[str, Any]) -> CheckinRankEntry:
    return CheckinRankEntry(
        user_id=str(doc.get("userId") or doc.get("_id") or ""),
        nickname=str(doc.get("nickname") or ""),
        avatar=doc.get("avatar"),
        total_checkins=_counter(doc.get("totalCheckins")),
        consecutive_checkins=_counter(doc.get("consecutiveCheckins")),
    )


class RankingQuery:
    def __init__(self, accessor: SafeAccessor) -> None:
        self.accessor = accessor

    async def top_checkins(self, limit: int = DEFAULT_LIMIT) -> list[CheckinRankEntry]:
        require_positive("limit", limit)
        docs = await self.accessor.list(
            USERS, order_by=("totalCheckins", "desc"), limit=limit, numeric=True
        )
        return [to_rank_entry(doc) for doc in docs]

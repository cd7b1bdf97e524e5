from __future__ import annotations

from memberdash.accessor import SafeAccessor, join_all
from memberdash.levels import LevelRuleSource
from memberdash.models import LEVEL_RULES, USERS, LevelRule, LevelShare


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    # Counts are read concurrently, so a level may briefly exceed the total.
    return min(100.0, round(count / total * 100, 2))


class DistributionCalculator:
    def __init__(self, accessor: SafeAccessor, levels: LevelRuleSource) -> None:
        self.accessor = accessor
        self.levels = levels

    async def distribution(self) -> list[LevelShare]:
        rules: list[LevelRule] = await self.accessor.guard(
            self.levels.list_active_level_rules(), [], LEVEL_RULES
        )
        total = await self.accessor.count(USERS)
        if not rules:
            return []

        counts = await join_all(
            *(self.accessor.count(USERS, {"levelId": rule.level_id}) for rule in rules)
        )
        return [
            LevelShare(
                level_id=rule.level_id,
                level_name=rule.name,
                count=count,
                percentage=percentage(count, total),
            )
            for rule, count in zip(rules, counts, strict=True)
        ]

from __future__ import annotations

from datetime import datetime, tzinfo

from nonebot.log import logger

from memberdash.accessor import SafeAccessor, join_all
from memberdash.models import (
    POINTS_CONSUME,
    POINTS_EARN,
    POINTS_RECORDS,
    USERS,
    DayWindow,
    GrowthPoint,
    PointsFlowPoint,
)
from memberdash.repository import Range
from memberdash.windows import day_windows

DEFAULT_DAYS = 7


def _created_in(window: DayWindow) -> Range:
    return Range(gte=window.start, lt=window.end)


class SeriesBuilder:
    def __init__(self, accessor: SafeAccessor, tz: tzinfo) -> None:
        self.accessor = accessor
        self.tz = tz

    def _windows(self, days: int, now: datetime) -> list[DayWindow]:
        windows = day_windows(days, now, self.tz)
        logger.debug(
            "Series windows {} .. {} ({} days)", windows[0].label, windows[-1].label, days
        )
        return windows

    async def member_growth(self, now: datetime, days: int = DEFAULT_DAYS) -> list[GrowthPoint]:
        windows = self._windows(days, now)
        # gather keeps argument order, so counts line up with windows by index.
        counts = await join_all(
            *(self.accessor.count(USERS, {"createdAt": _created_in(w)}) for w in windows)
        )
        return [GrowthPoint(date=w.label, count=c) for w, c in zip(windows, counts, strict=True)]

    async def points_flow(
        self, now: datetime, days: int = DEFAULT_DAYS
    ) -> list[PointsFlowPoint]:
        windows = self._windows(days, now)
        reads = []
        for w in windows:
            reads.append(
                self.accessor.sum_points(
                    POINTS_RECORDS, {"type": POINTS_EARN, "createdAt": _created_in(w)}
                )
            )
            reads.append(
                self.accessor.sum_points(
                    POINTS_RECORDS, {"type": POINTS_CONSUME, "createdAt": _created_in(w)}
                )
            )
        sums = await join_all(*reads)

        series: list[PointsFlowPoint] = []
        for i, w in enumerate(windows):
            series.append(
                PointsFlowPoint(date=w.label, earned=sums[2 * i], consumed=sums[2 * i + 1])
            )
        return series

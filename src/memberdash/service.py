from __future__ import annotations

from datetime import datetime, tzinfo

from nonebot.log import logger

from memberdash.accessor import SafeAccessor
from memberdash.aggregator import MetricsAggregator
from memberdash.distribution import DistributionCalculator
from memberdash.errors import StoreError, require_positive
from memberdash.levels import LevelRuleSource
from memberdash.models import (
    CheckinRankEntry,
    DashboardSnapshot,
    GrowthPoint,
    LevelShare,
    PointsFlowPoint,
)
from memberdash.ranker import DEFAULT_LIMIT, RankingQuery
from memberdash.repository import DocumentStore
from memberdash.series import DEFAULT_DAYS, SeriesBuilder


class DashboardService:
    """Entry point for the five read-only dashboard operations.

    Parameters are validated before any read is issued. Missing collections
    read as empty; every other storage error aborts the whole operation.
    """

    def __init__(self, store: DocumentStore, tz: tzinfo, active_days: int = 7) -> None:
        self.tz = tz
        accessor = SafeAccessor(store)
        self.aggregator = MetricsAggregator(accessor, tz, active_days=active_days)
        self.series = SeriesBuilder(accessor, tz)
        self.distribution = DistributionCalculator(accessor, LevelRuleSource(store))
        self.ranking = RankingQuery(accessor)

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now

    async def get_snapshot(self, now: datetime | None = None) -> DashboardSnapshot:
        logger.debug("Dashboard snapshot requested")
        try:
            snapshot = await self.aggregator.snapshot(self._now(now))
        except StoreError:
            logger.exception("Dashboard snapshot failed")
            raise
        logger.info(
            "Snapshot: members={} checkins={} orders={}",
            snapshot.members.total,
            snapshot.checkin.total,
            snapshot.orders.total,
        )
        return snapshot

    async def get_growth_series(
        self, days: int = DEFAULT_DAYS, now: datetime | None = None
    ) -> list[GrowthPoint]:
        require_positive("days", days)
        logger.debug("Member growth series requested: days={}", days)
        try:
            series = await self.series.member_growth(self._now(now), days)
        except StoreError:
            logger.exception("Member growth series failed: days={}", days)
            raise
        logger.info("Member growth series: {} days", len(series))
        return series

    async def get_points_flow_series(
        self, days: int = DEFAULT_DAYS, now: datetime | None = None
    ) -> list[PointsFlowPoint]:
        require_positive("days", days)
        logger.debug("Points flow series requested: days={}", days)
        try:
            series = await self.series.points_flow(self._now(now), days)
        except StoreError:
            logger.exception("Points flow series failed: days={}", days)
            raise
        logger.info("Points flow series: {} days", len(series))
        return series

    async def get_level_distribution(self) -> list[LevelShare]:
        logger.debug("Level distribution requested")
        try:
            shares = await self.distribution.distribution()
        except StoreError:
            logger.exception("Level distribution failed")
            raise
        logger.info("Level distribution: {} levels", len(shares))
        return shares

    async def get_checkin_ranking(self, limit: int = DEFAULT_LIMIT) -> list[CheckinRankEntry]:
        require_positive("limit", limit)
        logger.debug("Checkin ranking requested: limit={}", limit)
        try:
            entries = await self.ranking.top_checkins(limit)
        except StoreError:
            logger.exception("Checkin ranking failed: limit={}", limit)
            raise
        logger.info("Checkin ranking: {} entries (limit {})", len(entries), limit)
        return entries

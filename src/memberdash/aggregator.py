from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from memberdash.accessor import SafeAccessor, join_all
from memberdash.models import (
    CHECKIN_RECORDS,
    EXCHANGE_ORDERS,
    POINTS_CONSUME,
    POINTS_EARN,
    POINTS_RECORDS,
    STATUS_PENDING,
    USERS,
    CheckinStats,
    DashboardSnapshot,
    MemberStats,
    OrderStats,
    PointsStats,
)
from memberdash.repository import Range
from memberdash.windows import today_window


class MetricsAggregator:
    def __init__(self, accessor: SafeAccessor, tz: tzinfo, active_days: int = 7) -> None:
        self.accessor = accessor
        self.tz = tz
        self.active_days = active_days

    async def snapshot(self, now: datetime) -> DashboardSnapshot:
        today = today_window(now, self.tz)
        today_range = Range(gte=today.start, lt=today.end)
        active_since = now - timedelta(days=self.active_days)
        acc = self.accessor

        (
            members_total,
            members_today,
            members_active,
            earned_total,
            consumed_total,
            earned_today,
            consumed_today,
            checkins_total,
            checkins_today,
            checkins_pending,
            orders_total,
            orders_pending,
        ) = await join_all(
            acc.count(USERS),
            acc.count(USERS, {"createdAt": today_range}),
            acc.count(USERS, {"lastLoginAt": Range(gte=active_since)}),
            acc.sum_points(POINTS_RECORDS, {"type": POINTS_EARN}),
            acc.sum_points(POINTS_RECORDS, {"type": POINTS_CONSUME}),
            acc.sum_points(POINTS_RECORDS, {"type": POINTS_EARN, "createdAt": today_range}),
            acc.sum_points(POINTS_RECORDS, {"type": POINTS_CONSUME, "createdAt": today_range}),
            acc.count(CHECKIN_RECORDS),
            acc.count(CHECKIN_RECORDS, {"createdAt": today_range}),
            acc.count(CHECKIN_RECORDS, {"reviewStatus": STATUS_PENDING}),
            acc.count(EXCHANGE_ORDERS),
            acc.count(EXCHANGE_ORDERS, {"status": STATUS_PENDING}),
        )

        return DashboardSnapshot(
            members=MemberStats(
                total=members_total, today_new=members_today, active=members_active
            ),
            points=PointsStats(
                total_earned=earned_total,
                total_consumed=consumed_total,
                today_earned=earned_today,
                today_consumed=consumed_today,
            ),
            checkin=CheckinStats(
                total=checkins_total, today=checkins_today, pending=checkins_pending
            ),
            orders=OrderStats(total=orders_total, pending=orders_pending),
        )

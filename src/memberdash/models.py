from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

USERS = "users"
POINTS_RECORDS = "points_records"
CHECKIN_RECORDS = "checkin_records"
EXCHANGE_ORDERS = "exchange_orders"
LEVEL_RULES = "level_rules"

POINTS_EARN = "earn"
POINTS_CONSUME = "consume"

STATUS_PENDING = 0


@dataclass(slots=True, frozen=True)
class DayWindow:
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return self.start.date().isoformat()


@dataclass(slots=True)
class MemberStats:
    total: int
    today_new: int
    active: int

    def as_dict(self) -> dict[str, Any]:
        return {"total": self.total, "todayNew": self.today_new, "active": self.active}


@dataclass(slots=True)
class PointsStats:
    total_earned: int | float
    total_consumed: int | float
    today_earned: int | float
    today_consumed: int | float

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalEarned": self.total_earned,
            "totalConsumed": self.total_consumed,
            "todayEarned": self.today_earned,
            "todayConsumed": self.today_consumed,
        }


@dataclass(slots=True)
class CheckinStats:
    total: int
    today: int
    pending: int

    def as_dict(self) -> dict[str, Any]:
        return {"total": self.total, "today": self.today, "pending": self.pending}


@dataclass(slots=True)
class OrderStats:
    total: int
    pending: int

    def as_dict(self) -> dict[str, Any]:
        return {"total": self.total, "pending": self.pending}


@dataclass(slots=True)
class DashboardSnapshot:
    members: MemberStats
    points: PointsStats
    checkin: CheckinStats
    orders: OrderStats

    def as_dict(self) -> dict[str, Any]:
        return {
            "members": self.members.as_dict(),
            "points": self.points.as_dict(),
            "checkin": self.checkin.as_dict(),
            "orders": self.orders.as_dict(),
        }


@dataclass(slots=True)
class GrowthPoint:
    date: str
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"date": self.date, "count": self.count}


@dataclass(slots=True)
class PointsFlowPoint:
    date: str
    earned: int | float
    consumed: int | float

    def as_dict(self) -> dict[str, Any]:
        return {"date": self.date, "earned": self.earned, "consumed": self.consumed}


@dataclass(slots=True)
class LevelRule:
    level_id: str | int
    name: str


@dataclass(slots=True)
class LevelShare:
    level_id: str | int
    level_name: str
    count: int
    percentage: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "levelId": self.level_id,
            "levelName": self.level_name,
            "count": self.count,
            "percentage": self.percentage,
        }


@dataclass(slots=True)
class CheckinRankEntry:
    user_id: str
    nickname: str
    avatar: str | None
    total_checkins: int
    consecutive_checkins: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "nickname": self.nickname,
            "avatar": self.avatar,
            "totalCheckins": self.total_checkins,
            "consecutiveCheckins": self.consecutive_checkins,
        }

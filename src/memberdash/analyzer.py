from __future__ import annotations

from memberdash.models import (
    CheckinRankEntry,
    DashboardSnapshot,
    GrowthPoint,
    LevelShare,
    PointsFlowPoint,
)


def _net_text(earned: int, consumed: int) -> str:
    delta = earned - consumed
    if delta > 0:
        return f"净流入 {delta}"
    if delta < 0:
        return f"净流出 {abs(delta)}"
    return "收支持平"


def summarize_snapshot(snapshot: DashboardSnapshot, active_days: int = 7) -> str:
    m, p, c, o = snapshot.members, snapshot.points, snapshot.checkin, snapshot.orders
    lines = [
        "=== 会员运营概览 ===",
        f"会员：总数 {m.total}，今日新增 {m.today_new}，近{active_days}日活跃 {m.active}",
        f"积分：累计发放 {p.total_earned}，累计消耗 {p.total_consumed}",
        f"今日积分：发放 {p.today_earned}，消耗 {p.today_consumed}（{_net_text(p.today_earned, p.today_consumed)}）",
        f"打卡：总数 {c.total}，今日 {c.today}，待审核 {c.pending}",
        f"兑换订单：总数 {o.total}，待处理 {o.pending}",
    ]
    if c.pending > 0 or o.pending > 0:
        lines.append("提醒：有待处理的打卡或订单。")
    return "\n".join(lines)


def summarize_growth(series: list[GrowthPoint]) -> str:
    total = sum(p.count for p in series)
    lines = [f"=== 近{len(series)}日会员增长 ===", f"合计新增：{total}"]
    lines.extend(f"{p.date}: +{p.count}" for p in series)
    return "\n".join(lines)


def summarize_points_flow(series: list[PointsFlowPoint]) -> str:
    earned = sum(p.earned for p in series)
    consumed = sum(p.consumed for p in series)
    lines = [
        f"=== 近{len(series)}日积分流动 ===",
        f"合计：发放 {earned}，消耗 {consumed}（{_net_text(earned, consumed)}）",
    ]
    lines.extend(f"{p.date}: 发放 {p.earned} / 消耗 {p.consumed}" for p in series)
    return "\n".join(lines)


def summarize_levels(shares: list[LevelShare]) -> str:
    if not shares:
        return "暂无启用的等级规则。"
    lines = ["=== 会员等级分布 ==="]
    for s in shares:
        lines.append(f"{s.level_name}: {s.count}人 ({s.percentage:.2f}%)")
    return "\n".join(lines)


def summarize_ranking(entries: list[CheckinRankEntry]) -> str:
    if not entries:
        return "暂无打卡数据。"
    lines = ["=== 打卡排行榜 ==="]
    for i, e in enumerate(entries, start=1):
        name = e.nickname or e.user_id
        lines.append(f"第{i}名 {name}：累计 {e.total_checkins} 次，连续 {e.consecutive_checkins} 天")
    return "\n".join(lines)

from __future__ import annotations

import base64
from datetime import datetime
from pathlib import Path
from time import monotonic

from nonebot import get_driver, logger, on_message
from nonebot.adapters.onebot.v11 import Bot, GroupMessageEvent, MessageSegment
from nonebot.exception import ActionFailed

from memberdash.analyzer import (
    summarize_growth,
    summarize_levels,
    summarize_points_flow,
    summarize_ranking,
    summarize_snapshot,
)
from memberdash.config import Settings
from memberdash.errors import InvalidParameter, StoreError
from memberdash.parser import parse_command, parse_count
from memberdash.plotter import render_growth_chart, render_level_chart, render_points_flow_chart
from memberdash.repository import DocumentStore
from memberdash.service import DashboardService

settings = Settings()
driver = get_driver()
store = DocumentStore(settings.db_path)
service = DashboardService(store, settings.tz, active_days=settings.active_days)

_last_chart_at: dict[int, float] = {}
CHART_COOLDOWN_SECONDS = 8.0

ALL_HELP_TEXT = (
    "可用命令：\n"
    "`/h`：查看本帮助\n"
    "`/dash`：会员、积分、打卡、订单概览\n"
    "`/growth [天数]`：近N日会员增长（默认 {days} 天）\n"
    "`/flow [天数]`：近N日积分发放与消耗（默认 {days} 天）\n"
    "`/levels`：会员等级分布\n"
    "`/top [人数]`：打卡排行榜（默认前 {limit} 名）"
)


def _image_segment_from_file(path: Path) -> MessageSegment:
    raw = path.read_bytes()
    b64 = base64.b64encode(raw).decode("ascii")
    return MessageSegment.image(f"base64://{b64}")


def _is_group_allowed(group_id: int) -> bool:
    return str(group_id) in set(settings.enabled_groups)


def _chart_path(group_id: int, kind: str) -> Path:
    stamp = datetime.now(settings.tz).strftime("%Y%m%d_%H%M%S")
    return settings.chart_dir / str(group_id) / f"{kind}_{stamp}.png"


async def _send_chart(bot: Bot, group_id: int, path: Path) -> None:
    try:
        await bot.send_group_msg(group_id=group_id, message=_image_segment_from_file(path.resolve()))
    except ActionFailed as exc:
        logger.warning("Group {} chart send failed: {}", group_id, exc)


def _charts_allowed(group_id: int) -> bool:
    now = monotonic()
    if now - _last_chart_at.get(group_id, 0.0) < CHART_COOLDOWN_SECONDS:
        return False
    _last_chart_at[group_id] = now
    return True


async def _run_command(bot: Bot, group_id: int, command: str, arg: str | None) -> str:
    if command == "h":
        return ALL_HELP_TEXT.format(days=settings.default_days, limit=settings.default_rank_limit)

    if command == "dash":
        return summarize_snapshot(await service.get_snapshot(), settings.active_days)

    if command == "levels":
        shares = await service.get_level_distribution()
        if shares and _charts_allowed(group_id):
            path = render_level_chart(_chart_path(group_id, "levels"), shares, settings.font_path)
            await _send_chart(bot, group_id, path)
        return summarize_levels(shares)

    if command == "top":
        limit = parse_count(arg, settings.default_rank_limit, "limit")
        return summarize_ranking(await service.get_checkin_ranking(limit))

    days = parse_count(arg, settings.default_days, "days")
    if command == "growth":
        growth = await service.get_growth_series(days)
        if _charts_allowed(group_id):
            path = render_growth_chart(_chart_path(group_id, "growth"), growth, settings.font_path)
            await _send_chart(bot, group_id, path)
        return summarize_growth(growth)

    flow = await service.get_points_flow_series(days)
    if _charts_allowed(group_id):
        path = render_points_flow_chart(_chart_path(group_id, "flow"), flow, settings.font_path)
        await _send_chart(bot, group_id, path)
    return summarize_points_flow(flow)


@driver.on_startup
async def _on_startup() -> None:
    await store.init()
    logger.info("memberdash store at {}", settings.db_path)
    logger.info("memberdash enabled groups: {}", settings.enabled_groups)
    logger.info("memberdash timezone: {}", settings.timezone)


dashboard_msg = on_message(priority=10, block=True)


@dashboard_msg.handle()
async def _handle_dashboard(bot: Bot, event: GroupMessageEvent) -> None:
    allowed = _is_group_allowed(event.group_id)
    if not allowed:
        logger.info("Whitelist check: group_id={} allowed={}", event.group_id, allowed)
        return

    parsed = parse_command(event.get_plaintext().strip())
    if parsed is None:
        return
    command, arg = parsed
    logger.info(
        "Received command {} {} from user {} in group {}",
        command,
        arg,
        event.user_id,
        event.group_id,
    )

    try:
        text = await _run_command(bot, event.group_id, command, arg)
    except InvalidParameter as exc:
        logger.info("Rejected {} argument: {}", command, exc)
        await dashboard_msg.finish(f"参数错误：{exc.name} 必须是正整数。发送 `/h` 查看用法。")
    except StoreError:
        logger.exception("Command {} failed in group {}", command, event.group_id)
        await dashboard_msg.finish("统计查询失败，请查看 bot 日志。")

    await dashboard_msg.finish(text)

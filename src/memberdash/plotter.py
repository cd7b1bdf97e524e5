from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib import font_manager
from matplotlib.ticker import MaxNLocator

from memberdash.models import GrowthPoint, LevelShare, PointsFlowPoint


def _apply_font(font_path: str | None) -> None:
    if font_path:
        font_manager.fontManager.addfont(font_path)
        name = font_manager.FontProperties(fname=font_path).get_name()
        plt.rcParams["font.sans-serif"] = [name]
    plt.rcParams["axes.unicode_minus"] = False


def _level_colors(needed: int) -> list[tuple[float, float, float, float]]:
    colors: list[tuple[float, float, float, float]] = []
    for cmap_name in ["tab20", "Set3", "Paired"]:
        cmap = plt.get_cmap(cmap_name)
        colors.extend([cmap(i) for i in range(cmap.N)])
        if len(colors) >= needed:
            break
    if len(colors) < needed:
        fallback = plt.get_cmap("hsv")
        colors.extend(fallback(i / needed) for i in range(needed - len(colors)))
    return colors[:needed]


def render_growth_chart(
    output_path: Path,
    series: list[GrowthPoint],
    font_path: str | None,
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _apply_font(font_path)

    labels = [p.date[5:] for p in series]
    values = [p.count for p in series]

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(labels, values, marker="o", color="#1890FF", linewidth=2)
    ax.fill_between(range(len(values)), values, color="#1890FF", alpha=0.15)
    for i, v in enumerate(values):
        ax.text(i, v, str(v), ha="center", va="bottom", fontsize=8)
    ax.set_title(f"New Members (Last {len(series)} Days)")
    ax.set_xlabel("Date")
    ax.set_ylabel("New Members")
    ax.set_ylim(bottom=0)
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.tick_params(axis="x", rotation=30)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def render_points_flow_chart(
    output_path: Path,
    series: list[PointsFlowPoint],
    font_path: str | None,
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _apply_font(font_path)

    labels = [p.date[5:] for p in series]
    earned = [p.earned for p in series]
    consumed = [p.consumed for p in series]
    xs = list(range(len(series)))
    width = 0.4

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar([x - width / 2 for x in xs], earned, width=width, color="#52C41A", label="Earned")
    ax.bar([x + width / 2 for x in xs], consumed, width=width, color="#FA8C16", label="Consumed")
    ax.set_xticks(xs)
    ax.set_xticklabels(labels, rotation=30)
    ax.set_title(f"Points Flow (Last {len(series)} Days)")
    ax.set_xlabel("Date")
    ax.set_ylabel("Points")
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.legend(loc="upper left")
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def render_level_chart(
    output_path: Path,
    shares: list[LevelShare],
    font_path: str | None,
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _apply_font(font_path)

    counts = [s.count for s in shares]
    total = sum(counts)

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.set_title("Level Distribution")
    if total > 0:
        labels = [f"{s.level_name}\nN={s.count}" for s in shares]
        pct = [s.percentage for s in shares]
        pct_idx = {"i": 0}

        # Label with the stored percentages rather than matplotlib's recomputed ones.
        def _autopct(_pct: float) -> str:
            i = pct_idx["i"]
            pct_idx["i"] += 1
            if i >= len(pct):
                return ""
            return f"{pct[i]:.2f}%"

        ax.pie(
            counts,
            labels=labels,
            autopct=_autopct,
            startangle=90,
            colors=_level_colors(len(shares)),
            wedgeprops={"width": 0.5, "edgecolor": "white"},
            labeldistance=1.08,
            pctdistance=0.75,
            textprops={"fontsize": 9},
        )
        ax.text(0, 0, f"Total\n{total}", ha="center", va="center", fontsize=12, weight="bold")
        ax.set_aspect("equal")
    else:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)
        ax.axis("off")

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path

from __future__ import annotations

import datetime as dt
import io
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.dates as mdates  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.ticker import FuncFormatter, MaxNLocator  # noqa: E402

from .models import MetricPoint  # noqa: E402

DEFAULT_TITLE = "Code Lines Over Time"
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 400
HEADROOM = 0.10
LINE_COLOR = "steelblue"

_DPI = 100
_RC = {
    "font.family": "sans-serif",
    "svg.fonttype": "none",
    "svg.hashsalt": "git-metrics",
}


def fmt_int(n: int) -> str:
    v = int(n)
    sign = "-" if v < 0 else ""
    a = abs(v)
    if a < 1000:
        return f"{sign}{a}"
    for suffix, div in (("B", 1_000_000_000), ("M", 1_000_000), ("K", 1_000)):
        if a < div:
            continue
        q = a / div
        text = f"{q:.1f}" if q < 100 else f"{q:.0f}"
        if text.endswith(".0"):
            text = text[:-2]
        return f"{sign}{text}{suffix}"
    return f"{sign}{a}"


def x_limits(points: list[MetricPoint], now: dt.datetime | None = None) -> tuple[dt.datetime, dt.datetime]:
    if not points:
        end = now or dt.datetime.now(dt.timezone.utc)
        return end - dt.timedelta(days=1), end
    lo = min(p.timestamp for p in points)
    hi = max(p.timestamp for p in points)
    if lo == hi:
        half = dt.timedelta(hours=12)
        return lo - half, hi + half
    return lo, hi


def y_limits(points: list[MetricPoint]) -> tuple[float, float]:
    if not points:
        return 0.0, 1.0
    totals = [p.cumulative_total for p in points]
    lo = float(min(0, min(totals)))
    hi = float(max(0, max(totals)))
    if hi == lo:
        hi = lo + 1.0
    span = hi - lo
    if hi > 0:
        hi += span * HEADROOM
    if lo < 0:
        lo -= span * HEADROOM
    return lo, hi


def render_svg(
    points: list[MetricPoint],
    *,
    title: str = DEFAULT_TITLE,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    now: dt.datetime | None = None,
) -> str:
    """Draw the cumulative total as one line over commit time and return SVG markup."""
    with plt.rc_context(_RC):
        fig, ax = plt.subplots(figsize=(width / _DPI, height / _DPI), dpi=_DPI)
        try:
            return _draw(fig, ax, points, title=title, now=now)
        finally:
            plt.close(fig)


def style_axes(ax, points: list[MetricPoint], *, now: dt.datetime | None = None) -> None:
    """Set both axis domains and integer-only y ticks with compact labels."""
    x0, x1 = x_limits(points, now=now)
    ax.set_xlim(x0, x1)
    ax.set_ylim(*y_limits(points))

    locator = mdates.AutoDateLocator()
    ax.xaxis.set_major_locator(locator)
    ax.xaxis.set_major_formatter(mdates.ConciseDateFormatter(locator))
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _pos: fmt_int(round(v))))


def _draw(fig, ax, points: list[MetricPoint], *, title: str, now: dt.datetime | None) -> str:
    if points:
        ax.plot(
            [p.timestamp for p in points],
            [p.cumulative_total for p in points],
            color=LINE_COLOR,
            linewidth=1.5,
            marker="o" if len(points) == 1 else None,
            markersize=3,
        )

    style_axes(ax, points, now=now)

    ax.set_title(title, fontsize=16)
    ax.grid(True, alpha=0.3, linestyle="--")
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    fig.tight_layout()

    buf = io.StringIO()
    fig.savefig(buf, format="svg", metadata={"Date": None})
    return buf.getvalue()


def write_svg(path: Path, markup: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(markup, encoding="utf-8")

from __future__ import annotations

from typing import Iterable

from .models import CommitStat, MetricPoint, SeriesSummary


def accumulate(stats: Iterable[CommitStat]) -> list[MetricPoint]:
    """Turn per-commit stats into a running net line total, one point per commit.

    Order is preserved and nothing is clamped: deletions outweighing insertions
    drive the total below zero.
    """
    points: list[MetricPoint] = []
    total = 0
    for st in stats:
        total += st.insertions - st.deletions
        points.append(
            MetricPoint(
                timestamp=st.timestamp,
                cumulative_total=total,
                insertions=st.insertions,
                deletions=st.deletions,
                sha=st.sha,
            )
        )
    return points


def summarize(points: list[MetricPoint]) -> SeriesSummary:
    if not points:
        return SeriesSummary()
    totals = [p.cumulative_total for p in points]
    return SeriesSummary(
        points=len(points),
        first=points[0].timestamp,
        last=points[-1].timestamp,
        final_total=totals[-1],
        min_total=min(totals),
        max_total=max(totals),
        insertions=sum(p.insertions for p in points),
        deletions=sum(p.deletions for p in points),
    )

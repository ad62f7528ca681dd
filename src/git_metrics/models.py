from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True)
class CommitStat:
    sha: str
    timestamp: dt.datetime
    insertions: int = 0
    deletions: int = 0
    files_touched: int = 0

    @property
    def net(self) -> int:
        return self.insertions - self.deletions


@dataclasses.dataclass(frozen=True)
class MetricPoint:
    timestamp: dt.datetime
    cumulative_total: int
    insertions: int = 0
    deletions: int = 0
    sha: str = ""


@dataclasses.dataclass(frozen=True)
class SeriesSummary:
    points: int = 0
    first: dt.datetime | None = None
    last: dt.datetime | None = None
    final_total: int = 0
    min_total: int = 0
    max_total: int = 0
    insertions: int = 0
    deletions: int = 0

"""Aggregate statistics for the dashboard and stats screens."""
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from mygames.constants import (
    COMPLETED_STATUS,
    DIGITAL_FORMAT,
    PENDING_STATUS,
    PERFECT_STATUS,
    PHYSICAL_FORMAT,
    PLAYING_STATUS,
)
from mygames.core.records import GameRecord

TOP_PLATFORMS = 5


@dataclass
class CollectionStats:
    total: int
    completed: int
    completion_pct: int
    backlog: int
    avg_rating: Optional[float]
    physical: int
    digital: int
    by_status: dict[str, int] = field(default_factory=dict)
    top_platforms: list[tuple[str, int]] = field(default_factory=list)
    rating_distribution: list[int] = field(default_factory=list)
    finished_by_year: dict[int, int] = field(default_factory=dict)
    finished_by_month: list[int] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_stats(records: Iterable[GameRecord]) -> CollectionStats:
    records = list(records)
    total = len(records)

    completed = sum(1 for r in records if r.status in (COMPLETED_STATUS, PERFECT_STATUS))
    backlog = sum(1 for r in records if r.status in (PENDING_STATUS, PLAYING_STATUS))

    # Unrated and 0-rated games don't count towards the average
    rated = [r.user_rating for r in records if r.user_rating]
    avg_rating = round(sum(rated) / len(rated), 1) if rated else None

    by_status = Counter(r.status for r in records)
    platforms = Counter(r.platform for r in records)
    # Counter.most_common keeps first-seen order among equal counts
    top_platforms = platforms.most_common(TOP_PLATFORMS)

    distribution = [0] * 11
    for r in records:
        if r.user_rating:
            bucket = _round_half_up(r.user_rating)
            if 0 <= bucket <= 10:
                distribution[bucket] += 1

    by_year: Counter = Counter()
    by_month = [0] * 12
    for r in records:
        if r.status == COMPLETED_STATUS and r.finished_at:
            by_year[r.finished_at.year] += 1
            by_month[r.finished_at.month - 1] += 1

    return CollectionStats(
        total=total,
        completed=completed,
        completion_pct=_round_half_up(completed / total * 100) if total else 0,
        backlog=backlog,
        avg_rating=avg_rating,
        physical=sum(1 for r in records if r.format == PHYSICAL_FORMAT),
        digital=sum(1 for r in records if r.format == DIGITAL_FORMAT),
        by_status=dict(by_status),
        top_platforms=top_platforms,
        rating_distribution=distribution,
        finished_by_year=dict(sorted(by_year.items())),
        finished_by_month=by_month,
    )

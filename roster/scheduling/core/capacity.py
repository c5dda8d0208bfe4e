"""
Free-capacity computation for one day of roster rows.

Every parseable, non-cancelled row becomes one busy window per named worker,
widened by a travel buffer on both sides and clipped to the working day.
A worker's windows are merged and complemented within the working day, and
the free windows are split at noon into morning and afternoon buckets.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import (
    CANCELLED, NO_FREE_TIME,
    DEFAULT_WORKDAY_START, DEFAULT_WORKDAY_NOON, DEFAULT_WORKDAY_END, DEFAULT_BUFFER_MINUTES,
)
from ... import config
from .collation import name_sort_key
from .interval import Interval, parse_range, format_range, split_worker_field, normalize_worker_name, to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacitySettings:
    start: int = DEFAULT_WORKDAY_START
    noon: int = DEFAULT_WORKDAY_NOON
    end: int = DEFAULT_WORKDAY_END
    buffer: int = DEFAULT_BUFFER_MINUTES

    @classmethod
    def from_config(cls) -> "CapacitySettings":
        start = to_minutes(config.WORKDAY_START)
        noon = to_minutes(config.WORKDAY_NOON)
        end = to_minutes(config.WORKDAY_END)
        if start is None or noon is None or end is None or not start <= noon <= end:
            raise ValueError(
                f"Invalid working day {config.WORKDAY_START}/{config.WORKDAY_NOON}/{config.WORKDAY_END}"
            )
        return cls(start=start, noon=noon, end=end, buffer=config.CAPACITY_BUFFER_MINUTES)


@dataclass(frozen=True)
class CapacityResult:
    name: str
    morning: str
    afternoon: str
    morning_windows: Tuple[Interval, ...] = field(default=(), compare=False)
    afternoon_windows: Tuple[Interval, ...] = field(default=(), compare=False)


def is_cancelled(client: Optional[str]) -> bool:
    return bool(CANCELLED.search(client or ""))


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or touching intervals; the result is sorted by start."""
    merged: List[Interval] = []
    for current in sorted(intervals, key=lambda iv: iv.start):
        if not merged or current.start > merged[-1].end:
            merged.append(current)
        else:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, current.end))
    return merged


def free_intervals(merged: List[Interval], start: int, end: int) -> List[Interval]:
    """Complement of ``merged`` inside [start, end]."""
    free: List[Interval] = []
    cursor = start
    for busy in merged:
        if busy.start > cursor:
            free.append(Interval(cursor, busy.start))
        cursor = max(cursor, busy.end)
    if cursor < end:
        free.append(Interval(cursor, end))
    return free


def split_at_noon(free: List[Interval], noon: int) -> Tuple[List[Interval], List[Interval]]:
    morning: List[Interval] = []
    afternoon: List[Interval] = []
    for window in free:
        if window.end <= noon:
            morning.append(window)
        elif window.start >= noon:
            afternoon.append(window)
        else:
            morning.append(Interval(window.start, noon))
            afternoon.append(Interval(noon, window.end))
    return morning, afternoon


def render_bucket(windows: List[Interval]) -> str:
    return ", ".join(format_range(w) for w in windows) or NO_FREE_TIME


class CapacityEngine:
    """
    Pure derived view: call ``compute`` with a full snapshot of a day's rows.
    Rows only need ``time_range``, ``worker`` and ``client`` attributes.
    """

    def __init__(self, settings: Optional[CapacitySettings] = None):
        self.settings = settings or CapacitySettings()

    def busy_windows(self, rows) -> Dict[str, List[Interval]]:
        s = self.settings
        by_worker: Dict[str, List[Interval]] = {}
        for row in rows:
            rng = parse_range(getattr(row, "time_range", None))
            if rng is None:
                if getattr(row, "time_range", None):
                    logger.debug(f"Skipping unparseable time range {row.time_range!r} on row {getattr(row, 'id', None)}")
                continue
            if is_cancelled(getattr(row, "client", None)):
                continue
            begin = min(max(s.start, rng.start - s.buffer), s.end)
            finish = max(min(s.end, rng.end + s.buffer), s.start)
            for name in split_worker_field(getattr(row, "worker", None)):
                windows = by_worker.setdefault(normalize_worker_name(name), [])
                # Windows with no length inside the working day keep the
                # worker listed but block nothing.
                if finish > begin:
                    windows.append(Interval(begin, finish))
        return by_worker

    def free_windows(self, busy: List[Interval]) -> List[Interval]:
        return free_intervals(merge_intervals(busy), self.settings.start, self.settings.end)

    def compute(self, rows) -> List[CapacityResult]:
        results: List[CapacityResult] = []
        for name, busy in self.busy_windows(rows).items():
            morning, afternoon = split_at_noon(self.free_windows(busy), self.settings.noon)
            if not morning and not afternoon:
                continue
            results.append(CapacityResult(
                name=name,
                morning=render_bucket(morning),
                afternoon=render_bucket(afternoon),
                morning_windows=tuple(morning),
                afternoon_windows=tuple(afternoon),
            ))
        results.sort(key=lambda r: name_sort_key(r.name))
        return results


def compute_capacity(rows, settings: Optional[CapacitySettings] = None) -> List[CapacityResult]:
    return CapacityEngine(settings).compute(list(rows))

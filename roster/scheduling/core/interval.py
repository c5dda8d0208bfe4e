"""
Time-range and worker-field grammar.

A time range is ``H:MM-H:MM`` or ``H:MM–H:MM`` (ASCII hyphen or en-dash).
All whitespace is stripped before matching, each clock is a 1-2 digit hour,
a colon and a 2 digit minute. Ranges are half-open minute intervals
measured from midnight; ``start <= end`` is not enforced here.

A worker field holds one or more names separated by ``,`` ``;`` ``/`` or a
newline.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

EN_DASH = "–"

_WHITESPACE = re.compile(r"\s+")
_CLOCK = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")
_RANGE = re.compile(r"^([0-9]{1,2}:[0-9]{2})[-–]([0-9]{1,2}:[0-9]{2})$")
_WORKER_SEPARATORS = re.compile(r"[,;/\n]+")


@dataclass(frozen=True, order=True)
class Interval:
    start: int
    end: int

    def length(self) -> int:
        return max(0, self.end - self.start)


def to_minutes(clock: Optional[str]) -> Optional[int]:
    """'7:05' -> 425; None when the text is not a clock."""
    match = _CLOCK.match(clock or "")
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_range(raw: Optional[str]) -> Optional[Interval]:
    compact = _WHITESPACE.sub("", raw or "")
    match = _RANGE.match(compact)
    if not match:
        return None
    start = to_minutes(match.group(1))
    end = to_minutes(match.group(2))
    if start is None or end is None:
        return None
    return Interval(start, end)


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_range(interval: Interval) -> str:
    return f"{format_clock(interval.start)}{EN_DASH}{format_clock(interval.end)}"


def split_worker_field(raw: Optional[str]) -> List[str]:
    """
    Split a worker field into trimmed names, keeping order and duplicates.
    """
    pieces = _WORKER_SEPARATORS.split(raw or "")
    return [piece.strip() for piece in pieces if piece.strip()]


def normalize_worker_name(name: str) -> str:
    """Collapse inner whitespace so 'Jana  Nová' and 'Jana Nová' are one worker."""
    return _WHITESPACE.sub(" ", name).strip()

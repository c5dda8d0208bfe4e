"""
Read-only views over a day's rows: per-worker counts, the staff grouping
and the Czech day header.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple

from ..core.collation import name_sort_key
from ..core.interval import split_worker_field

# Placeholder "workers" that are not people
HIDDEN_WORKERS = re.compile(r"^\s*(uman|zásobování|brig|nerozděleno)\s*$", re.IGNORECASE)

STAFF_SECTIONS: Tuple[Tuple[str, str], ...] = (
    ("zas", "Zásobování"),
    ("uman", "Generální úklidy"),
)
OTHER_SECTION = "Ostatní"

DAY_NAMES_CS = ["Pondělí", "Úterý", "Středa", "Čtvrtek", "Pátek", "Sobota", "Neděle"]

_DIGITS = re.compile(r"(\d+)")


@dataclass(frozen=True)
class WorkerCount:
    name: str
    count: int


def count_assignments(rows) -> List[WorkerCount]:
    """Rows per worker, case-insensitive, labelled with the longest spelling seen."""
    counts: Dict[str, int] = {}
    labels: Dict[str, str] = {}
    for row in rows:
        for name in split_worker_field(getattr(row, "worker", None)):
            if HIDDEN_WORKERS.match(name):
                continue
            key = name.lower()
            counts[key] = counts.get(key, 0) + 1
            if key not in labels or len(name) > len(labels[key]):
                labels[key] = name
    result = [WorkerCount(name=labels[key], count=n) for key, n in counts.items()]
    result.sort(key=lambda c: name_sort_key(c.name))
    return result


def natural_key(text):
    """Sort key that compares digit runs numerically: '9:00' < '10:00'."""
    parts = _DIGITS.split(text or "")
    return [(0, int(p), "") if p.isdigit() else (1, 0, p.casefold()) for p in parts]


def group_for_staff(rows) -> List[Tuple[str, list]]:
    """
    Split rows into the staff sections. Empty sections are left out and each
    section is ordered by time range.
    """
    titles = dict(STAFF_SECTIONS)
    sections: Dict[str, list] = {title: [] for _, title in STAFF_SECTIONS}
    sections[OTHER_SECTION] = []
    for row in rows:
        tag = (getattr(row, "group", None) or "").lower()
        sections[titles.get(tag, OTHER_SECTION)].append(row)
    grouped = []
    for title, members in sections.items():
        if members:
            members.sort(key=lambda r: natural_key(getattr(r, "time_range", None)))
            grouped.append((title, members))
    return grouped


def format_date_header(date_key: str) -> str:
    """'2024-01-10' -> 'Středa 10.01.2024'"""
    d = date.fromisoformat(date_key)
    return f"{DAY_NAMES_CS[d.weekday()]} {d.day:02d}.{d.month:02d}.{d.year}"

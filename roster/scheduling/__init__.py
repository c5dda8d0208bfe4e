"""
Roster capacity computation

Pure functions and a small engine that turn a day's roster rows into
per-worker free-time windows. Nothing here touches storage or the network.
"""

from .core.interval import Interval, parse_range, format_range, split_worker_field
from .core.capacity import CapacityEngine, CapacityResult, CapacitySettings, compute_capacity
from .core.constants import NO_FREE_TIME
from .utils.roster_views import WorkerCount, count_assignments, group_for_staff, format_date_header

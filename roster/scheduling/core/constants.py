"""
Constants shared by the capacity view.
"""

import re

# Rendered for a bucket with no free window
NO_FREE_TIME = "—"

# A client cell carrying this word marks the assignment as cancelled
CANCELLED = re.compile(r"(?:^|\s)zrušeno\b", re.IGNORECASE)

DEFAULT_WORKDAY_START = 6 * 60
DEFAULT_WORKDAY_NOON = 12 * 60
DEFAULT_WORKDAY_END = 19 * 60
DEFAULT_BUFFER_MINUTES = 90

"""
Environment-driven settings for the roster service and sync client.
"""

import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./roster.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Working-day bounds used by the capacity view (HH:MM)
WORKDAY_START = os.getenv("WORKDAY_START", "06:00")
WORKDAY_NOON = os.getenv("WORKDAY_NOON", "12:00")
WORKDAY_END = os.getenv("WORKDAY_END", "19:00")
CAPACITY_BUFFER_MINUTES = int(os.getenv("CAPACITY_BUFFER_MINUTES", "90"))

# Sync client
DEBOUNCE_SECONDS = float(os.getenv("DEBOUNCE_SECONDS", "0.5"))
ROSTER_API_URL = os.getenv("ROSTER_API_URL", "http://localhost:8000")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))

# Change stream
STREAM_QUEUE_SIZE = int(os.getenv("STREAM_QUEUE_SIZE", "100"))
STREAM_KEEPALIVE_SECONDS = float(os.getenv("STREAM_KEEPALIVE_SECONDS", "30"))

# Bearer tokens are issued by the external identity provider; leave SECRET_KEY
# unset to disable verification locally.
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
MANAGER_ROLE = os.getenv("MANAGER_ROLE", "manager")

# Google Calendar import (service account)
GOOGLE_CLIENT_EMAIL = os.getenv("GOOGLE_CLIENT_EMAIL")
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID")
CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "Europe/Prague")


def google_private_key():
    """Private key with literal "\\n" sequences turned back into newlines."""
    key = os.getenv("GOOGLE_PRIVATE_KEY")
    if key:
        key = key.replace("\\n", "\n")
    return key

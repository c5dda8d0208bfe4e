"""
Roster Board

Daily work roster service: rows per day, a live change stream, the worker
free-capacity view and an optimistic sync client.
"""

__version__ = "1.0.0"

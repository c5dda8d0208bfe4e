"""
Client-side synchronisation of a roster day: optimistic edits, debounced
writes and live reconciliation with other editors.
"""

from .sources import PersistenceError, RowSource, DaySource, ChangeStream, Subscription
from .row_store import RowStore, PendingEdit
from .debounce import DebouncedWriteScheduler
from .reconciler import ChangeReconciler
from .session import DaySession
from .client import RosterApiClient, SSEChangeStream

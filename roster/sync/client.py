"""
HTTP row/day source and server-sent-events change stream for the sync engine.

``requests`` is blocking, so calls run in a worker thread via
``asyncio.to_thread`` and stream events are handed back to the event loop
with ``call_soon_threadsafe``.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import requests
from pydantic import ValidationError

from ..config import ROSTER_API_URL, REQUEST_TIMEOUT_SECONDS
from ..schemas import ChangeNotification, DayOut, DraftRow, RowCreate, RowOut
from .sources import PersistenceError

logger = logging.getLogger(__name__)


class RosterApiClient:
    """Row source and day source backed by the roster HTTP API."""

    def __init__(self, base_url: str = ROSTER_API_URL, token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs) -> Any:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PersistenceError(f"{method} {path} failed: {e}") from e
        if allow_missing and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise PersistenceError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response.json() if response.content else None

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    # ---------------- rows ----------------

    async def list_rows(self, date_key: str) -> List[RowOut]:
        data = await self._call("GET", "/rows/", params={"date_key": date_key})
        return [RowOut.model_validate(item) for item in data]

    async def insert_row(self, row: RowCreate) -> RowOut:
        data = await self._call("POST", "/rows/", json=row.model_dump())
        return RowOut.model_validate(data)

    async def update_row(self, row_id: str, changes: Dict[str, Any]) -> RowOut:
        data = await self._call("PATCH", f"/rows/{row_id}", json=changes)
        return RowOut.model_validate(data)

    async def delete_row(self, row_id: str) -> None:
        # Already deleted elsewhere counts as success
        await self._call("DELETE", f"/rows/{row_id}", allow_missing=True)

    async def replace_day_rows(self, date_key: str, drafts: List[DraftRow]) -> List[RowOut]:
        data = await self._call("PUT", f"/days/{date_key}/rows", json=[d.model_dump() for d in drafts])
        return [RowOut.model_validate(item) for item in data["rows"]]

    async def import_from_calendar(self, date_key: str) -> List[RowOut]:
        data = await self._call("POST", "/calendar/import", params={"date_key": date_key})
        return [RowOut.model_validate(item) for item in data["rows"]]

    # ---------------- days ----------------

    async def get_day(self, date_key: str) -> Optional[DayOut]:
        data = await self._call("GET", f"/days/{date_key}", allow_missing=True)
        return DayOut.model_validate(data) if data else None

    async def ensure_day(self, date_key: str, header: Optional[str] = None,
                         published: Optional[bool] = None) -> DayOut:
        body = {"header": header, "published": published}
        data = await self._call("PUT", f"/days/{date_key}", json={k: v for k, v in body.items() if v is not None})
        return DayOut.model_validate(data)


def parse_sse(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Yield (event, data) pairs from server-sent-event lines."""
    event, data = "message", []
    for line in lines:
        if line is None:
            continue
        if line == "":
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
        elif line.startswith(":"):
            continue
        else:
            name, _, value = line.partition(":")
            value = value[1:] if value.startswith(" ") else value
            if name == "event":
                event = value
            elif name == "data":
                data.append(value)
    if data:
        yield event, "\n".join(data)


class StreamSubscription:
    """Background reader for one day's change stream; reconnects until closed."""

    def __init__(self, url: str, date_key: str, callback: Callable[[ChangeNotification], None],
                 loop: asyncio.AbstractEventLoop, session: requests.Session, reconnect_delay: float = 1.0):
        self.url = url
        self.date_key = date_key
        self.callback = callback
        self.loop = loop
        self.session = session
        self.reconnect_delay = reconnect_delay
        self._stop = threading.Event()
        self._response: Optional[requests.Response] = None
        self._thread = threading.Thread(target=self._run, name=f"roster-stream-{date_key}", daemon=True)

    def start(self) -> "StreamSubscription":
        self._thread.start()
        return self

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def close(self):
        self._stop.set()
        if self._response is not None:
            self._response.close()

    def _deliver(self, notification: ChangeNotification):
        if not self._stop.is_set():
            self.callback(notification)

    def _run(self):
        while not self._stop.is_set():
            try:
                with self.session.get(self.url, params={"date_key": self.date_key}, stream=True,
                                      timeout=(REQUEST_TIMEOUT_SECONDS, None)) as response:
                    response.raise_for_status()
                    self._response = response
                    for _, data in parse_sse(response.iter_lines(decode_unicode=True)):
                        if self._stop.is_set():
                            return
                        try:
                            notification = ChangeNotification.model_validate_json(data)
                        except ValidationError as e:
                            logger.warning(f"Skipping malformed stream event: {e}")
                            continue
                        self.loop.call_soon_threadsafe(self._deliver, notification)
            except requests.RequestException as e:
                if self._stop.is_set():
                    return
                logger.warning(f"Change stream for {self.date_key} dropped: {e}; reconnecting")
            except RuntimeError:
                # Event loop closed underneath us
                return
            self._stop.wait(self.reconnect_delay)


class SSEChangeStream:
    """Change stream over the API's /rows/stream endpoint."""

    def __init__(self, base_url: str = ROSTER_API_URL, token: Optional[str] = None,
                 reconnect_delay: float = 1.0):
        self.url = f"{base_url.rstrip('/')}/rows/stream"
        self.token = token
        self.reconnect_delay = reconnect_delay

    def subscribe(self, date_key: str, callback: Callable[[ChangeNotification], None]) -> StreamSubscription:
        session = requests.Session()
        if self.token:
            session.headers["Authorization"] = f"Bearer {self.token}"
        return StreamSubscription(
            self.url, date_key, callback, asyncio.get_running_loop(), session, self.reconnect_delay
        ).start()

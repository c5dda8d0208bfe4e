from types import SimpleNamespace

import pytest
import pytz
from googleapiclient.errors import HttpError

from roster.services.calendar_import import CalendarImporter, CalendarImportError, event_to_draft

PRAGUE = pytz.timezone("Europe/Prague")


class FakeEvents:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.params = None

    def list(self, **params):
        self.params = params
        return self

    def execute(self):
        if self.error:
            raise self.error
        return {"items": self.items}


class FakeService:
    def __init__(self, events):
        self._events = events

    def events(self):
        return self._events


def test_timed_event_maps_to_local_range():
    draft = event_to_draft({
        "summary": "Novák",
        "location": "Dlouhá 5",
        "description": "klíče u souseda",
        "start": {"dateTime": "2024-01-10T08:00:00Z"},
        "end": {"dateTime": "2024-01-10T10:30:00+01:00"},
        "organizer": {"email": "jana@example.com", "displayName": "Jana"},
    }, PRAGUE)
    assert draft.time_range == "09:00–10:30"
    assert (draft.worker, draft.client, draft.address, draft.note, draft.group) == (
        "Jana", "Novák", "Dlouhá 5", "klíče u souseda", "",
    )


def test_all_day_event_covers_whole_day_and_falls_back_to_attendee():
    draft = event_to_draft({
        "start": {"date": "2024-01-10"},
        "end": {"date": "2024-01-11"},
        "attendees": [{"email": "petr@example.com"}],
    }, PRAGUE)
    assert draft.time_range == "00:00–23:59"
    assert draft.worker == "petr@example.com"
    assert draft.client == ""


def test_fetch_drafts_queries_the_local_day():
    events = FakeEvents(items=[{"summary": "A", "start": {"dateTime": "2024-01-10T07:00:00+01:00"},
                                "end": {"dateTime": "2024-01-10T08:00:00+01:00"}}])
    importer = CalendarImporter(calendar_id="roster@group", service=FakeService(events), timezone="Europe/Prague")
    drafts = importer.fetch_drafts("2024-01-10")
    assert [d.time_range for d in drafts] == ["07:00–08:00"]
    assert events.params["calendarId"] == "roster@group"
    assert events.params["timeMin"] == "2024-01-10T00:00:00+01:00"
    assert events.params["timeMax"] == "2024-01-11T00:00:00+01:00"
    assert events.params["singleEvents"] is True


def test_http_error_becomes_import_error():
    error = HttpError(SimpleNamespace(status=500, reason="Backend Error"), b"boom")
    importer = CalendarImporter(calendar_id="roster@group", service=FakeService(FakeEvents(error=error)))
    with pytest.raises(CalendarImportError):
        importer.fetch_drafts("2024-01-10")


def test_missing_credentials_are_reported(monkeypatch):
    from roster import config
    monkeypatch.setattr(config, "GOOGLE_CLIENT_EMAIL", None)
    importer = CalendarImporter(calendar_id="roster@group")
    with pytest.raises(CalendarImportError):
        importer.fetch_drafts("2024-01-10")

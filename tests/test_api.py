from jose import jwt

from roster import config
from roster.routes.calendar import get_calendar_importer
from roster.main import app
from roster.schemas import DraftRow
from roster.services.calendar_import import CalendarImportError

DATE = "2024-01-10"


def create_row(client, /, **fields):
    fields.setdefault("date_key", DATE)
    response = client.post("/rows/", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_insert_normalizes_blanks_and_creates_day(client):
    row = create_row(client, id="r1", worker="Jana", client="", note="   ", time_range="09:00-10:00")
    assert row["id"] == "r1"
    assert row["client"] is None
    assert row["note"] is None
    assert row["revision"] == 1

    day = client.get(f"/days/{DATE}").json()
    assert day == {"date_key": DATE, "header": "Čas", "published": False}


def test_insert_with_existing_id_conflicts(client):
    create_row(client, id="r1")
    assert client.post("/rows/", json={"id": "r1", "date_key": DATE}).status_code == 409


def test_rows_are_listed_by_sort_order_then_time(client):
    create_row(client, id="late", sort_order=1, time_range="08:00-09:00")
    create_row(client, id="untimed", sort_order=None, time_range=None)
    create_row(client, id="early", sort_order=None, time_range="07:00-08:00")
    create_row(client, id="other-day", date_key="2024-01-11")
    rows = client.get("/rows/", params={"date_key": DATE}).json()
    assert [r["id"] for r in rows] == ["untimed", "early", "late"]


def test_patch_writes_only_sent_fields_and_bumps_revision(client):
    create_row(client, id="r1", worker="Jana", client="Novák")
    response = client.patch("/rows/r1", json={"client": "", "sort_order": 3})
    assert response.status_code == 200
    row = response.json()
    assert (row["worker"], row["client"], row["sort_order"], row["revision"]) == ("Jana", None, 3, 2)


def test_patch_and_delete_unknown_row(client):
    assert client.patch("/rows/nope", json={"note": "x"}).status_code == 404
    assert client.delete("/rows/nope").status_code == 404
    assert client.get("/rows/nope").status_code == 404


def test_delete_row(client):
    create_row(client, id="r1")
    assert client.delete("/rows/r1").json()["success"] is True
    assert client.get("/rows/", params={"date_key": DATE}).json() == []


def test_invalid_date_key_is_rejected(client):
    assert client.get("/rows/", params={"date_key": "10.1.2024"}).status_code == 400
    assert client.put("/days/2024-13-40").status_code == 400


def test_bulk_replace_orders_drafts_and_publishes_day(client):
    create_row(client, id="old", worker="Eva")
    drafts = [{"time_range": "10:00-11:00", "worker": "Petr"}, {"time_range": "08:00-09:00", "worker": "Jana", "note": ""}]
    body = client.put(f"/days/{DATE}/rows", json=drafts).json()
    assert body["imported"] == 2
    rows = client.get("/rows/", params={"date_key": DATE}).json()
    assert [(r["worker"], r["sort_order"], r["note"]) for r in rows] == [("Petr", 0, None), ("Jana", 1, None)]
    assert client.get(f"/days/{DATE}").json()["published"] is True


def test_day_header_and_publish_toggle(client):
    client.put(f"/days/{DATE}", json={"header": "Úklid"})
    day = client.put(f"/days/{DATE}", json={"published": True}).json()
    assert day == {"date_key": DATE, "header": "Úklid", "published": True}
    assert [d["date_key"] for d in client.get("/days/", params={"published_only": True}).json()] == [DATE]


def test_delete_day_removes_its_rows(client):
    create_row(client, id="r1")
    create_row(client, id="r2")
    assert client.delete(f"/days/{DATE}").json()["rows_deleted"] == 2
    assert client.get("/rows/r1").status_code == 404
    assert client.delete(f"/days/{DATE}").status_code == 404


def test_capacity_endpoint(client):
    create_row(client, worker="Jana", time_range="09:00–10:00")
    create_row(client, worker="Jana", time_range="11:00–12:00")
    create_row(client, worker="Eva", time_range="09:00-10:00", client="Zrušeno")
    result = client.get("/capacity/", params={"date_key": DATE}).json()
    assert result == [{"name": "Jana", "morning": "06:00–07:30", "afternoon": "13:30–19:00"}]


def test_worker_counts_endpoint(client):
    create_row(client, worker="Jana, Petr")
    create_row(client, worker="jana; uman")
    counts = client.get("/capacity/counts", params={"date_key": DATE}).json()
    assert counts == [{"name": "Jana", "count": 2}, {"name": "Petr", "count": 1}]


def test_staff_view_hides_unpublished_days(client):
    create_row(client, group="zas", time_range="10:00-11:00")
    create_row(client, group="", time_range="9:00-10:00")
    assert client.get(f"/staff/{DATE}").status_code == 404

    client.put(f"/days/{DATE}", json={"published": True})
    body = client.get(f"/staff/{DATE}").json()
    assert body["title"] == "Středa 10.01.2024"
    assert body["total"] == 2
    assert [g["title"] for g in body["groups"]] == ["Zásobování", "Ostatní"]
    assert [d["date_key"] for d in client.get("/staff/days").json()] == [DATE]


def test_history_lists_newest_first(client):
    create_row(client, id="r1")
    client.patch("/rows/r1", json={"note": "x"})
    client.delete("/rows/r1")
    history = client.get("/rows/history", params={"date_key": DATE}).json()
    assert [(h["kind"], h["revision"]) for h in history] == [("delete", 2), ("update", 2), ("insert", 1)]
    assert history[0]["payload"] == {"id": "r1", "date_key": DATE, "revision": 2}


class FakeImporter:
    def __init__(self, drafts=None, error=None):
        self.drafts = drafts or []
        self.error = error
        self.requested = []

    def fetch_drafts(self, date_key):
        self.requested.append(date_key)
        if self.error:
            raise self.error
        return self.drafts


def test_calendar_import_replaces_day(client):
    importer = FakeImporter([DraftRow(time_range="08:00–09:00", worker="Jana", client="Novák", group="")])
    app.dependency_overrides[get_calendar_importer] = lambda: importer
    create_row(client, id="old")
    body = client.post("/calendar/import", params={"date_key": DATE}).json()
    assert importer.requested == [DATE]
    assert body["imported"] == 1
    assert body["rows"][0]["group"] is None
    assert [r["worker"] for r in client.get("/rows/", params={"date_key": DATE}).json()] == ["Jana"]


def test_calendar_failure_is_bad_gateway(client):
    app.dependency_overrides[get_calendar_importer] = lambda: FakeImporter(error=CalendarImportError("quota"))
    response = client.post("/calendar/import", params={"date_key": DATE})
    assert response.status_code == 502
    assert response.json()["detail"] == "quota"


def test_writes_require_manager_token_when_secret_is_set(client, monkeypatch):
    monkeypatch.setattr(config, "SECRET_KEY", "test-secret")
    manager = jwt.encode({"sub": "m1", "role": "manager"}, "test-secret", algorithm="HS256")
    staff = jwt.encode({"sub": "s1", "role": "staff"}, "test-secret", algorithm="HS256")

    body = {"date_key": DATE, "worker": "Jana"}
    assert client.post("/rows/", json=body).status_code == 401
    assert client.post("/rows/", json=body, headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.post("/rows/", json=body, headers={"Authorization": f"Bearer {staff}"}).status_code == 403
    assert client.post("/rows/", json=body, headers={"Authorization": f"Bearer {manager}"}).status_code == 201
    # Reads stay open
    assert client.get("/rows/", params={"date_key": DATE}).status_code == 200


def test_insert_rejects_impossible_calendar_date(client):
    response = client.post("/rows/", json={"date_key": "2024-13-45", "worker": "Jana"})
    assert response.status_code == 400
    assert client.get("/days/").json() == []

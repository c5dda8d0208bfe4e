from roster.sync import RowStore, ChangeReconciler

from fakes import DATE, OTHER_DATE, make_row, notification


def reconciler_with(rows=(), on_discarded=None):
    store = RowStore(DATE)
    store.reset(DATE, list(rows))
    return store, ChangeReconciler(store, on_discarded=on_discarded)


def test_update_for_unknown_row_equals_insert():
    payload = dict(id="r1", worker="Jana", time_range="09:00-10:00", revision=1)
    inserted, by_insert = reconciler_with()
    updated, by_update = reconciler_with()
    by_insert.apply(notification("insert", **payload))
    by_update.apply(notification("update", **payload))
    assert inserted.all() == updated.all()
    assert len(updated) == 1


def test_insert_for_known_row_merges():
    store, reconciler = reconciler_with([make_row(id="r1", worker="Jana", client="Novák")])
    reconciler.apply(notification("insert", id="r1", client="Dvořák", revision=2))
    assert len(store) == 1
    row = store.get("r1")
    assert (row.worker, row.client, row.revision) == ("Jana", "Dvořák", 2)


def test_update_overwrites_unsaved_local_value():
    store, reconciler = reconciler_with([make_row(id="r1", note="old")])
    store.set_pending("r1", "note", "local", deadline=1.0)
    reconciler.apply(notification("update", id="r1", note="remote", revision=2))
    assert store.get("r1").note == "remote"


def test_notifications_for_another_day_are_ignored():
    store, reconciler = reconciler_with()
    assert reconciler.apply(notification("insert", id="r1", date_key=OTHER_DATE)) is False
    assert len(store) == 0


def test_delete_of_unknown_row_is_noop():
    store, reconciler = reconciler_with([make_row(id="r1")])
    assert reconciler.apply(notification("delete", id="r2")) is False
    assert len(store) == 1


def test_delete_reports_discarded_edits(caplog):
    discarded = []
    store, reconciler = reconciler_with(
        [make_row(id="r1")], on_discarded=lambda row_id, edits: discarded.append((row_id, edits))
    )
    store.set_pending("r1", "note", "unsaved", deadline=1.0)
    with caplog.at_level("WARNING", logger="roster.sync.reconciler"):
        assert reconciler.apply(notification("delete", id="r1")) is True
    assert "r1" not in store
    assert discarded[0][0] == "r1"
    assert [e.local_value for e in discarded[0][1]] == ["unsaved"]
    assert "unsaved edits" in caplog.text


def test_malformed_notification_is_absorbed():
    store, reconciler = reconciler_with()
    assert reconciler.apply(notification("update", id="r1", sort_order="first")) is False
    assert reconciler.apply(notification("update", worker="Jana")) is False
    assert len(store) == 0

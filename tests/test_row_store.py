from roster.sync import RowStore

from fakes import DATE, OTHER_DATE, make_row


def test_upsert_never_duplicates_an_id():
    store = RowStore(DATE)
    row = make_row(id="r1", worker="Jana")
    store.upsert_local(row)
    store.upsert_local(row.model_copy(update={"worker": "Petr", "revision": 2}))
    assert len(store) == 1
    assert store.get("r1").worker == "Petr"


def test_rows_of_another_day_are_ignored():
    store = RowStore(DATE)
    assert store.upsert_local(make_row(id="r1", date_key=OTHER_DATE)) is False
    assert "r1" not in store


def test_remove_is_a_noop_for_unknown_rows():
    store = RowStore(DATE)
    version = store.version
    assert store.remove_local("missing") == []
    assert store.version == version


def test_all_orders_by_sort_order_then_time_with_missing_first():
    store = RowStore(DATE)
    store.reset(DATE, [
        make_row(id="a", sort_order=2, time_range="08:00-09:00"),
        make_row(id="b", sort_order=None, time_range="10:00-11:00"),
        make_row(id="c", sort_order=1, time_range="12:00-13:00"),
        make_row(id="d", sort_order=1, time_range=None),
        make_row(id="e", sort_order=None, time_range=None),
    ])
    assert [r.id for r in store.all()] == ["e", "b", "d", "c", "a"]


def test_pending_edit_overlays_confirmed_row():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1", client="Novák"))
    edit = store.set_pending("r1", "client", "Dvořák", deadline=1.0)
    assert store.get("r1").client == "Dvořák"
    assert store.confirmed("r1").client == "Novák"
    assert edit.newer_than_confirmed


def test_confirmed_row_hides_older_pending_edit():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1", client="Novák"))
    store.set_pending("r1", "client", "Dvořák", deadline=1.0)
    store.upsert_local(make_row(id="r1", client="Remote", revision=2))
    assert store.get("r1").client == "Remote"
    assert [e.local_value for e in store.superseded_edits("r1")] == ["Dvořák"]


def test_stale_write_response_is_skipped():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1", note="remote", revision=3))
    assert store.apply_confirmed(make_row(id="r1", note="mine", revision=2)) is False
    assert store.get("r1").note == "remote"


def test_apply_confirmed_drops_only_its_own_edit():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1"))
    first = store.set_pending("r1", "note", "a", deadline=1.0)
    second = store.set_pending("r1", "note", "b", deadline=2.0)
    store.apply_confirmed(make_row(id="r1", note="a", revision=2), first)
    assert store.pending_edit("r1", "note") is second


def test_failed_edit_keeps_local_value():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1", note="old"))
    edit = store.set_pending("r1", "note", "typed", deadline=None)
    store.mark_failed(edit)
    assert store.get("r1").note == "typed"
    assert edit.failed and not edit.in_flight


def test_reset_switches_day_and_clears_edits():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1"))
    store.set_pending("r1", "note", "x", deadline=1.0)
    store.reset(OTHER_DATE, [make_row(id="r2", date_key=OTHER_DATE), make_row(id="r3")])
    assert store.date_key == OTHER_DATE
    assert [r.id for r in store.all()] == ["r2"]
    assert store.pending_edits() == []


def test_listeners_see_every_change():
    store = RowStore(DATE)
    seen = []
    store.add_listener(lambda s: seen.append(len(s)))
    store.upsert_local(make_row(id="r1"))
    store.remove_local("r1")
    assert seen == [1, 0]


def test_response_for_row_no_longer_in_store_is_dropped():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1"))
    edit = store.set_pending("r1", "note", "typed", deadline=None)
    store.remove_local("r1")
    assert store.apply_confirmed(make_row(id="r1", note="typed", revision=2), edit) is False
    assert "r1" not in store


def test_failed_edit_is_cleared_by_newer_confirmed_row():
    store = RowStore(DATE)
    store.upsert_local(make_row(id="r1", note="old"))
    failed = store.set_pending("r1", "note", "typed", deadline=None)
    store.mark_failed(failed)
    waiting = store.set_pending("r1", "client", "Dvořák", deadline=1.0)
    store.upsert_local(make_row(id="r1", note="remote", revision=2))
    assert store.pending_edits("r1") == [waiting]
    assert store.get("r1").note == "remote"

"""Tests for RecordStore.

Covers content addressing, conflicts, lookup, delete-by-value and
concurrent inserts.
"""

import threading
from datetime import datetime

import pytest

from stringbank.analysis import content_address
from stringbank.exceptions import RecordConflictError, RecordNotFoundError
from stringbank.store import RecordStore


@pytest.fixture
def store():
    """Fresh, empty store for each test."""
    return RecordStore()


def test_insert_returns_record(store):
    record = store.insert("racecar")

    assert record.id == content_address("racecar")
    assert record.value == "racecar"
    assert record.properties.is_palindrome is True
    assert isinstance(record.created_at, datetime)
    assert record.created_at.tzinfo is not None
    assert len(store) == 1


def test_insert_twice_conflicts_with_same_id(store):
    first = store.insert("hello world")

    with pytest.raises(RecordConflictError) as exc_info:
        store.insert("hello world")

    assert exc_info.value.record_id == first.id
    assert len(store) == 1
    # first writer wins: the stored record is untouched
    assert store.get(first.id).created_at == first.created_at


def test_value_is_stored_verbatim(store):
    record = store.insert("  Mixed CASE, punctuation!  ")
    assert store.get(record.id).value == "  Mixed CASE, punctuation!  "


def test_values_differing_only_in_case_are_distinct(store):
    store.insert("Racecar")
    store.insert("racecar")
    assert len(store) == 2


def test_get_missing_raises(store):
    with pytest.raises(RecordNotFoundError) as exc_info:
        store.get("0" * 64)
    assert exc_info.value.record_id == "0" * 64


def test_delete_by_value(store):
    record = store.insert("delete me")

    store.delete_by_value("delete me")

    assert record.id not in store
    with pytest.raises(RecordNotFoundError):
        store.get(record.id)


def test_delete_missing_value_raises_every_time(store):
    with pytest.raises(RecordNotFoundError):
        store.delete_by_value("never stored")
    with pytest.raises(RecordNotFoundError):
        store.delete_by_value("never stored")


def test_delete_twice_fails_second_time(store):
    store.insert("once")
    store.delete_by_value("once")

    with pytest.raises(RecordNotFoundError):
        store.delete_by_value("once")


def test_reinsert_after_delete(store):
    store.insert("again")
    store.delete_by_value("again")

    record = store.insert("again")
    assert record.value == "again"


def test_list_all_is_a_snapshot(store):
    store.insert("a")
    store.insert("b")

    snapshot = store.list_all()
    store.insert("c")

    assert [r.value for r in snapshot] == ["a", "b"]
    assert [r.value for r in store.list_all()] == ["a", "b", "c"]


def test_records_are_frozen(store):
    record = store.insert("immutable")
    with pytest.raises(Exception):
        record.value = "changed"


def test_concurrent_inserts_of_same_value_store_one_record(store):
    """Only one of many racing inserts of the same content may succeed."""
    successes = []
    conflicts = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            successes.append(store.insert("contended"))
        except RecordConflictError as e:
            conflicts.append(e.record_id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(successes) == 1
    assert len(conflicts) == 7
    assert set(conflicts) == {successes[0].id}
    assert len(store) == 1

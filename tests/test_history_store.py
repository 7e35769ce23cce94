from datetime import datetime, timedelta, timezone

import pytest

from mortgage_calc.errors import InvalidInput
from mortgage_calc_web.history_store import (
    SNAPSHOT_SCHEMA_VERSION,
    CalculationHistoryStore,
    CalculationSnapshot,
)


@pytest.fixture
def store(tmp_path):
    return CalculationHistoryStore(f"sqlite:///{tmp_path / 'history.sqlite3'}", max_per_user=3)


def _snapshot(name="", kind="mortgage"):
    return CalculationSnapshot(
        kind=kind,
        name=name,
        inputs={"loan_amount": 300000.0, "annual_rate_percent": 6.5, "term_years": 30},
        result={"monthly_payment": 1896.2},
    )


def test_save_and_load(store):
    snapshot = _snapshot("first")
    store.save("alice", snapshot)

    loaded = store.load("alice", snapshot.id)
    assert loaded is not None
    assert loaded.id == snapshot.id
    assert loaded.kind == "mortgage"
    assert loaded.name == "first"
    assert loaded.inputs == snapshot.inputs
    assert loaded.result == snapshot.result
    assert loaded.schema_version == SNAPSHOT_SCHEMA_VERSION
    assert loaded.created_at == snapshot.created_at
    assert loaded.to_dict() == snapshot.to_dict()


def test_list_is_newest_first(store):
    for name in ("a", "b", "c"):
        store.save("alice", _snapshot(name))
    assert [s.name for s in store.list("alice")] == ["c", "b", "a"]


def test_history_is_per_user(store):
    snapshot = _snapshot()
    store.save("alice", snapshot)

    assert store.list("bob") == []
    assert store.load("bob", snapshot.id) is None
    assert store.delete("bob", snapshot.id) is False
    assert store.load("alice", snapshot.id) is not None


def test_delete(store):
    snapshot = _snapshot()
    store.save("alice", snapshot)

    assert store.delete("alice", snapshot.id) is True
    assert store.load("alice", snapshot.id) is None
    assert store.delete("alice", snapshot.id) is False


def test_clear_only_touches_one_user(store):
    store.save("alice", _snapshot())
    store.save("bob", _snapshot())

    store.clear("alice")

    assert store.list("alice") == []
    assert len(store.list("bob")) == 1


def test_trims_to_max_per_user(store):
    for i in range(5):
        store.save("alice", _snapshot(str(i)))
    assert [s.name for s in store.list("alice")] == ["4", "3", "2"]


def test_empty_token_is_ignored(store):
    store.save("", _snapshot())
    assert store.list("") == []


def test_snapshot_dict_round_trip():
    snapshot = _snapshot("saved", kind="refinance")
    assert CalculationSnapshot.from_dict(snapshot.to_dict()) == snapshot


@pytest.mark.parametrize(
    "changes",
    [
        {"kind": "lottery"},
        {"schema_version": 2},
        {"schema_version": "latest"},
        {"inputs": [1, 2]},
    ],
)
def test_invalid_snapshots_rejected(changes):
    data = _snapshot().to_dict()
    data.update(changes)
    with pytest.raises(InvalidInput):
        CalculationSnapshot.from_dict(data)


def test_missing_result_rejected():
    data = _snapshot().to_dict()
    del data["result"]
    with pytest.raises(InvalidInput):
        CalculationSnapshot.from_dict(data)


def test_listed_snapshots_keep_utc_timestamps(store):
    snapshot = _snapshot()
    store.save("alice", snapshot)

    [listed] = store.list("alice")
    assert listed.created_at.utcoffset() == timedelta(0)
    assert listed.to_dict()["created_at"] == snapshot.to_dict()["created_at"]


def test_offset_timestamps_are_stored_as_utc(store):
    local = datetime(2024, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=-5)))
    snapshot = CalculationSnapshot.from_dict(dict(_snapshot().to_dict(), created_at=local.isoformat()))
    store.save("alice", snapshot)

    loaded = store.load("alice", snapshot.id)
    assert loaded.created_at == local
    assert loaded.to_dict()["created_at"] == "2024-03-01T14:30:00+00:00"

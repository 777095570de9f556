import json
import threading

import pytest

from database import JsonFileStore, MemoryStore
from errors import PersistenceError
from models import Message, Snapshot, dump
from utils import utcnow


def test_missing_file_loads_empty(tmp_path):
    snapshot = JsonFileStore(tmp_path / "db.json").load()
    assert snapshot.users == []
    assert snapshot.messages == []


def test_corrupt_file_loads_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileStore(path).load() == Snapshot()


def test_wrong_shape_loads_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert JsonFileStore(path).load() == Snapshot()


def test_missing_sequences_default_to_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"users": [], "status": "DELETED"}), encoding="utf-8")
    assert JsonFileStore(path).load().messages == []


def test_save_then_load(tmp_path, make_user):
    path = tmp_path / "nested" / "db.json"
    store = JsonFileStore(path)
    user = make_user(interested_in="Female", looking_for="Dating")
    message = Message(sender=1, recipient=2, text="hi", timestamp=utcnow())
    store.save(Snapshot(users=[user], messages=[message]))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["users"][0]["interestedIn"] == "Female"
    assert raw["users"][0]["lookingFor"] == "Dating"
    assert raw["messages"][0]["from"] == 1

    loaded = store.load()
    assert loaded.users == [user]
    assert loaded.messages == [message]
    assert sorted(p.name for p in (tmp_path / "nested").iterdir()) == ["db.json"]


def test_save_overwrites_previous_content(tmp_path, make_user):
    store = JsonFileStore(tmp_path / "db.json", atomic=False)
    store.save(Snapshot(users=[make_user(), make_user()]))
    store.save(Snapshot(users=[make_user()]))
    assert len(store.load().users) == 1


def test_write_failure_is_swallowed_when_fail_open(tmp_path):
    # the target path is a directory, so the write can't succeed
    target = tmp_path / "db.json"
    target.mkdir()
    JsonFileStore(target, atomic=False).save(Snapshot())


def test_write_failure_raises_when_fail_closed(tmp_path):
    target = tmp_path / "db.json"
    target.mkdir()
    with pytest.raises(PersistenceError):
        JsonFileStore(target, fail_open=False, atomic=False).save(Snapshot())


def test_memory_store_hands_out_copies(make_user):
    store = MemoryStore()
    snapshot = store.load()
    snapshot.users.append(make_user())
    assert store.load().users == []
    store.save(snapshot)
    assert len(store.load().users) == 1
    assert store.saves == 1


def test_corrupt_file_is_backed_up(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    store.load()
    store.save(Snapshot())
    assert store.corrupt_path.read_text(encoding="utf-8") == "{not json"


def test_invalid_record_only_drops_that_record(tmp_path, make_user):
    path = tmp_path / "db.json"
    good = [dump(make_user()), dump(make_user())]
    path.write_text(json.dumps({
        "users": good + [{"name": "no id or email"}],
        "messages": [{"from": 1, "to": 2, "text": "hi", "timestamp": "2026-02-01T00:00:00Z"}],
    }), encoding="utf-8")

    snapshot = JsonFileStore(path).load()
    assert [u.id for u in snapshot.users] == [good[0]["id"], good[1]["id"]]
    assert len(snapshot.messages) == 1
    assert json.loads((tmp_path / "db.json.corrupt").read_text(encoding="utf-8"))["users"][2] == {
        "name": "no id or email"
    }


def test_numeric_text_and_tags_from_older_data_load(tmp_path, make_user):
    path = tmp_path / "db.json"
    user = dump(make_user())
    user["interests"] = ["music", 7]
    path.write_text(json.dumps({
        "users": [user, dump(make_user())],
        "messages": [{"from": 1, "to": 2, "text": 5, "timestamp": "2026-02-01T00:00:00Z"}],
    }), encoding="utf-8")

    store = JsonFileStore(path)
    snapshot = store.load()
    assert len(snapshot.users) == 2
    assert snapshot.users[0].interests == ["music", "7"]
    assert snapshot.messages[0].text == "5"
    assert not store.corrupt_path.exists()

    store.save(snapshot)
    assert len(store.load().users) == 2


def test_concurrent_saves_leave_a_valid_file(tmp_path, make_user):
    path = tmp_path / "db.json"
    store = JsonFileStore(path, fail_open=False)
    snapshots = [Snapshot(users=[make_user() for _ in range(n + 1)]) for n in range(8)]
    errors = []

    def writer(snapshot):
        try:
            for _ in range(20):
                store.save(snapshot)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(s,)) for s in snapshots]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert 1 <= len(store.load().users) <= 8
    assert [p.name for p in tmp_path.iterdir()] == ["db.json"]

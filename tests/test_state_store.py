import json

import pytest

from ledger_node.ledger_runtime import state_store as ss
from ledger_node.ledger_runtime.errors import StoreError
from ledger_node.ledger_runtime.state_store import (
    AtomicStateStore,
    BatchStateStore,
    MemoryStateStore,
    StateStore,
)


def test_memory_store_basics():
    s = MemoryStateStore({"a": b"1"})
    assert s.get("a") == b"1"
    assert s.get("missing") is None

    s.put("b", b"2")
    s.put_many({"c": b"3", "a": b"9"})
    assert s.snapshot() == {"a": b"9", "b": b"2", "c": b"3"}
    assert s.keys() == ["a", "b", "c"]


def test_protocol_checks(tmp_path):
    assert isinstance(MemoryStateStore(), BatchStateStore)
    assert isinstance(AtomicStateStore(tmp_path / "s.json"), BatchStateStore)

    class GetPutOnly:
        def get(self, key):
            return None

        def put(self, key, value):
            pass

    assert isinstance(GetPutOnly(), StateStore)
    assert not isinstance(GetPutOnly(), BatchStateStore)


def test_atomic_store_persists_binary_values(tmp_path):
    path = tmp_path / "data" / "ledger_state.json"
    s = AtomicStateStore(path)
    s.put("acct", b'{"name":"A","balance":1}')
    s.put("blob", b"\x00\xff\x10")

    reopened = AtomicStateStore(path)
    assert reopened.get("acct") == b'{"name":"A","balance":1}'
    assert reopened.get("blob") == b"\x00\xff\x10"
    assert reopened.keys() == ["acct", "blob"]

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["version"] == 1
    assert set(doc["state"]) == {"acct", "blob"}


def test_atomic_store_rotates_backups_and_clears_journal(tmp_path):
    path = tmp_path / "state.json"
    s = AtomicStateStore(path, keep_backups=2)
    s.put("a", b"1")
    s.put("b", b"2")
    s.put("c", b"3")

    assert path.with_suffix(".json.bak1").exists()
    assert path.with_suffix(".json.bak2").exists()
    assert not path.with_suffix(".json.bak3").exists()
    assert not s.journal_path.exists()


def test_atomic_store_falls_back_to_backup(tmp_path):
    path = tmp_path / "state.json"
    s = AtomicStateStore(path)
    s.put("a", b"1")
    s.put("b", b"2")

    path.write_text("{corrupt", encoding="utf-8")

    recovered = AtomicStateStore(path)
    assert recovered.get("a") == b"1"
    assert recovered.get("b") is None


def test_atomic_store_starts_empty_when_nothing_readable(tmp_path):
    path = tmp_path / "state.json"
    path.write_text('{"state": {"a": "***not base64***"}}', encoding="utf-8")
    assert AtomicStateStore(path).keys() == []


def test_atomic_store_failed_save_keeps_previous_state(tmp_path, monkeypatch):
    s = AtomicStateStore(tmp_path / "state.json")
    s.put("a", b"1")

    def boom(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(ss, "atomic_write_bytes", boom)
    with pytest.raises(StoreError):
        s.put_many({"a": b"2", "b": b"3"})

    assert s.get("a") == b"1"
    assert s.get("b") is None


def test_atomic_store_journal_cleanup_failure_keeps_committed_write(tmp_path, monkeypatch, caplog):
    path = tmp_path / "state.json"
    s = AtomicStateStore(path)
    real_unlink = ss.Path.unlink

    def stuck_journal(self, *args, **kwargs):
        if self.name.endswith(".journal"):
            raise PermissionError("journal is locked")
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(ss.Path, "unlink", stuck_journal)
    s.put("a", b"1")

    assert s.get("a") == b"1"
    assert s.journal_path.exists()
    assert any("Could not clear journal" in r.getMessage() for r in caplog.records)

    monkeypatch.undo()
    assert AtomicStateStore(path).get("a") == b"1"


def test_atomic_store_reload(tmp_path):
    path = tmp_path / "state.json"
    s = AtomicStateStore(path)
    other = AtomicStateStore(path)
    other.put("x", b"y")

    assert s.get("x") is None
    s.reload()
    assert s.get("x") == b"y"

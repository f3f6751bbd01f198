from __future__ import annotations

"""
Key-value state stores for the ledger host.

The ledger core only needs two calls:

    get(key) -> Optional[bytes]   (None when the key was never written)
    put(key, value: bytes)

Stores may additionally offer put_many(), committing several keys as one
unit. The core uses it for transfers when present.

Shipped backends:
- MemoryStateStore: dict-backed, for tests and ephemeral nodes
- AtomicStateStore: JSON snapshot on disk with atomic replace, rolling
  backups (.bak1, .bak2, ...) and a .journal marker while a save is in
  flight. Load falls back primary -> bak1 -> bak2 -> ...
"""

import base64
import binascii
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from .errors import StoreError

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]

SNAPSHOT_VERSION = 1


@runtime_checkable
class StateStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def put(self, key: str, value: bytes) -> None: ...


@runtime_checkable
class BatchStateStore(StateStore, Protocol):
    def put_many(self, items: Mapping[str, bytes]) -> None: ...


# ------------------------------------------------------------------------------
# In-memory
# ------------------------------------------------------------------------------


class MemoryStateStore:
    def __init__(self, initial: Optional[Mapping[str, bytes]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, bytes] = {k: bytes(v) for k, v in (initial or {}).items()}

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def put_many(self, items: Mapping[str, bytes]) -> None:
        with self._lock:
            self._data.update({k: bytes(v) for k, v in items.items()})

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def snapshot(self) -> Dict[str, bytes]:
        with self._lock:
            return dict(self._data)


# ------------------------------------------------------------------------------
# Atomic JSON snapshot
# ------------------------------------------------------------------------------


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def _fsync_dir(dir_path: Path) -> None:
    # Not every platform lets you open a directory.
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except (AttributeError, OSError):
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _json_dumps(obj: JsonDict) -> bytes:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    _ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def _read_snapshot(path: Path) -> Optional[Dict[str, bytes]]:
    if not path.exists():
        return None
    try:
        doc = json.loads(path.read_bytes().decode("utf-8"))
        state = doc["state"]
        return {str(k): base64.b64decode(v, validate=True) for k, v in state.items()}
    except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError, binascii.Error):
        log.warning("Unreadable state snapshot %s", path)
        return None


def _rotate_backups(path: Path, keep: int) -> None:
    if keep <= 0:
        return

    # move .bak(N-1) -> .bakN
    for i in range(keep, 1, -1):
        src = path.with_suffix(path.suffix + f".bak{i-1}")
        dst = path.with_suffix(path.suffix + f".bak{i}")
        if src.exists():
            os.replace(str(src), str(dst))

    # primary -> .bak1
    if path.exists():
        os.replace(str(path), str(path.with_suffix(path.suffix + ".bak1")))


class AtomicStateStore:
    """
    File-backed state store.

    The whole key space lives in one JSON snapshot; every put rewrites it.
    Values are arbitrary bytes, kept base64-encoded in the file. put_many()
    lands in a single snapshot write, so a multi-key update is all-or-nothing
    on disk.
    """

    def __init__(self, path: PathLike, *, keep_backups: int = 2) -> None:
        self.path = Path(path)
        self.keep_backups = int(keep_backups)
        self._lock = threading.RLock()
        self._state: Dict[str, bytes] = self._load()
        if self.journal_path.exists():
            log.warning("Found save journal %s; last save may not have completed", self.journal_path)

    @property
    def journal_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".journal")

    def _candidates(self) -> list[Path]:
        paths = [self.path]
        for i in range(1, max(1, self.keep_backups) + 1):
            paths.append(self.path.with_suffix(self.path.suffix + f".bak{i}"))
        return paths

    def _load(self) -> Dict[str, bytes]:
        for p in self._candidates():
            state = _read_snapshot(p)
            if state is not None:
                if p != self.path:
                    log.warning("Recovered state from backup %s", p)
                return state
        return {}

    def _save(self, state: Dict[str, bytes]) -> None:
        doc = {
            "version": SNAPSHOT_VERSION,
            "state": {k: base64.b64encode(v).decode("ascii") for k, v in state.items()},
        }
        data = _json_dumps(doc)
        try:
            atomic_write_bytes(self.journal_path, b"1")
            _rotate_backups(self.path, keep=self.keep_backups)
            atomic_write_bytes(self.path, data)
        except OSError as e:
            raise StoreError(f"Failed to persist state to {self.path}: {e}") from e

        # Clear journal after successful commit.
        try:
            self.journal_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Could not clear journal %s: %s", self.journal_path, e)

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._state.get(key)

    def put(self, key: str, value: bytes) -> None:
        self.put_many({key: value})

    def put_many(self, items: Mapping[str, bytes]) -> None:
        with self._lock:
            staged = dict(self._state)
            staged.update({k: bytes(v) for k, v in items.items()})
            self._save(staged)
            self._state = staged

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._state)

    def reload(self) -> None:
        with self._lock:
            self._state = self._load()


__all__ = [
    "StateStore",
    "BatchStateStore",
    "MemoryStateStore",
    "AtomicStateStore",
    "atomic_write_bytes",
]

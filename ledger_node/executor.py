from __future__ import annotations

"""
Ledger executor (host layer).

Owns the state store and runs every chaincode call under one lock, which
provides the single-writer execution the ledger core assumes. Ledger
failures come back as structured Response objects; nothing raised by the
chaincode escapes this layer as an exception except programming errors.
"""

import base64
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from . import config as node_config
from .ledger_runtime.dispatch import LedgerChaincode
from .ledger_runtime.errors import LedgerError
from .ledger_runtime.state_store import AtomicStateStore, MemoryStateStore, StateStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    ok: bool
    payload: bytes = b""
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, payload: bytes = b"") -> "Response":
        return cls(ok=True, payload=bytes(payload or b""))

    @classmethod
    def failure(cls, err: LedgerError) -> "Response":
        return cls(ok=False, error=err.to_payload())

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return dict(self.error or {"ok": False})
        return {
            "ok": True,
            "payload": self.payload.decode("utf-8", errors="replace"),
            "payload_b64": base64.b64encode(self.payload).decode("ascii"),
        }


def build_store(cfg: Dict[str, Any]) -> StateStore:
    driver = node_config.get_store_driver(cfg)
    if driver == "memory":
        return MemoryStateStore()
    if driver == "json":
        return AtomicStateStore(
            Path(node_config.get_store_path(cfg)),
            keep_backups=node_config.get_keep_backups(cfg),
        )
    raise node_config.ConfigError(f"unknown store driver: {driver}")


class LedgerExecutor:
    def __init__(self, store: StateStore, chaincode: Optional[LedgerChaincode] = None) -> None:
        self.store = store
        self.chaincode = chaincode or LedgerChaincode.for_store(store)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "LedgerExecutor":
        return cls(build_store(cfg))

    def _run(self, label: str, fn, *args: Any) -> Response:
        with self._lock:
            try:
                payload = fn(*args)
            except LedgerError as e:
                log.warning("%s failed: %s [%s]", label, e.message, e.code)
                return Response.failure(e)
        return Response.success(payload)

    def init(self, args: Sequence[str] = ()) -> Response:
        log.info("init is running")
        return self._run("init", self.chaincode.init, list(args))

    def invoke(self, function: str, args: Sequence[str] = ()) -> Response:
        log.info("invoke is running %s", function)
        return self._run(f"invoke {function}", self.chaincode.invoke, function, list(args))

    def query(self, function: str, args: Sequence[str] = ()) -> Response:
        log.info("query is running %s", function)
        return self._run(f"query {function}", self.chaincode.query, function, list(args))

    def account(self, name: str) -> Dict[str, Any]:
        """Decoded account view; raises LedgerError for the HTTP layer to map."""
        with self._lock:
            acct = self.chaincode.service.account(name)
        return {"ok": True, "name": acct.name, "balance": acct.balance}

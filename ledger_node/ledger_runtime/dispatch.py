from __future__ import annotations

"""
Operation routing for the ledger chaincode.

The host calls one of three entry points:

    init(args)               seed the ledger
    invoke(function, args)   state-changing operations (init, write, transfer)
    query(function, args)    read-only operations (read)

Function names are resolved to the closed Operation enum first; a name
outside the enum, or one not allowed on that entry point, raises
UnknownOperation.
"""

from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Sequence

from .errors import UnknownOperation
from .ledger import LedgerService
from .state_store import StateStore


class Operation(str, Enum):
    INIT = "init"
    WRITE = "write"
    TRANSFER = "transfer"
    READ = "read"

    @classmethod
    def parse(cls, name: str) -> Optional["Operation"]:
        try:
            return cls(name)
        except ValueError:
            return None


INVOKE_OPERATIONS: FrozenSet[Operation] = frozenset({Operation.INIT, Operation.WRITE, Operation.TRANSFER})
QUERY_OPERATIONS: FrozenSet[Operation] = frozenset({Operation.READ})

Handler = Callable[[Sequence[str]], bytes]


class LedgerChaincode:
    def __init__(self, service: LedgerService) -> None:
        self.service = service
        self._handlers: Dict[Operation, Handler] = {
            Operation.INIT: self._init,
            Operation.WRITE: self._write,
            Operation.TRANSFER: self._transfer,
            Operation.READ: self.service.read_raw,
        }
        missing = set(Operation) - set(self._handlers)
        if missing:
            raise RuntimeError(f"no handler for operations: {sorted(op.value for op in missing)}")

    @classmethod
    def for_store(cls, store: StateStore) -> "LedgerChaincode":
        return cls(LedgerService(store))

    # Mutating handlers return no payload.
    def _init(self, args: Sequence[str]) -> bytes:
        self.service.initialize(args)
        return b""

    def _write(self, args: Sequence[str]) -> bytes:
        self.service.write_raw(args)
        return b""

    def _transfer(self, args: Sequence[str]) -> bytes:
        self.service.transfer(args)
        return b""

    def init(self, args: Sequence[str]) -> bytes:
        return self._handlers[Operation.INIT](args)

    def invoke(self, function: str, args: Sequence[str]) -> bytes:
        op = Operation.parse(function)
        if op is None or op not in INVOKE_OPERATIONS:
            raise UnknownOperation(
                f"Received unknown function invocation: {function}",
                operation=function,
                entry_point="invoke",
            )
        return self._handlers[op](args)

    def query(self, function: str, args: Sequence[str]) -> bytes:
        op = Operation.parse(function)
        if op is None or op not in QUERY_OPERATIONS:
            raise UnknownOperation(
                f"Received unknown function query: {function}",
                operation=function,
                entry_point="query",
            )
        return self._handlers[op](args)


def _check_routing(invoke_ops: FrozenSet[Operation], query_ops: FrozenSet[Operation]) -> None:
    # Every operation is routable from exactly one entry point.
    if invoke_ops | query_ops != frozenset(Operation) or invoke_ops & query_ops:
        raise RuntimeError("operation routing table must cover each Operation exactly once")


_check_routing(INVOKE_OPERATIONS, QUERY_OPERATIONS)


__all__ = ["Operation", "INVOKE_OPERATIONS", "QUERY_OPERATIONS", "LedgerChaincode"]

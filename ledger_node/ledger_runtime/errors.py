from __future__ import annotations

"""
Ledger error kinds.

Every failure the ledger core can report is a LedgerError subclass with a
stable machine code. The core raises them; the executor host turns them
into structured payloads via to_payload().
"""

from typing import Any, Dict


class LedgerError(RuntimeError):
    code = "ledger_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": False, "error": self.code, "detail": self.message}
        payload.update(self.context)
        return payload


class InvalidArgument(LedgerError):
    code = "invalid_argument"


class NotFound(LedgerError):
    code = "not_found"


class StoreError(LedgerError):
    code = "store_error"


class SerializationError(LedgerError):
    code = "serialization_error"


class InsufficientBalance(LedgerError):
    code = "insufficient_balance"


class UnknownOperation(LedgerError):
    code = "unknown_operation"


__all__ = [
    "LedgerError",
    "InvalidArgument",
    "NotFound",
    "StoreError",
    "SerializationError",
    "InsufficientBalance",
    "UnknownOperation",
]

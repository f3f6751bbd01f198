"""
ledger_node/ledger_runtime/ledger.py
------------------------------------

Account ledger state transitions over an injected key-value store.

Operations (all take the raw string argument list the host received):

    initialize([])                  seed the genesis accounts
    write_raw([key, value])         unchecked key/value write
    read_raw([key])                 raw bytes under key
    transfer([from, to, amount])    balance-checked move of value

Invariants:

- every Account record written by this module has balance >= 0
- a failed validation (bad arguments, insufficient balance) never writes
- transfer conserves value: from' + to' == from + to

Execution contract: the host must serialize invocations against the same
store (one writer per state height). Transfer is a read-modify-write over
two keys and takes no locks of its own.

When the store supports put_many(), both transfer records commit in one
batch. Against a plain get/put store the source is written first; if the
destination write then fails the error is surfaced as-is and the source
debit stays in place. Reconciliation belongs to the host.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .account import Account, decode_account, encode_account, seed_accounts
from .errors import (
    InsufficientBalance,
    InvalidArgument,
    LedgerError,
    NotFound,
    StoreError,
)
from .state_store import BatchStateStore, StateStore

log = logging.getLogger(__name__)

_AMOUNT_RE = re.compile(r"[+-]?[0-9]{1,19}")

# Amounts are bounded to a signed 64-bit integer.
MAX_AMOUNT = 2**63 - 1


def _require_args(args: Sequence[str], count: int, usage: str) -> None:
    if len(args) != count:
        raise InvalidArgument(f"Incorrect number of arguments. Expecting {count}. {usage}", expected=count, received=len(args))


def parse_amount(raw: str) -> int:
    """Strict int64 syntax; whitespace, underscores, decimals and overlong digit runs are rejected."""
    if not isinstance(raw, str) or not _AMOUNT_RE.fullmatch(raw):
        raise InvalidArgument("Enter an integer value in the 'Amount'", amount=raw)
    amount = int(raw)
    if amount > MAX_AMOUNT:
        raise InvalidArgument("Amount out of range", amount=raw)
    if amount < 0:
        raise InvalidArgument("Amount must not be negative", amount=raw)
    return amount


def _encode_text(text: str, key: str, field: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        # Lone surrogates are escaped so the error payload itself stays encodable.
        shown = key.encode("utf-8", "backslashreplace").decode("utf-8")
        raise InvalidArgument(f"{field} for {shown!r} is not valid UTF-8 text", key=shown) from e


class LedgerService:
    def __init__(self, store: StateStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _get(self, key: str) -> bytes:
        try:
            value = self.store.get(key)
        except LedgerError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to get state for {key}", key=key) from e
        if value is None:
            raise NotFound(f"Failed to get state for {key}", key=key)
        return bytes(value)

    def _put(self, key: str, value: bytes) -> None:
        try:
            self.store.put(key, value)
        except LedgerError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to put state for {key}", key=key) from e

    def _put_many(self, items: dict[str, bytes]) -> None:
        try:
            self.store.put_many(items)  # type: ignore[attr-defined]
        except LedgerError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to put state for {', '.join(items)}", keys=list(items)) from e

    def _load_account(self, key: str) -> Account:
        return decode_account(self._get(key), key=key)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self, args: Sequence[str]) -> None:
        if len(args) != 0:
            raise InvalidArgument("No arguments required", received=len(args))

        # Stops at the first failure; earlier seeds stay written.
        for account in seed_accounts():
            self._put(account.name, encode_account(account))
            log.debug("seeded account %s balance=%d", account.name, account.balance)

    def write_raw(self, args: Sequence[str]) -> None:
        """
        Write args[1] verbatim under args[0].

        This bypasses the Account schema entirely. Overwriting an account key
        with arbitrary bytes is allowed and will make later transfers against
        that key fail with SerializationError.
        """
        _require_args(args, 2, "name of the key and value to set")
        key, value = args
        if not key:
            raise InvalidArgument("Key must be a non-empty string")
        _encode_text(key, key, "Key")
        data = _encode_text(value, key, "Value")
        log.debug("running write_raw() key=%r", key)
        self._put(key, data)

    def read_raw(self, args: Sequence[str]) -> bytes:
        _require_args(args, 1, "name of the key to query")
        return self._get(args[0])

    def account(self, name: str) -> Account:
        return self._load_account(name)

    def transfer(self, args: Sequence[str]) -> None:
        _require_args(args, 3, "from account, to account and amount")
        from_key, to_key, amount_str = args

        # Validated before any read so a malformed amount touches no state.
        amount = parse_amount(amount_str)

        acc_from = self._load_account(from_key)
        acc_to = self._load_account(to_key)

        if acc_from.balance < amount:
            raise InsufficientBalance(
                "Insufficient Balance",
                key=from_key,
                balance=acc_from.balance,
                amount=amount,
            )

        if from_key == to_key:
            # Self-transfer; debit and credit cancel out.
            updated = {from_key: encode_account(acc_from)}
        else:
            updated = {
                from_key: encode_account(acc_from.debited(amount)),
                to_key: encode_account(acc_to.credited(amount)),
            }

        if isinstance(self.store, BatchStateStore):
            self._put_many(updated)
        else:
            for key, value in updated.items():
                self._put(key, value)

        log.info("transfer %s -> %s amount=%d", from_key, to_key, amount)


__all__ = ["LedgerService", "parse_amount"]

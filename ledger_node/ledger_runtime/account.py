"""
ledger_node/ledger_runtime/account.py
-------------------------------------

Account record and its wire codec.

Records are stored as compact JSON with exactly two fields:

    {"name":"Vatsala","balance":1000}

Decoding is strict: both fields must be present with their exact JSON
types (no numeric strings, floats or booleans for the balance), no extra
fields are accepted, and the balance may never be negative.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import SerializationError

SEED_BALANCE: int = 1000

# Fixed genesis accounts, written in this order by initialize().
SEED_ACCOUNTS = ("Vatsala", "Harish", "Narayan")


class Account(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    name: str
    balance: int = Field(ge=0)

    def debited(self, amount: int) -> "Account":
        return Account(name=self.name, balance=self.balance - amount)

    def credited(self, amount: int) -> "Account":
        return Account(name=self.name, balance=self.balance + amount)


def encode_account(account: Account) -> bytes:
    try:
        return account.model_dump_json().encode("utf-8")
    except (ValueError, TypeError) as e:
        raise SerializationError(
            f"Errors while creating json string for account {account.name}",
            key=account.name,
        ) from e


def decode_account(raw: bytes, key: str = "") -> Account:
    """Parse a stored record; any schema violation is a SerializationError."""
    try:
        return Account.model_validate_json(raw)
    except ValidationError as e:
        raise SerializationError(
            f"Failed to unmarshal account record for {key}",
            key=key,
            problems=[err.get("msg", "") for err in e.errors()],
        ) from e


def seed_accounts() -> list[Account]:
    return [Account(name=name, balance=SEED_BALANCE) for name in SEED_ACCOUNTS]

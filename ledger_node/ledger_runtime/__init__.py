# ledger_node/ledger_runtime/__init__.py
from __future__ import annotations

"""
Ledger runtime package (lazy import).

Submodules are exposed lazily via __getattr__ (PEP 562) so importing the
package does not pull in pydantic until a submodule is actually used.
"""

from importlib import import_module
from typing import Any

__all__ = [
    "errors",
    "account",
    "state_store",
    "ledger",
    "dispatch",
]

_LAZY_MAP = {
    "errors": "ledger_node.ledger_runtime.errors",
    "account": "ledger_node.ledger_runtime.account",
    "state_store": "ledger_node.ledger_runtime.state_store",
    "ledger": "ledger_node.ledger_runtime.ledger",
    "dispatch": "ledger_node.ledger_runtime.dispatch",
}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))

import os

import pytest
from fastapi.testclient import TestClient

from ledger_node.executor import LedgerExecutor
from ledger_node.ledger_api import create_app
from ledger_node.ledger_runtime.ledger import LedgerService
from ledger_node.ledger_runtime.state_store import MemoryStateStore


class PlainStore:
    """get/put only (no batch support), with call recording and failure injection."""

    def __init__(self):
        self.data = {}
        self.gets = []
        self.puts = []
        self.fail_gets = set()
        self.fail_puts = set()

    def get(self, key):
        self.gets.append(key)
        if key in self.fail_gets:
            raise OSError(f"disk error reading {key}")
        return self.data.get(key)

    def put(self, key, value):
        if key in self.fail_puts:
            raise OSError(f"disk error writing {key}")
        self.puts.append(key)
        self.data[key] = bytes(value)

    def reset_calls(self):
        self.gets.clear()
        self.puts.clear()


@pytest.fixture(autouse=True)
def _clean_ledger_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("LEDGER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def plain_store():
    return PlainStore()


@pytest.fixture
def service(store):
    return LedgerService(store)


@pytest.fixture
def seeded(service):
    """Service over a memory store holding the three genesis accounts."""
    service.initialize([])
    return service


@pytest.fixture
def executor(store):
    return LedgerExecutor(store)


@pytest.fixture
def client(executor):
    return TestClient(create_app(executor))

from __future__ import annotations

"""
HTTP client for a running ledger node.

Ledger failures come back from the node as JSON bodies with a non-2xx
status; the client returns those bodies unchanged so callers see the same
envelope as a local executor Response.to_dict(). Only transport problems
(connection refused, timeouts, non-JSON replies) raise LedgerClientError.
"""

from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

import requests


class LedgerClientError(RuntimeError):
    pass


class LedgerClient:
    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise LedgerClientError(f"{method} {url} failed: {e}") from e
        try:
            data = r.json()
        except ValueError as e:
            raise LedgerClientError(f"{method} {url} returned non-JSON (status {r.status_code})") from e
        if not isinstance(data, dict):
            raise LedgerClientError(f"{method} {url} returned unexpected body")
        return data

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/ledger/health")

    def init(self, args: Sequence[str] = ()) -> Dict[str, Any]:
        return self._request("POST", "/ledger/init", {"args": list(args)})

    def invoke(self, function: str, args: Sequence[str] = ()) -> Dict[str, Any]:
        return self._request("POST", "/ledger/invoke", {"function": function, "args": list(args)})

    def query(self, function: str, args: Sequence[str] = ()) -> Dict[str, Any]:
        return self._request("POST", "/ledger/query", {"function": function, "args": list(args)})

    def account(self, name: str) -> Dict[str, Any]:
        return self._request("GET", f"/ledger/accounts/{quote(name, safe='')}")

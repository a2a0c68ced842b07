"""Backend API client — account and cash-account payloads for the ledger.

The backend proxies the banking aggregator and keeps the persisted
snapshot. It returns records in either the aggregator's raw shape or its
own re-serialized shape; normalizing them is the caller's job.

Endpoints:
- GET /api/accounts       -> {"accounts": [...], "errors": [...]}
- GET /api/cash/account   -> account record, 404 until the cash account exists
"""

from __future__ import annotations

import requests

from .logging_setup import get_logger

_logger = get_logger("bank_ledger.backend_client")


class BackendClient:
    """Client for the finance backend."""

    def __init__(self, base_url: str, timeout: int = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, path: str) -> requests.Response:
        """GET a path; auth failures become PermissionError."""
        url = f"{self.base_url}{path}"
        resp = requests.get(
            url,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        if resp.status_code in (401, 403):
            raise PermissionError(
                f"Backend refused {path} ({resp.status_code}). "
                "The bank session may need to be re-authorized."
            )
        return resp

    def fetch_accounts(self) -> list[dict]:
        """Fetch all linked accounts with their transactions.

        Raises:
            requests.RequestException: network failure or non-success status
            PermissionError: backend rejected the request
        """
        resp = self._request("/api/accounts")
        resp.raise_for_status()
        data = resp.json() or {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected accounts response: {type(data).__name__}")

        # Errors for single accounts are informational
        for err in data.get("errors", []) or []:
            _logger.warning("Backend reported account error: %s", err)

        accounts = data.get("accounts") or []
        if not isinstance(accounts, list):
            raise ValueError(f"Unexpected accounts payload: {type(accounts).__name__}")
        _logger.debug("Fetched %d raw account(s)", len(accounts))
        return accounts

    def fetch_cash_account(self) -> dict | None:
        """Fetch the locally tracked cash account.

        Returns:
            The account record, or None when it has not been created yet
        """
        resp = self._request("/api/cash/account")
        if resp.status_code == 404:
            _logger.debug("No cash account on the backend yet")
            return None
        resp.raise_for_status()
        if not resp.content:
            return None
        data = resp.json()
        if not isinstance(data, dict) or not data:
            return None
        return data

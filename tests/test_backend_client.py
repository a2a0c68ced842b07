"""Tests for the backend API client."""

import json

import pytest
import requests
from click.testing import CliRunner

from bank_ledger.bin import ledger as ledger_cli
from bank_ledger.lib import backend_client
from bank_ledger.lib.backend_client import BackendClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def _patch_get(monkeypatch, responses: dict):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, timeout))
        return responses[url]

    monkeypatch.setattr(backend_client.requests, "get", fake_get)
    return calls


def test_fetch_accounts(monkeypatch):
    calls = _patch_get(monkeypatch, {
        "http://backend/api/accounts": FakeResponse(
            payload={"accounts": [{"uid": "u1"}], "errors": [{"error": "rate limited"}]}
        ),
    })
    client = BackendClient("http://backend/", timeout=5)
    assert client.fetch_accounts() == [{"uid": "u1"}]
    assert calls == [("http://backend/api/accounts", 5)]


def test_fetch_accounts_empty_payload(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/accounts": FakeResponse(payload={})})
    assert BackendClient("http://backend").fetch_accounts() == []


def test_fetch_accounts_server_error(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/accounts": FakeResponse(status_code=500)})
    with pytest.raises(requests.HTTPError):
        BackendClient("http://backend").fetch_accounts()


def test_fetch_accounts_unauthorized(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/accounts": FakeResponse(status_code=401)})
    with pytest.raises(PermissionError):
        BackendClient("http://backend").fetch_accounts()


def test_fetch_accounts_bad_shape(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/accounts": FakeResponse(payload={"accounts": "nope"})})
    with pytest.raises(ValueError):
        BackendClient("http://backend").fetch_accounts()


def test_cash_account_not_created_yet(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/cash/account": FakeResponse(status_code=404)})
    assert BackendClient("http://backend").fetch_cash_account() is None


def test_cash_account_null_body(monkeypatch):
    resp = FakeResponse()
    resp.content = b"null"
    _patch_get(monkeypatch, {"http://backend/api/cash/account": resp})
    assert BackendClient("http://backend").fetch_cash_account() is None


def test_cash_account(monkeypatch):
    record = {"account_id": "CASH_ACCOUNT", "balance": 20.0}
    _patch_get(monkeypatch, {"http://backend/api/cash/account": FakeResponse(payload=record)})
    assert BackendClient("http://backend").fetch_cash_account() == record


def test_cash_account_server_error(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/cash/account": FakeResponse(status_code=502)})
    with pytest.raises(requests.HTTPError):
        BackendClient("http://backend").fetch_cash_account()


def test_fetch_accounts_rejects_non_object_body(monkeypatch):
    _patch_get(monkeypatch, {"http://backend/api/accounts": FakeResponse(payload=[{"uid": "u1"}])})
    with pytest.raises(ValueError, match="Unexpected accounts response"):
        BackendClient("http://backend").fetch_accounts()


def test_accounts_command_reports_non_object_body(tmp_path, monkeypatch):
    monkeypatch.delenv("LEDGER_BACKEND_URL", raising=False)
    _patch_get(monkeypatch, {
        "http://localhost:5000/api/accounts": FakeResponse(payload=[{"uid": "u1"}]),
    })
    result = CliRunner().invoke(ledger_cli.main, ["accounts", "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "could not load accounts" in result.output

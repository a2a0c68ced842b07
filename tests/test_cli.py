"""Tests for the ledger and ledger-compact commands."""

import json

import pytest
import requests
from click.testing import CliRunner

from bank_ledger.bin import compact as compact_cli
from bank_ledger.bin import ledger as ledger_cli

ACCOUNTS = [
    {
        "uid": "u1",
        "iban": "DE89370400440532013000",
        "name": "Giro",
        "balances": [{"balanceType": "closingBooked", "balance_amount": {"amount": "100.00", "currency": "EUR"}}],
        "transactions": [
            {"transaction_id": "t1", "transaction_amount": {"amount": "9.99"},
             "credit_debit_indicator": "DBIT", "creditor_name": "Streaming",
             "booking_date": "2026-02-01"},
            {"transaction_id": "t2", "transaction_amount": {"amount": "2500.00"},
             "credit_debit_indicator": "CRDT", "debtor_name": "Employer",
             "booking_date": "2026-02-03"},
        ],
    },
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("LEDGER_BACKEND_URL", "LEDGER_SNAPSHOT", "LEDGER_CASH_ACCOUNT_ID"):
        monkeypatch.delenv(name, raising=False)


class FakeClient:
    def __init__(self, base_url, timeout=30):
        self.base_url = base_url

    def fetch_accounts(self):
        return [dict(a) for a in ACCOUNTS]

    def fetch_cash_account(self):
        return {"balance": 42.0}


class DownClient(FakeClient):
    def fetch_accounts(self):
        raise requests.ConnectionError("backend unreachable")


def test_accounts_table(tmp_path, monkeypatch):
    monkeypatch.setattr(ledger_cli, "BackendClient", FakeClient)
    result = CliRunner().invoke(ledger_cli.main, ["accounts", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Giro" in result.output
    assert "CASH_ACCOUNT" in result.output
    assert "Accounts:" in result.output


def test_accounts_backend_down(tmp_path, monkeypatch):
    monkeypatch.setattr(ledger_cli, "BackendClient", DownClient)
    result = CliRunner().invoke(ledger_cli.main, ["accounts", "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "could not load accounts" in result.output


def test_transactions_table(tmp_path, monkeypatch):
    monkeypatch.setattr(ledger_cli, "BackendClient", FakeClient)
    result = CliRunner().invoke(ledger_cli.main, ["transactions", "u1", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Employer" in result.output
    assert "Streaming" in result.output
    assert result.output.index("Employer") < result.output.index("Streaming")


def test_transactions_unknown_account(tmp_path, monkeypatch):
    monkeypatch.setattr(ledger_cli, "BackendClient", FakeClient)
    result = CliRunner().invoke(ledger_cli.main, ["transactions", "nope", "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "account not found" in result.output


def test_normalize_payload(tmp_path):
    payload = tmp_path / "accounts.json"
    payload.write_text(json.dumps({"accounts": ACCOUNTS + ACCOUNTS}))
    cash = tmp_path / "cash.json"
    cash.write_text(json.dumps({"account_id": "CASH_ACCOUNT", "balance": 12.5}))

    result = CliRunner().invoke(
        ledger_cli.main, ["normalize", str(payload), "--cash", str(cash), "--root", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    accounts = json.loads(result.output)["accounts"]
    assert [a["accountId"] for a in accounts] == ["u1", "CASH_ACCOUNT"]
    amounts = {t["transactionId"]: t["amount"] for t in accounts[0]["transactions"]}
    assert amounts == {"t1": -9.99, "t2": 2500.0}
    assert accounts[1]["kind"] == "cash"


def test_normalize_invalid_json(tmp_path):
    payload = tmp_path / "accounts.json"
    payload.write_text("{nope")
    result = CliRunner().invoke(ledger_cli.main, ["normalize", str(payload), "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "invalid JSON" in result.output


def _snapshot(tmp_path):
    path = tmp_path / "finance_db.json"
    path.write_text(json.dumps({
        "accounts": [{"account_id": "a1"}, {"account_id": "a1"}, {"account_id": "[object Object]"}],
        "transactions": [
            {"transaction_id": "t1", "booking_date": "2026-02-03",
             "raw_json": json.dumps({"value_date": "2026-02-01"})},
            {"transaction_id": "t1", "booking_date": "2026-02-03",
             "raw_json": json.dumps({"value_date": "2026-02-01"})},
        ],
    }))
    return path


def test_compact_json_report(tmp_path):
    path = _snapshot(tmp_path)
    result = CliRunner().invoke(compact_cli.main, ["--snapshot", str(path), "--json", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["removedAccounts"] == 2
    assert report["removedTransactions"] == 1
    assert report["finalTransactionCount"] == 1


def test_compact_uses_configured_snapshot(tmp_path):
    _snapshot(tmp_path)
    result = CliRunner().invoke(compact_cli.main, ["--migrate-dates", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "removed 2" in result.output
    assert "Updated 1 transaction(s)" in result.output
    data = json.loads((tmp_path / "finance_db.json").read_text())
    assert data["transactions"][0]["booking_date"] == "2026-02-01"


def test_compact_dry_run(tmp_path):
    path = _snapshot(tmp_path)
    before = path.read_text()
    result = CliRunner().invoke(compact_cli.main, ["--snapshot", str(path), "--dry-run", "--root", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "[dry-run]" in result.output
    assert path.read_text() == before


def test_compact_missing_snapshot(tmp_path):
    result = CliRunner().invoke(
        compact_cli.main, ["--snapshot", str(tmp_path / "missing.json"), "--root", str(tmp_path)]
    )
    assert result.exit_code == 1
    assert "Snapshot not found" in result.output
    assert not (tmp_path / "missing.json").exists()

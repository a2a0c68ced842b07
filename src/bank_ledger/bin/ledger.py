"""bin/ledger — Show the reconciled ledger.

Fetches accounts from the backend, normalizes and deduplicates them, adds
the cash account, and prints the result. ``normalize`` works offline on a
saved payload instead.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import requests
from rich.console import Console
from rich.table import Table

from bank_ledger.lib.backend_client import BackendClient
from bank_ledger.lib.config import Settings
from bank_ledger.lib.ledger import assemble_ledger, attach_cash_account, build_accounts
from bank_ledger.lib.logging_setup import configure_logging
from bank_ledger.lib.models import Account

console = Console()


def load_settings(root: str | None) -> Settings:
    settings = Settings.load(Path(root) if root else None)
    configure_logging(settings.log_level)
    return settings


def fetch_ledger(settings: Settings) -> list[Account]:
    client = BackendClient(settings.backend_url, timeout=settings.timeout)
    try:
        return assemble_ledger(client, settings)
    except (requests.RequestException, PermissionError, ValueError) as e:
        click.echo(f"Error: could not load accounts: {e}", err=True)
        raise SystemExit(1)


def _money(amount: float, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


@click.group()
def main() -> None:
    """ledger — reconciled view of bank and cash accounts."""
    pass


@main.command()
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def accounts(root: str | None) -> None:
    """List accounts with balances."""
    ledger = fetch_ledger(load_settings(root))
    if not ledger:
        console.print("[yellow]No accounts found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", no_wrap=True)
    table.add_column("Name")
    table.add_column("Mask")
    table.add_column("Kind")
    table.add_column("Balance", justify="right", no_wrap=True)
    table.add_column("Txns", justify="right")

    for acct in ledger:
        style = "red" if acct.session_expired else ""
        table.add_row(
            acct.account_id,
            acct.name + (" (re-auth needed)" if acct.session_expired else ""),
            acct.mask,
            acct.kind.value,
            _money(acct.balance.amount, acct.balance.currency_code),
            str(len(acct.transactions)),
            style=style,
        )

    console.print(table)
    total = sum(a.balance.amount for a in ledger)
    console.print(f"\n[bold]Accounts:[/bold] {len(ledger)}   [bold]Total:[/bold] {total:,.2f}")


@main.command()
@click.argument("account_id")
@click.option("--limit", "-n", default=50, help="Max transactions to show")
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def transactions(account_id: str, limit: int, root: str | None) -> None:
    """Show an account's transactions, newest first."""
    ledger = fetch_ledger(load_settings(root))
    acct = next((a for a in ledger if a.account_id == account_id), None)
    if acct is None:
        click.echo(f"Error: account not found: {account_id}", err=True)
        raise SystemExit(1)

    table = Table(show_header=True, header_style="bold cyan", title=acct.name)
    table.add_column("Date", no_wrap=True)
    table.add_column("Counterparty")
    table.add_column("Description")
    table.add_column("Amount", justify="right", no_wrap=True)

    for txn in acct.sorted_transactions()[:limit]:
        table.add_row(
            txn.booking_date,
            txn.counterparty_name,
            txn.remittance_information,
            _money(txn.amount, txn.currency_code),
            style="red" if txn.is_outflow else "green",
        )
    console.print(table)


@main.command()
@click.argument("payload", type=click.Path(exists=True, dir_okay=False))
@click.option("--cash", "cash_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Saved cash-account record to include")
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def normalize(payload: str, cash_file: str | None, root: str | None) -> None:
    """Normalize a saved {"accounts": [...]} payload and print canonical JSON."""
    settings = load_settings(root)
    try:
        data = json.loads(Path(payload).read_text(encoding="utf-8"))
        cash_record = json.loads(Path(cash_file).read_text(encoding="utf-8")) if cash_file else None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        click.echo(f"Error: invalid JSON: {e}", err=True)
        raise SystemExit(1)

    raw_accounts = data.get("accounts", []) if isinstance(data, dict) else data
    if not isinstance(raw_accounts, list):
        click.echo("Error: payload must be a list of accounts or {\"accounts\": [...]}", err=True)
        raise SystemExit(1)

    ledger = attach_cash_account(build_accounts(raw_accounts, settings), cash_record, settings)
    click.echo(json.dumps({"accounts": [a.to_dict() for a in ledger]}, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()

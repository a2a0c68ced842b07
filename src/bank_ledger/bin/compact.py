"""bin/compact — Clean up the persisted snapshot.

Removes duplicate and unidentifiable accounts/transactions from the JSON
snapshot in place. Optionally moves transactions onto their value date.
Never run two compactions against the same file at once.
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from bank_ledger.lib.compactor import compact_snapshot, migrate_value_dates
from bank_ledger.lib.config import Settings
from bank_ledger.lib.logging_setup import configure_logging
from bank_ledger.lib.merger import KeepPolicy


@click.command()
@click.option("--snapshot", "snapshot", type=click.Path(dir_okay=False), default=None,
              help="Snapshot file (default: from ledger.yaml)")
@click.option("--keep-transactions", type=click.Choice([p.value for p in KeepPolicy]),
              default=KeepPolicy.LAST.value, help="Which duplicate transaction survives")
@click.option("--migrate-dates", is_flag=True, help="Also move transactions to their value date")
@click.option("--dry-run", is_flag=True, help="Show what would be done without making changes")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--root", type=click.Path(exists=True), default=None, help="Project root directory")
def main(
    snapshot: str | None,
    keep_transactions: str,
    migrate_dates: bool,
    dry_run: bool,
    as_json: bool,
    root: str | None,
) -> None:
    """Deduplicate accounts and transactions in the snapshot."""
    settings = Settings.load(Path(root) if root else None)
    configure_logging(settings.log_level)
    path = Path(snapshot) if snapshot else settings.snapshot_path

    report = compact_snapshot(
        path, transaction_policy=KeepPolicy(keep_transactions), dry_run=dry_run
    )
    if not report.success:
        click.echo(f"Error: {report.message}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(f"Snapshot: {path}")
        click.echo(f"  Accounts:     {report.original_account_count} → {report.final_account_count}"
                   f" (removed {report.removed_accounts})")
        click.echo(f"  Transactions: {report.original_transaction_count} → {report.final_transaction_count}"
                   f" (removed {report.removed_transactions})")
        click.echo(report.message)

    if migrate_dates:
        migration = migrate_value_dates(path, dry_run=dry_run)
        if not migration.success:
            click.echo(f"Error: {migration.message}", err=True)
            raise SystemExit(1)
        if not as_json:
            click.echo(migration.message)

    if dry_run and not as_json:
        click.echo("\n[dry-run] No changes made.")


if __name__ == "__main__":
    main()

"""Store compactor — offline cleanup of the persisted snapshot.

Runs the identity resolver and merger over the snapshot's ``accounts`` and
``transactions`` arrays and writes the file back with every other top-level
field untouched. A second run changes nothing.

Not safe to run concurrently against the same file (no locking).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .logging_setup import get_logger
from .merger import KeepPolicy, merge_accounts, merge_transactions
from .snapshot import SnapshotError, load_snapshot, write_snapshot

_logger = get_logger("bank_ledger.compactor")


@dataclass
class CompactionReport:
    success: bool
    original_account_count: int = 0
    final_account_count: int = 0
    original_transaction_count: int = 0
    final_transaction_count: int = 0
    message: str = ""
    written: bool = False

    @property
    def removed_accounts(self) -> int:
        return self.original_account_count - self.final_account_count

    @property
    def removed_transactions(self) -> int:
        return self.original_transaction_count - self.final_transaction_count

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "message": self.message}
        return {
            "success": True,
            "originalAccountCount": self.original_account_count,
            "finalAccountCount": self.final_account_count,
            "removedAccounts": self.removed_accounts,
            "originalTransactionCount": self.original_transaction_count,
            "finalTransactionCount": self.final_transaction_count,
            "removedTransactions": self.removed_transactions,
        }


@dataclass
class DateMigrationReport:
    success: bool
    updated: int = 0
    skipped: int = 0
    message: str = ""


def _load(path: Path) -> tuple[dict | None, str]:
    try:
        return load_snapshot(path), ""
    except FileNotFoundError:
        return None, f"Snapshot not found: {path}"
    except SnapshotError as e:
        return None, str(e)


def _records(data: dict, name: str) -> list | None:
    records = data.get(name)
    if records is None:
        return []
    return records if isinstance(records, list) else None


def compact_snapshot(
    path: Path,
    *,
    transaction_policy: KeepPolicy = KeepPolicy.LAST,
    dry_run: bool = False,
) -> CompactionReport:
    """Deduplicate the snapshot in place.

    Args:
        path: Snapshot file
        transaction_policy: Which duplicate transaction survives
        dry_run: Compute the report without writing

    Returns:
        CompactionReport; success is False (and nothing is written) when the
        snapshot is missing or unparsable
    """
    data, error = _load(path)
    if data is None:
        _logger.warning("Compaction skipped: %s", error)
        return CompactionReport(success=False, message=error)

    accounts = _records(data, "accounts")
    transactions = _records(data, "transactions")
    if accounts is None or transactions is None:
        message = f"Snapshot {path}: 'accounts' and 'transactions' must be arrays"
        _logger.warning("Compaction skipped: %s", message)
        return CompactionReport(success=False, message=message)

    merged_accounts = merge_accounts(accounts)
    merged_transactions = merge_transactions(transactions, transaction_policy)

    report = CompactionReport(
        success=True,
        original_account_count=len(accounts),
        final_account_count=len(merged_accounts.records),
        original_transaction_count=len(transactions),
        final_transaction_count=len(merged_transactions.records),
        message="Cleanup successful.",
    )

    if dry_run:
        report.message = "Dry run, snapshot not written."
        return report

    write_snapshot(
        path,
        {
            **data,
            "accounts": merged_accounts.records,
            "transactions": merged_transactions.records,
        },
    )
    report.written = True
    _logger.info(
        "Compacted %s: removed %d account(s), %d transaction(s)",
        path, report.removed_accounts, report.removed_transactions,
    )
    return report


def migrate_value_dates(path: Path, *, dry_run: bool = False) -> DateMigrationReport:
    """Re-derive each transaction's booking_date from its stored raw payload.

    The value date (effective) replaces the stored booking date when they
    differ. Transactions whose ``raw_json`` does not decode are skipped.
    """
    data, error = _load(path)
    if data is None:
        _logger.warning("Date migration skipped: %s", error)
        return DateMigrationReport(success=False, message=error)

    transactions = _records(data, "transactions")
    if transactions is None:
        return DateMigrationReport(
            success=False, message=f"Snapshot {path}: 'transactions' must be an array"
        )

    updated = 0
    skipped = 0
    for tx in transactions:
        if not isinstance(tx, dict) or not tx.get("raw_json"):
            continue
        try:
            raw = json.loads(tx["raw_json"])
        except (TypeError, json.JSONDecodeError):
            _logger.warning("Failed to parse raw_json for tx %s", tx.get("transaction_id"))
            skipped += 1
            continue
        if not isinstance(raw, dict):
            skipped += 1
            continue

        better_date = raw.get("value_date") or raw.get("booking_date")
        if better_date and better_date != tx.get("booking_date"):
            _logger.info(
                "Tx %s: %s -> %s", tx.get("transaction_id"), tx.get("booking_date"), better_date
            )
            tx["booking_date"] = better_date
            updated += 1

    if updated and not dry_run:
        write_snapshot(path, data)

    if updated:
        message = f"Updated {updated} transaction(s) to use value_date."
    else:
        message = "No transactions needed updating."
    return DateMigrationReport(success=True, updated=updated, skipped=skipped, message=message)

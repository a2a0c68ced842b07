"""Deduplicating merger — one record per resolved key.

Inputs are treated as an append-only log: by default the last occurrence of
a key replaces earlier ones. The replacement keeps the slot of the first
occurrence, so output order is not meaningful; sort when order matters.
Records whose key cannot be resolved are dropped and counted.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from .identity import account_dedup_key, resolve_account_id, resolve_transaction_id
from .logging_setup import get_logger

_logger = get_logger("bank_ledger.merger")

T = TypeVar("T")


class KeepPolicy(str, Enum):
    LAST = "last"
    FIRST = "first"


@dataclass
class MergeResult(Generic[T]):
    records: list[T] = field(default_factory=list)
    dropped: int = 0
    replaced: int = 0

    @property
    def total(self) -> int:
        return len(self.records) + self.dropped + self.replaced


def merge(
    records: Iterable[T],
    key: Callable[[T], Hashable | None],
    policy: KeepPolicy = KeepPolicy.LAST,
    label: str = "record",
) -> MergeResult[T]:
    """Collapse records sharing a key.

    Args:
        records: Records in input order
        key: Returns the dedup key, or None to drop the record
        policy: Which occurrence survives a collision
        label: Entity name used in log messages

    Returns:
        MergeResult with surviving records and drop/replace counts
    """
    unique: dict[Hashable, T] = {}
    dropped = 0
    replaced = 0
    for record in records:
        k = key(record)
        if k is None:
            dropped += 1
            _logger.warning("Dropping %s without a usable identifier: %.200r", label, record)
            continue
        if k in unique:
            replaced += 1
            if policy is KeepPolicy.FIRST:
                continue
        unique[k] = record

    if dropped or replaced:
        _logger.info(
            "Merged %ss: %d kept, %d duplicates, %d dropped",
            label, len(unique), replaced, dropped,
        )
    return MergeResult(records=list(unique.values()), dropped=dropped, replaced=replaced)


def _with_resolved_id(record: Mapping) -> dict | None:
    account_id = resolve_account_id(record)
    if account_id is None:
        return None
    resolved = dict(record)
    resolved["account_id"] = account_id
    resolved["id"] = account_id
    return resolved


def merge_accounts(
    records: Iterable[Mapping], policy: KeepPolicy = KeepPolicy.LAST
) -> MergeResult[dict]:
    """Deduplicate raw account records.

    Survivors are copies with the resolved ID written to both ``account_id``
    and ``id``; the key is the IBAN when present, else that ID.
    """
    resolved: list[dict] = []
    unresolved = 0
    for record in records:
        fixed = _with_resolved_id(record) if isinstance(record, Mapping) else None
        if fixed is None:
            unresolved += 1
            _logger.warning(
                "Dropping account without a recoverable ID (iban=%r)",
                record.get("iban") if isinstance(record, Mapping) else None,
            )
            continue
        resolved.append(fixed)

    by_key = merge(resolved, account_dedup_key, policy, label="account")
    # Same ID under different keys (IBAN on one copy only) is still one account
    by_id = merge(by_key.records, lambda r: r["account_id"], policy, label="account")
    return MergeResult(
        records=by_id.records,
        dropped=unresolved,
        replaced=by_key.replaced + by_id.replaced,
    )


def _transaction_key(record: object) -> str | None:
    if not isinstance(record, Mapping):
        return None
    return resolve_transaction_id(record)


def merge_transactions(
    records: Iterable[Mapping], policy: KeepPolicy = KeepPolicy.LAST
) -> MergeResult[Mapping]:
    """Deduplicate raw transaction records by ID. Survivors are kept verbatim."""
    return merge(records, _transaction_key, policy, label="transaction")

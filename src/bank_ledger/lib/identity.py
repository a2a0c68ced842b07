"""Identity resolution for accounts and transactions.

Aggregator identifiers are not trusted as keys until they pass
``is_valid_identifier``. An earlier serialization bug stored objects as the
literal string "[object Object]"; such values are treated as missing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

OBJECT_MARKER = "[object"

ACCOUNT_ID_FIELDS = ("account_id", "accountId", "uid", "id")
TRANSACTION_ID_FIELDS = ("transaction_id", "transactionId", "id")

# Shorter values are not plausible IBANs
MIN_IBAN_LENGTH = 6


def is_valid_identifier(value: Any) -> bool:
    """True for a non-empty string that is not a stringified-object artifact."""
    if not isinstance(value, str) or not value:
        return False
    return OBJECT_MARKER not in value


def _first_valid(record: Mapping, fields: tuple[str, ...]) -> str | None:
    for name in fields:
        value = record.get(name)
        if is_valid_identifier(value):
            return value
    return None


def resolve_account_id(record: Mapping) -> str | None:
    """Return a stable account ID, or None when the account is unrecoverable.

    Tries account_id (or its camelCase form), uid and id in that order, then
    falls back to the IBAN.
    """
    account_id = _first_valid(record, ACCOUNT_ID_FIELDS)
    if account_id is not None:
        return account_id
    iban = record.get("iban")
    if isinstance(iban, str) and len(iban) >= MIN_IBAN_LENGTH:
        return iban
    return None


def resolve_transaction_id(record: Mapping) -> str | None:
    """Return a stable transaction ID, or None. There is no fallback key."""
    return _first_valid(record, TRANSACTION_ID_FIELDS)


def account_dedup_key(record: Mapping) -> str | None:
    """Deduplication key for an account: its IBAN when non-empty, else its ID."""
    account_id = resolve_account_id(record)
    if account_id is None:
        return None
    iban = record.get("iban")
    if isinstance(iban, str) and iban:
        return iban
    return account_id

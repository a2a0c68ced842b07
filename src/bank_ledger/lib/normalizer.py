"""Record normalizer — turns account/transaction payloads into canonical records.

Handles the shapes the backend hands out:

- raw aggregator records (``transaction_amount``, ``credit_debit_indicator``,
  ``balances`` array, nested ``creditor``/``debtor`` objects)
- canonical records coming back from a UI round trip (``transactionId``,
  plain ``amount``, the original payload stashed under ``raw``)
- backend snapshot rows (``transaction_id``, flat ``amount``/``balance``)
- cash-ledger entries (``id``, ``name``, ``description``)

Nothing here raises on malformed input: missing numbers become 0, missing
text becomes "" or a placeholder, and records without a usable identifier
come back as None.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from .config import CASH_ACCOUNT_ID, DEFAULT_CURRENCY
from .identity import resolve_account_id, resolve_transaction_id
from .logging_setup import get_logger
from .merger import merge
from .models import Account, AccountKind, Balance, Transaction

_logger = get_logger("bank_ledger.normalizer")

NO_DESCRIPTION = "No description"
DEFAULT_ACCOUNT_NAME = "Bank Account"
CASH_ACCOUNT_NAME = "Cash"
MASK_PLACEHOLDER = "????"
SENT_LABEL = "Sent"
RECEIVED_LABEL = "Received"

DEBIT_INDICATORS = {"DBIT", "D", "DEBIT"}
CREDIT_INDICATORS = {"CRDT", "C", "CREDIT"}

_SENT_FROM_RE = re.compile(r"^(.*?) Sent from", re.IGNORECASE)


def parse_amount(value: Any) -> float:
    """Parse a numeric string or number; anything unparsable or non-finite is 0.0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return " ".join(str(v).strip() for v in value if v).strip()
    return ""


def _nested_name(record: Mapping, party: str) -> str:
    for candidate in (
        record.get(f"{party}_name"),
        record.get(f"{party}Name"),
    ):
        name = _text(candidate)
        if name:
            return name
    nested = record.get(party)
    if isinstance(nested, Mapping):
        return _text(nested.get("name"))
    return ""


# --- Transactions ---


def _is_canonical(record: Mapping) -> bool:
    return "transactionId" in record


def _reparse_source(record: Mapping) -> Mapping:
    """Pick the payload to derive from.

    A canonical record that lost its structured amount but still carries the
    original payload is derived again from that payload.
    """
    raw = record.get("raw")
    if _is_canonical(record) and not record.get("transaction_amount") and isinstance(raw, Mapping):
        return raw
    return record


def resolve_amount(
    record: Mapping, default_currency: str = DEFAULT_CURRENCY
) -> tuple[float, str]:
    """Signed amount and currency code for a transaction record.

    A debit/credit indicator, when present, decides the sign regardless of
    the sign carried by the amount itself.
    """
    amount = 0.0
    currency = default_currency

    amount_obj = record.get("transaction_amount")
    if isinstance(amount_obj, Mapping) and amount_obj.get("amount") not in (None, ""):
        amount = parse_amount(amount_obj.get("amount"))
        currency = _text(amount_obj.get("currency")) or default_currency
    elif isinstance(record.get("amount"), (int, float)) and not isinstance(record.get("amount"), bool):
        amount = float(record["amount"])
        currency = (
            _text(record.get("currencyCode"))
            or _text(record.get("currency"))
            or default_currency
        )

    indicator = record.get("credit_debit_indicator")
    if isinstance(indicator, str):
        indicator = indicator.strip().upper()
        if indicator in DEBIT_INDICATORS:
            amount = -abs(amount)
        elif indicator in CREDIT_INDICATORS:
            amount = abs(amount)

    return amount, currency


def resolve_booking_date(record: Mapping) -> str:
    """Value date (effective) wins over booking date (ledger)."""
    for name in ("value_date", "booking_date", "bookingDate", "date"):
        value = _text(record.get(name))
        if value:
            return value
    return ""


def resolve_remittance(record: Mapping) -> str:
    for name in (
        "remittance_information_unstructured",
        "remittance_information_structured",
        "remittanceInformation",
        "remittance_information",
        "description",
    ):
        value = _text(record.get(name))
        if value:
            return value
    return NO_DESCRIPTION


def resolve_counterparty(
    amount: float,
    creditor_name: str,
    debtor_name: str,
    fallback_name: str = "",
) -> str:
    """Display name for the other side of a transaction.

    Outflows show who received the money (creditor), inflows who sent it
    (debtor). Upstream data sometimes fills in only the wrong side, so the
    other party's name is used before giving up.
    """
    preferred, other = (creditor_name, debtor_name) if amount < 0 else (debtor_name, creditor_name)
    if preferred:
        return preferred
    if other:
        return other
    if fallback_name:
        return fallback_name
    return RECEIVED_LABEL if amount > 0 else SENT_LABEL


def _fallback_name(record: Mapping, remittance: str) -> str:
    for name in ("counterpartyName", "displayName", "name"):
        value = _text(record.get(name))
        if value and value not in (SENT_LABEL, RECEIVED_LABEL):
            return value
    if remittance and remittance != NO_DESCRIPTION:
        match = _SENT_FROM_RE.match(remittance)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def normalize_transaction(
    record: Mapping, default_currency: str = DEFAULT_CURRENCY
) -> Transaction | None:
    """Canonical transaction for any known record shape, or None if unidentifiable."""
    if not isinstance(record, Mapping):
        _logger.warning("Skipping non-object transaction: %.200r", record)
        return None

    source = _reparse_source(record)
    transaction_id = resolve_transaction_id(source)
    if transaction_id is None and source is not record:
        transaction_id = resolve_transaction_id(record)
    if transaction_id is None:
        _logger.warning("Dropping transaction without a usable ID: %.200r", record)
        return None

    amount, currency = resolve_amount(source, default_currency)
    creditor_name = _nested_name(source, "creditor")
    debtor_name = _nested_name(source, "debtor")
    remittance = resolve_remittance(source)

    return Transaction(
        transaction_id=transaction_id,
        booking_date=resolve_booking_date(source),
        amount=amount,
        currency_code=currency,
        remittance_information=remittance,
        counterparty_name=resolve_counterparty(
            amount, creditor_name, debtor_name, _fallback_name(source, remittance)
        ),
        creditor_name=creditor_name,
        debtor_name=debtor_name,
        raw=dict(source),
    )


def renormalize_transaction(
    txn: Transaction, default_currency: str = DEFAULT_CURRENCY
) -> Transaction:
    """Derive a transaction again from its origin payload.

    Returns ``txn`` unchanged when it has no payload or the payload no longer
    yields an ID. The canonical ID is kept when the payload lacks one.
    """
    if txn.raw is None:
        return txn
    rederived = normalize_transaction(
        {"transactionId": txn.transaction_id, **txn.raw}, default_currency
    )
    if rederived is None:
        return txn
    rederived.raw = txn.raw
    return rederived


def normalize_transactions(
    records: Any, default_currency: str = DEFAULT_CURRENCY
) -> list[Transaction]:
    """Normalize a list of transaction records, one per transaction ID."""
    if not isinstance(records, list):
        return []
    normalized = [normalize_transaction(t, default_currency) for t in records]
    result = merge(
        [t for t in normalized if t is not None],
        lambda t: t.transaction_id,
        label="transaction",
    )
    return result.records


# --- Accounts ---


def resolve_balance(record: Mapping, default_currency: str = DEFAULT_CURRENCY) -> Balance:
    """Balance from any of the known account shapes; 0 when absent."""
    balances = record.get("balances")

    if isinstance(balances, list) and balances:
        booked = next(
            (
                b for b in balances
                if isinstance(b, Mapping) and b.get("balanceType", b.get("balance_type")) == "closingBooked"
            ),
            balances[0],
        )
        if isinstance(booked, Mapping):
            amount_obj = (
                booked.get("amount") or booked.get("balanceAmount") or booked.get("balance_amount")
            )
            if isinstance(amount_obj, Mapping) and amount_obj.get("amount") not in (None, ""):
                return Balance(
                    amount=parse_amount(amount_obj.get("amount")),
                    currency_code=_text(amount_obj.get("currency")) or default_currency,
                )
        return Balance(currency_code=default_currency)

    if isinstance(balances, Mapping) and isinstance(balances.get("current"), (int, float)):
        return Balance(
            amount=parse_amount(balances["current"]),
            currency_code=_text(balances.get("iso_currency_code")) or default_currency,
        )

    balance = record.get("balance")
    if isinstance(balance, Mapping):
        return Balance(
            amount=parse_amount(balance.get("amount")),
            currency_code=_text(balance.get("currencyCode")) or default_currency,
        )
    if balance is not None:
        return Balance(
            amount=parse_amount(balance),
            currency_code=_text(record.get("currency")) or default_currency,
        )
    return Balance(currency_code=default_currency)


def _resolve_kind(record: Mapping, account_id: str, cash_account_id: str) -> AccountKind:
    if account_id == cash_account_id:
        return AccountKind.CASH
    if record.get("kind") == AccountKind.CASH.value or record.get("type") == "cash":
        return AccountKind.CASH
    return AccountKind.BANK


def normalize_account(
    record: Mapping,
    *,
    kind: AccountKind | None = None,
    cash_account_id: str = CASH_ACCOUNT_ID,
    default_currency: str = DEFAULT_CURRENCY,
) -> Account | None:
    """Canonical account for any known record shape, or None if unidentifiable."""
    if not isinstance(record, Mapping):
        _logger.warning("Skipping non-object account: %.200r", record)
        return None

    account_id = resolve_account_id(record)
    if account_id is None:
        _logger.warning("Dropping account without a recoverable ID (iban=%r)", record.get("iban"))
        return None

    iban = record.get("iban") if isinstance(record.get("iban"), str) else ""
    mask = iban[-4:] if iban else (_text(record.get("mask")) or MASK_PLACEHOLDER)

    kind = kind or _resolve_kind(record, account_id, cash_account_id)
    default_name = CASH_ACCOUNT_NAME if kind is AccountKind.CASH else DEFAULT_ACCOUNT_NAME
    session_expired = record.get("sessionExpired")
    if not isinstance(session_expired, bool):
        session_expired = None
    transactions = normalize_transactions(record.get("transactions"), default_currency)

    return Account(
        account_id=account_id,
        name=_text(record.get("name")) or default_name,
        mask=mask,
        iban=iban,
        balance=resolve_balance(record, default_currency),
        kind=kind,
        transactions=transactions,
        session_expired=session_expired,
    )

"""Ledger assembler — bank accounts plus the locally tracked cash account.

The ledger is rebuilt from scratch on each call. A failure fetching the bank
accounts fails the whole assembly; a missing or failing cash account only
means the ledger has no cash entry.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

import requests

from .config import Settings
from .logging_setup import get_logger
from .merger import merge_accounts
from .models import Account, AccountKind
from .normalizer import normalize_account

_logger = get_logger("bank_ledger.ledger")


class AccountSource(Protocol):
    def fetch_accounts(self) -> list[dict]: ...

    def fetch_cash_account(self) -> dict | None: ...


def build_accounts(raw_accounts: Iterable[Mapping], settings: Settings) -> list[Account]:
    """Deduplicate and normalize bank account records."""
    merged = merge_accounts(raw_accounts)
    accounts: list[Account] = []
    for record in merged.records:
        account = normalize_account(
            record,
            cash_account_id=settings.cash_account_id,
            default_currency=settings.default_currency,
        )
        if account is not None:
            accounts.append(account)
    return accounts


def attach_cash_account(
    accounts: list[Account], cash_record: Mapping | None, settings: Settings
) -> list[Account]:
    """Append the cash account unless one is already present.

    The sentinel ID is the only key checked; the cash entry always gets it.
    """
    if not isinstance(cash_record, Mapping):
        return accounts
    sentinel = settings.cash_account_id
    if any(a.account_id == sentinel for a in accounts):
        _logger.debug("Cash account %s already in ledger", sentinel)
        return accounts

    cash = normalize_account(
        {**cash_record, "account_id": sentinel},
        kind=AccountKind.CASH,
        cash_account_id=sentinel,
        default_currency=settings.default_currency,
    )
    if cash is None:
        return accounts
    return [*accounts, cash]


def assemble_ledger(client: AccountSource, settings: Settings) -> list[Account]:
    """Fetch, normalize and combine every account for display.

    Raises:
        Whatever the account fetch raises; the cash fetch never fails the call
    """
    accounts = build_accounts(client.fetch_accounts(), settings)

    try:
        cash_record = client.fetch_cash_account()
    except (requests.RequestException, PermissionError, ValueError) as e:
        _logger.warning("Cash account unavailable, continuing without it: %s", e)
        cash_record = None

    ledger = attach_cash_account(accounts, cash_record, settings)
    _logger.info(
        "Assembled ledger: %d account(s), %d transaction(s)",
        len(ledger), sum(len(a.transactions) for a in ledger),
    )
    return ledger

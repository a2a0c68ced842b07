"""Canonical account and transaction records.

These are the shapes handed to presentation code, whatever the source
(aggregator payload, backend snapshot, cash ledger). They serialize to a
camelCase JSON object; ``from_dict`` reads that shape back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AccountKind(str, Enum):
    BANK = "bank"
    CASH = "cash"


@dataclass
class Balance:
    amount: float = 0.0
    currency_code: str = "EUR"

    def to_dict(self) -> dict:
        return {"amount": self.amount, "currencyCode": self.currency_code}


@dataclass
class Transaction:
    """Normalized transaction.

    ``raw`` keeps the untouched origin payload (None for records that never
    had one) so the canonical fields can be derived again later.
    """

    transaction_id: str
    booking_date: str  # YYYY-MM-DD, value date preferred
    amount: float  # negative = outflow
    currency_code: str
    remittance_information: str
    counterparty_name: str
    creditor_name: str = ""
    debtor_name: str = ""
    raw: dict[str, Any] | None = None

    @property
    def is_outflow(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "bookingDate": self.booking_date,
            "amount": self.amount,
            "currencyCode": self.currency_code,
            "remittanceInformation": self.remittance_information,
            "counterpartyName": self.counterparty_name,
            "creditorName": self.creditor_name,
            "debtorName": self.debtor_name,
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        return cls(
            transaction_id=data["transactionId"],
            booking_date=data.get("bookingDate", ""),
            amount=float(data.get("amount", 0.0)),
            currency_code=data.get("currencyCode", "EUR"),
            remittance_information=data.get("remittanceInformation", ""),
            counterparty_name=data.get("counterpartyName", ""),
            creditor_name=data.get("creditorName", ""),
            debtor_name=data.get("debtorName", ""),
            raw=data.get("raw"),
        )


@dataclass
class Account:
    """Normalized account with its transactions in source order."""

    account_id: str
    name: str
    mask: str
    iban: str
    balance: Balance
    kind: AccountKind = AccountKind.BANK
    transactions: list[Transaction] = field(default_factory=list)
    session_expired: bool | None = None

    @property
    def is_cash(self) -> bool:
        return self.kind is AccountKind.CASH

    def sorted_transactions(self, newest_first: bool = True) -> list[Transaction]:
        return sorted(
            self.transactions, key=lambda t: t.booking_date, reverse=newest_first
        )

    def to_dict(self) -> dict:
        data = {
            "accountId": self.account_id,
            "name": self.name,
            "mask": self.mask,
            "iban": self.iban,
            "balance": self.balance.to_dict(),
            "kind": self.kind.value,
            "transactions": [t.to_dict() for t in self.transactions],
        }
        if self.session_expired is not None:
            data["sessionExpired"] = self.session_expired
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        balance = data.get("balance") or {}
        return cls(
            account_id=data["accountId"],
            name=data.get("name", ""),
            mask=data.get("mask", ""),
            iban=data.get("iban", ""),
            balance=Balance(
                amount=float(balance.get("amount", 0.0)),
                currency_code=balance.get("currencyCode", "EUR"),
            ),
            kind=AccountKind(data.get("kind", AccountKind.BANK.value)),
            transactions=[Transaction.from_dict(t) for t in data.get("transactions", [])],
            session_expired=data.get("sessionExpired"),
        )

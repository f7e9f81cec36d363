"""Domain model entities for finstream.

These are pure data classes representing business concepts, independent of
database schema. Services return these; the database layer converts its ORM
rows into them through the mappers.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    """Top-level account classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class AccountSubtype(str, Enum):
    """Account subtype, valid only under one AccountType."""

    CASH = "CASH"
    BANK = "BANK"
    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    INVENTORY = "INVENTORY"
    FIXED_ASSET = "FIXED_ASSET"
    OTHER_ASSET = "OTHER_ASSET"

    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"
    TAX_PAYABLE = "TAX_PAYABLE"
    OTHER_LIABILITY = "OTHER_LIABILITY"

    RETAINED_EARNINGS = "RETAINED_EARNINGS"
    OWNER_EQUITY = "OWNER_EQUITY"

    SALES = "SALES"
    OTHER_INCOME = "OTHER_INCOME"

    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    PAYROLL = "PAYROLL"
    TAX_EXPENSE = "TAX_EXPENSE"
    OTHER_EXPENSE = "OTHER_EXPENSE"


ACCOUNT_SUBTYPES: dict[AccountType, tuple[AccountSubtype, ...]] = {
    AccountType.ASSET: (
        AccountSubtype.CASH,
        AccountSubtype.BANK,
        AccountSubtype.ACCOUNTS_RECEIVABLE,
        AccountSubtype.INVENTORY,
        AccountSubtype.FIXED_ASSET,
        AccountSubtype.OTHER_ASSET,
    ),
    AccountType.LIABILITY: (
        AccountSubtype.ACCOUNTS_PAYABLE,
        AccountSubtype.CREDIT_CARD,
        AccountSubtype.LOAN,
        AccountSubtype.TAX_PAYABLE,
        AccountSubtype.OTHER_LIABILITY,
    ),
    AccountType.EQUITY: (
        AccountSubtype.RETAINED_EARNINGS,
        AccountSubtype.OWNER_EQUITY,
    ),
    AccountType.INCOME: (
        AccountSubtype.SALES,
        AccountSubtype.OTHER_INCOME,
    ),
    AccountType.EXPENSE: (
        AccountSubtype.OPERATING_EXPENSE,
        AccountSubtype.PAYROLL,
        AccountSubtype.TAX_EXPENSE,
        AccountSubtype.OTHER_EXPENSE,
    ),
}


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry."""

    id: int
    name: str
    type: AccountType
    subtype: AccountSubtype
    balance: Decimal
    is_active: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    number: Optional[str] = None
    description: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class JournalEntry:
    """One debit (positive) or credit (negative) line of a transaction."""

    id: int
    transaction_id: int
    account_id: int
    amount: Decimal
    memo: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """File linked to a transaction."""

    id: int
    transaction_id: int
    file_name: str
    file_url: str
    file_type: str
    file_size: int
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Posted ledger transaction with its journal entries."""

    id: int
    date: date
    description: str
    reference: Optional[str]
    entries: tuple[JournalEntry, ...]
    is_reconciled: bool
    created_at: datetime
    updated_at: datetime
    reversal_of_id: Optional[int] = None
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class InvoiceItem:
    """Invoice line item."""

    id: int
    invoice_id: int
    description: str
    quantity: Decimal
    price: Decimal
    amount: Decimal
    taxable: bool


@dataclass(frozen=True)
class Invoice:
    """Customer invoice."""

    id: int
    invoice_number: str
    customer_id: str
    date: date
    due_date: date
    items: tuple[InvoiceItem, ...]
    tax_rate: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime
    notes: Optional[str] = None
    terms: Optional[str] = None
    version: int = 1

    @property
    def balance_due(self) -> Decimal:
        return self.total - self.amount_paid


@dataclass(frozen=True)
class Payment:
    """Payment recorded against an invoice."""

    id: int
    invoice_id: int
    amount: Decimal
    date: date
    created_at: datetime
    method: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class BankAccount:
    """External-institution mirror of an internal account."""

    id: int
    account_id: int
    institution_name: str
    account_name: str
    account_type: str
    account_number: str
    balance: Decimal
    last_updated: datetime
    routing_number: Optional[str] = None


@dataclass(frozen=True)
class BankTransaction:
    """Transaction reported by the bank feed."""

    id: int
    bank_account_id: int
    provider_transaction_id: str
    date: date
    description: str
    amount: Decimal
    pending: bool
    is_matched: bool
    category: Optional[str] = None
    transaction_id: Optional[int] = None
    version: int = 1


# Inputs and results. These are not persisted as-is.


@dataclass(frozen=True)
class EntryInput:
    """Proposed journal entry for posting."""

    account_id: int
    amount: Decimal
    memo: Optional[str] = None


@dataclass(frozen=True)
class InvoiceItemInput:
    """Proposed invoice line. amount defaults to quantity x price."""

    description: str
    quantity: Decimal
    price: Decimal
    taxable: bool = True
    amount: Optional[Decimal] = None


@dataclass(frozen=True)
class BankTransactionData:
    """Bank transaction record as delivered by a sync cycle."""

    provider_transaction_id: str
    date: date
    description: str
    amount: Decimal
    category: Optional[str] = None
    pending: bool = False


@dataclass(frozen=True)
class SyncResult:
    """Counts of rows touched by one sync delta."""

    added: int = 0
    modified: int = 0
    removed: int = 0


@dataclass(frozen=True)
class MatchingSummary:
    """Match status counts for one bank account."""

    total: int
    matched: int
    unmatched: int
    pending: int


@dataclass(frozen=True)
class StatementLine:
    """One entry on an account statement with the running balance after it."""

    transaction_id: int
    date: date
    description: str
    reference: Optional[str]
    amount: Decimal
    running_balance: Decimal
    memo: Optional[str] = None


@dataclass(frozen=True)
class AccountStatement:
    """Account entries over a date range."""

    account: Account
    start_date: Optional[date]
    end_date: Optional[date]
    starting_balance: Decimal
    ending_balance: Decimal
    lines: list[StatementLine] = field(default_factory=list)

"""Abstract database interface.

Every mutating method is one atomic unit: either all of its writes become
visible or none do. Methods taking ``expected_version`` fail with
ConflictError when the row changed since the caller read it.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain services
from finstream.domain.entities import (
    Account,
    AccountSubtype,
    AccountType,
    Attachment,
    BankAccount,
    BankTransaction,
    BankTransactionData,
    EntryInput,
    Invoice,
    InvoiceItemInput,
    InvoiceStatus,
    JournalEntry,
    Payment,
    SyncResult,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for finstream."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        account_type: AccountType,
        subtype: AccountSubtype,
        number: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a new account with a zero balance. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, name: str) -> Optional[Account]:
        """Get account by its unique name."""
        pass

    @abstractmethod
    def list_accounts(
        self, account_type: Optional[AccountType] = None, include_archived: bool = False
    ) -> list[Account]:
        """List accounts ordered by type and name."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        expected_version: int,
        name: Optional[str] = None,
        number: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_archived: Optional[bool] = None,
    ) -> None:
        """Update account attributes other than the balance."""
        pass

    @abstractmethod
    def get_account_entry_total(self, account_id: int, before: Optional[date] = None) -> Decimal:
        """Sum of posted entry amounts for an account, optionally before a date."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite the materialized balance of an account."""
        pass

    # Ledger operations
    @abstractmethod
    def post_transaction(
        self,
        date: date,
        description: str,
        entries: Sequence[EntryInput],
        reference: Optional[str] = None,
        reversal_of_id: Optional[int] = None,
        match_bank_transaction_id: Optional[int] = None,
        replace_transaction_id: Optional[int] = None,
    ) -> int:
        """Create a transaction with its entries and apply them to account balances.

        Re-checks inside the unit that every account exists and is not archived.
        With ``match_bank_transaction_id`` the bank transaction is matched to the
        new transaction in the same unit. With ``replace_transaction_id`` that
        transaction is deleted (and its balance effects reverted) in the same unit.
        Returns transaction ID.
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, with entries and attachments."""
        pass

    @abstractmethod
    def find_reversal(self, transaction_id: int) -> Optional[int]:
        """Return the ID of the transaction reversing the given one, if any."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        reconciled: Optional[bool] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def list_account_entries(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[tuple[JournalEntry, Transaction]]:
        """List entries posted to an account with their transactions, oldest first."""
        pass

    @abstractmethod
    def set_transaction_reconciled(self, transaction_id: int, reconciled: bool) -> None:
        """Set the reconciled flag of a transaction."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and revert its entries from account balances."""
        pass

    @abstractmethod
    def add_attachment(
        self, transaction_id: int, file_name: str, file_url: str, file_type: str, file_size: int
    ) -> int:
        """Attach a file link to a transaction. Returns attachment ID."""
        pass

    @abstractmethod
    def get_attachment(self, attachment_id: int) -> Optional[Attachment]:
        """Get attachment by ID."""
        pass

    @abstractmethod
    def delete_attachment(self, attachment_id: int) -> None:
        """Remove an attachment link."""
        pass

    # Invoice operations
    @abstractmethod
    def count_invoices(self) -> int:
        """Number of invoices ever stored, used for invoice numbering."""
        pass

    @abstractmethod
    def create_invoice(
        self,
        invoice_number: str,
        customer_id: str,
        invoice_date: date,
        due_date: date,
        items: Sequence[InvoiceItemInput],
        tax_rate: Decimal,
        subtotal: Decimal,
        tax_amount: Decimal,
        total: Decimal,
        notes: Optional[str] = None,
        terms: Optional[str] = None,
    ) -> int:
        """Create a DRAFT invoice with its items. Item amounts must be resolved."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, with items."""
        pass

    @abstractmethod
    def get_invoice_by_number(self, invoice_number: str) -> Optional[Invoice]:
        """Get invoice by invoice number."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        statuses: Optional[Sequence[InvoiceStatus]] = None,
        customer_id: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices, optionally filtered by status and customer."""
        pass

    @abstractmethod
    def replace_invoice_items(
        self,
        invoice_id: int,
        expected_version: int,
        items: Sequence[InvoiceItemInput],
        tax_rate: Decimal,
        subtotal: Decimal,
        tax_amount: Decimal,
        total: Decimal,
    ) -> None:
        """Replace all items and totals of an invoice."""
        pass

    @abstractmethod
    def update_invoice_status(self, invoice_id: int, expected_version: int, status: InvoiceStatus) -> None:
        """Change the status of an invoice."""
        pass

    @abstractmethod
    def add_invoice_payment(
        self,
        invoice_id: int,
        expected_version: int,
        amount: Decimal,
        payment_date: date,
        amount_paid: Decimal,
        status: InvoiceStatus,
        method: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Store a payment and the invoice's new amount paid and status together."""
        pass

    @abstractmethod
    def list_payments(self, invoice_id: int) -> list[Payment]:
        """List payments recorded against an invoice, oldest first."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: int, expected_version: int) -> None:
        """Delete an invoice with its items."""
        pass

    # Bank operations
    @abstractmethod
    def create_bank_account(
        self,
        account_id: int,
        institution_name: str,
        account_name: str,
        account_type: str,
        account_number: str,
        routing_number: Optional[str] = None,
        balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a bank account mirror. Returns bank account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self, account_id: Optional[int] = None) -> list[BankAccount]:
        """List bank accounts, optionally for one internal account."""
        pass

    @abstractmethod
    def delete_bank_account(self, bank_account_id: int) -> None:
        """Delete a bank account and its bank transactions."""
        pass

    @abstractmethod
    def apply_bank_sync(
        self,
        bank_account_id: int,
        upserts: Sequence[BankTransactionData],
        removed: Sequence[str],
        balance: Optional[Decimal] = None,
    ) -> SyncResult:
        """Upsert and remove bank transactions by provider ID in one unit.

        Upserts keep existing match fields. Removals of unknown IDs are ignored.
        """
        pass

    @abstractmethod
    def get_bank_transaction(self, bank_transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self, bank_account_id: int, matched: Optional[bool] = None
    ) -> list[BankTransaction]:
        """List bank transactions of a bank account, newest first."""
        pass

    @abstractmethod
    def set_bank_transaction_match(
        self, bank_transaction_id: int, expected_version: int, transaction_id: Optional[int]
    ) -> None:
        """Set or clear (None) the matched ledger transaction."""
        pass

    @abstractmethod
    def get_matched_transaction_ids(self) -> set[int]:
        """IDs of ledger transactions referenced by any bank transaction."""
        pass

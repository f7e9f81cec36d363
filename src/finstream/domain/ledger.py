"""Double-entry ledger domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from finstream.database.base import Database
from finstream.domain.entities import (
    AccountStatement,
    EntryInput,
    StatementLine,
    Transaction as TransactionEntity,
)
from finstream.domain.errors import (
    ArchivedAccountError,
    DependencyError,
    NotFoundError,
    TooFewEntriesError,
    UnbalancedEntriesError,
    UnknownAccountError,
    ValidationError,
    account_not_found,
    transaction_delete_blocked,
    transaction_not_found,
)
from finstream.logging_config import get_logger
from finstream.utils.amount_parser import to_money

logger = get_logger(__name__)


class LedgerService:
    """Service for posting and querying ledger transactions."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def validate_entries(self, entries: Sequence[EntryInput]) -> list[EntryInput]:
        """Check entries in order and return them with exact cent amounts.

        Raises:
            TooFewEntriesError: If fewer than two entries are given
            ValidationError: If an amount is not an exact cent value
            UnbalancedEntriesError: If amounts do not sum to zero
            UnknownAccountError: If an account does not exist
            ArchivedAccountError: If an account is archived
        """
        if len(entries) < 2:
            raise TooFewEntriesError(f"A transaction needs at least 2 entries, got {len(entries)}")

        normalized = [
            EntryInput(account_id=e.account_id, amount=to_money(e.amount), memo=e.memo) for e in entries
        ]

        total = sum((e.amount for e in normalized), Decimal("0"))
        if total != 0:
            logger.warning("Rejected unbalanced entries (sum %s)", total)
            raise UnbalancedEntriesError(f"Entries must sum to zero, got {total}")

        for entry in normalized:
            account = self.db.get_account(entry.account_id)
            if account is None:
                raise UnknownAccountError(account_not_found(entry.account_id))
            if account.is_archived:
                raise ArchivedAccountError(f"Account '{account.name}' is archived and cannot receive entries")

        return normalized

    def post_transaction(
        self,
        date: date,
        description: str,
        entries: Sequence[EntryInput],
        reference: Optional[str] = None,
    ) -> int:
        """Post a balanced transaction and update account balances.

        The transaction, its entries and every affected balance are written
        together or not at all.

        Args:
            date: Transaction date
            description: Description
            entries: Journal entries, positive for debits and negative for credits
            reference: Optional external reference (check number, invoice number)

        Returns:
            Transaction ID

        Raises:
            TooFewEntriesError: If fewer than two entries are given
            ValidationError: If an amount is not an exact cent value
            UnbalancedEntriesError: If amounts do not sum to zero
            UnknownAccountError: If an account does not exist
            ArchivedAccountError: If an account is archived
        """
        normalized = self.validate_entries(entries)
        transaction_id = self.db.post_transaction(
            date=date,
            description=description,
            entries=normalized,
            reference=reference,
        )
        logger.info("Posted transaction %s with %d entries", transaction_id, len(normalized))
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> TransactionEntity:
        """Get transaction by ID or raise NotFoundError."""
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        reconciled: Optional[bool] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional filters.

        Args:
            start_date: Start date filter (inclusive)
            end_date: End date filter (inclusive)
            account_id: Only transactions with an entry on this account
            reconciled: Filter by reconciled flag

        Returns:
            List of transaction entities, newest first
        """
        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            reconciled=reconciled,
        )

    def reverse_transaction(self, transaction_id: int, reversal_date: date) -> int:
        """Post a transaction that negates every entry of another one.

        The original transaction is left untouched.

        Returns:
            ID of the reversing transaction

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: If it was already reversed
            ArchivedAccountError: If one of its accounts is archived
        """
        original = self.require_transaction(transaction_id)

        existing = self.db.find_reversal(transaction_id)
        if existing is not None:
            raise ValidationError(f"Transaction {transaction_id} was already reversed by transaction {existing}")

        entries = [EntryInput(account_id=e.account_id, amount=-e.amount, memo=e.memo) for e in original.entries]
        normalized = self.validate_entries(entries)
        reversal_id = self.db.post_transaction(
            date=reversal_date,
            description=original.description,
            entries=normalized,
            reference=f"Reversal of #{transaction_id}",
            reversal_of_id=transaction_id,
        )
        logger.info("Reversed transaction %s with transaction %s", transaction_id, reversal_id)
        return reversal_id

    def reconcile_transaction(self, transaction_id: int, reconciled: bool = True) -> None:
        """Set the reconciled flag. Entries and balances are not touched.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        self.require_transaction(transaction_id)
        self.db.set_transaction_reconciled(transaction_id, reconciled)
        logger.info("Transaction %s reconciled=%s", transaction_id, reconciled)

    def _check_deletable(self, transaction: TransactionEntity) -> None:
        reasons = []
        if transaction.is_reconciled:
            reasons.append("reconciled")
        if transaction.id in self.db.get_matched_transaction_ids():
            reasons.append("matched to a bank transaction")
        reversal_id = self.db.find_reversal(transaction.id)
        if reversal_id is not None:
            reasons.append(f"reversed by transaction {reversal_id}")
        if reasons:
            raise DependencyError(transaction_delete_blocked(transaction.id, reasons))

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and revert its effect on account balances.

        Raises:
            NotFoundError: If the transaction does not exist
            DependencyError: If it is reconciled, matched or reversed
        """
        transaction = self.require_transaction(transaction_id)
        self._check_deletable(transaction)
        self.db.delete_transaction(transaction_id)
        logger.info("Deleted transaction %s", transaction_id)

    def replace_transaction(
        self,
        transaction_id: int,
        date: date,
        description: str,
        entries: Sequence[EntryInput],
        reference: Optional[str] = None,
    ) -> int:
        """Edit a transaction by deleting it and posting a new one in one step.

        Returns:
            ID of the new transaction

        Raises:
            NotFoundError: If the transaction does not exist
            DependencyError: If it is reconciled, matched or reversed
            plus every error of post_transaction for the new entries
        """
        transaction = self.require_transaction(transaction_id)
        self._check_deletable(transaction)
        normalized = self.validate_entries(entries)
        new_id = self.db.post_transaction(
            date=date,
            description=description,
            entries=normalized,
            reference=reference,
            replace_transaction_id=transaction_id,
        )
        logger.info("Replaced transaction %s with transaction %s", transaction_id, new_id)
        return new_id

    def get_account_statement(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AccountStatement:
        """Build a statement of an account's entries over a date range.

        The starting balance is the sum of all entries before start_date;
        each line carries the running balance after it.

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("Start date must not be after end date")

        if start_date is None:
            starting_balance = Decimal("0.00")
        else:
            starting_balance = self.db.get_account_entry_total(account_id, before=start_date)

        running = starting_balance
        lines = []
        for entry, transaction in self.db.list_account_entries(account_id, start_date, end_date):
            running += entry.amount
            lines.append(
                StatementLine(
                    transaction_id=transaction.id,
                    date=transaction.date,
                    description=transaction.description,
                    reference=transaction.reference,
                    amount=entry.amount,
                    running_balance=running,
                    memo=entry.memo,
                )
            )

        return AccountStatement(
            account=account,
            start_date=start_date,
            end_date=end_date,
            starting_balance=starting_balance,
            ending_balance=running,
            lines=lines,
        )

    def rebuild_balance(self, account_id: int) -> Decimal:
        """Recompute an account's stored balance from its posted entries.

        Returns:
            The recomputed balance

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        balance = self.db.get_account_entry_total(account_id)
        if balance != account.balance:
            logger.warning(
                "Account %s balance corrected from %s to %s", account_id, account.balance, balance
            )
            self.db.set_account_balance(account_id, balance)
        return balance

    def add_attachment(
        self,
        transaction_id: int,
        file_name: str,
        file_url: str,
        file_type: str,
        file_size: int,
    ) -> int:
        """Link a file to a transaction.

        Returns:
            Attachment ID
        """
        self.require_transaction(transaction_id)
        if not file_name or not file_url:
            raise ValidationError("Attachment needs a file name and URL")
        if file_size < 0:
            raise ValidationError("File size must not be negative")
        attachment_id = self.db.add_attachment(transaction_id, file_name, file_url, file_type, file_size)
        logger.info("Attached %s to transaction %s", file_name, transaction_id)
        return attachment_id

    def remove_attachment(self, attachment_id: int) -> None:
        """Remove an attachment link."""
        if self.db.get_attachment(attachment_id) is None:
            raise NotFoundError(f"Attachment {attachment_id} not found")
        self.db.delete_attachment(attachment_id)

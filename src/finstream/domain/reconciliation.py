"""Bank reconciliation domain service."""

from datetime import timedelta
from decimal import Decimal
from typing import Optional, Sequence

from finstream.database.base import Database
from finstream.domain.entities import (
    BankAccount as BankAccountEntity,
    BankTransaction as BankTransactionEntity,
    BankTransactionData,
    EntryInput,
    MatchingSummary,
    SyncResult,
    Transaction as TransactionEntity,
)
from finstream.domain.errors import (
    AlreadyMatchedError,
    NotFoundError,
    UnknownTransactionError,
    ValidationError,
    account_not_found,
    bank_account_not_found,
    bank_transaction_not_found,
    transaction_not_found,
)
from finstream.domain.ledger import LedgerService
from finstream.logging_config import get_logger
from finstream.utils.amount_parser import to_money

logger = get_logger(__name__)


class ReconciliationService:
    """Service for bank accounts, bank feed syncs and matching."""

    def __init__(self, db: Database):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = LedgerService(db)

    def link_bank_account(
        self,
        account_id: int,
        institution_name: str,
        account_name: str,
        account_type: str,
        account_number: str,
        routing_number: Optional[str] = None,
        balance: Decimal | int | str = 0,
    ) -> int:
        """Register a bank account that mirrors an internal account.

        Only the last four characters of account_number are stored.

        Returns:
            Bank account ID

        Raises:
            NotFoundError: If the internal account does not exist
            ValidationError: If a required field is empty
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        for field_name, value in (
            ("institution name", institution_name),
            ("account name", account_name),
            ("account type", account_type),
            ("account number", account_number),
        ):
            if not value or not value.strip():
                raise ValidationError(f"Bank {field_name} is required")

        bank_account_id = self.db.create_bank_account(
            account_id=account_id,
            institution_name=institution_name.strip(),
            account_name=account_name.strip(),
            account_type=account_type.strip(),
            account_number=account_number.strip()[-4:],
            routing_number=routing_number,
            balance=to_money(balance),
        )
        logger.info("Linked bank account %s to account %s", bank_account_id, account_id)
        return bank_account_id

    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccountEntity]:
        """Get bank account by ID."""
        return self.db.get_bank_account(bank_account_id)

    def require_bank_account(self, bank_account_id: int) -> BankAccountEntity:
        """Get bank account by ID or raise NotFoundError."""
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        return bank_account

    def list_bank_accounts(self, account_id: Optional[int] = None) -> list[BankAccountEntity]:
        """List bank accounts, optionally only those linked to one internal account."""
        return self.db.list_bank_accounts(account_id=account_id)

    def delete_bank_account(self, bank_account_id: int) -> None:
        """Delete a bank account with its bank transactions. Ledger data is kept."""
        self.require_bank_account(bank_account_id)
        self.db.delete_bank_account(bank_account_id)
        logger.info("Deleted bank account %s", bank_account_id)

    def get_bank_transaction(self, bank_transaction_id: int) -> Optional[BankTransactionEntity]:
        """Get bank transaction by ID."""
        return self.db.get_bank_transaction(bank_transaction_id)

    def require_bank_transaction(self, bank_transaction_id: int) -> BankTransactionEntity:
        """Get bank transaction by ID or raise NotFoundError."""
        bank_txn = self.db.get_bank_transaction(bank_transaction_id)
        if bank_txn is None:
            raise NotFoundError(bank_transaction_not_found(bank_transaction_id))
        return bank_txn

    def list_bank_transactions(
        self, bank_account_id: int, matched: Optional[bool] = None
    ) -> list[BankTransactionEntity]:
        """List bank transactions of a bank account, newest first."""
        self.require_bank_account(bank_account_id)
        return self.db.list_bank_transactions(bank_account_id, matched=matched)

    @staticmethod
    def _normalize(record: BankTransactionData) -> BankTransactionData:
        provider_id = (record.provider_transaction_id or "").strip()
        if not provider_id:
            raise ValidationError("Bank transaction is missing its provider transaction id")
        return BankTransactionData(
            provider_transaction_id=provider_id,
            date=record.date,
            description=record.description or "",
            amount=to_money(record.amount),
            category=record.category,
            pending=bool(record.pending),
        )

    def apply_sync_delta(
        self,
        bank_account_id: int,
        added: Sequence[BankTransactionData] = (),
        modified: Sequence[BankTransactionData] = (),
        removed: Sequence[str] = (),
        balance: Optional[Decimal | int | str] = None,
    ) -> SyncResult:
        """Apply one bank feed sync cycle.

        Records are keyed by provider transaction id, so replaying a delta is
        harmless: an added record that already exists updates it, a modified
        record that does not exist is inserted, and removing an unknown id does
        nothing. A record both upserted and removed in the same delta is removed.
        Match links of updated records are kept.

        Args:
            bank_account_id: Bank account ID
            added: New records
            modified: Changed records
            removed: Provider ids of deleted records
            balance: Optional new bank balance

        Returns:
            SyncResult with the number of rows inserted, updated and deleted

        Raises:
            NotFoundError: If the bank account does not exist
            ValidationError: If a record is invalid
        """
        self.require_bank_account(bank_account_id)

        # Later records for the same id win
        upserts: dict[str, BankTransactionData] = {}
        for record in list(added) + list(modified):
            normalized = self._normalize(record)
            upserts[normalized.provider_transaction_id] = normalized

        removed_ids = list(dict.fromkeys(pid.strip() for pid in removed if pid and pid.strip()))
        removed_set = set(removed_ids)
        records = [record for pid, record in upserts.items() if pid not in removed_set]

        result = self.db.apply_bank_sync(
            bank_account_id,
            upserts=records,
            removed=removed_ids,
            balance=None if balance is None else to_money(balance),
        )
        logger.info(
            "Synced bank account %s: %d added, %d modified, %d removed",
            bank_account_id, result.added, result.modified, result.removed,
        )
        return result

    def match_transaction(self, bank_transaction_id: int, transaction_id: int) -> None:
        """Link a bank transaction to a ledger transaction.

        Balances are not changed. Matching again to the same transaction is a no-op.

        Raises:
            NotFoundError: If the bank transaction does not exist
            AlreadyMatchedError: If it is matched to a different transaction
            UnknownTransactionError: If the ledger transaction does not exist
        """
        bank_txn = self.require_bank_transaction(bank_transaction_id)
        if bank_txn.transaction_id == transaction_id:
            return
        if bank_txn.is_matched:
            logger.warning(
                "Bank transaction %s already matched to %s, refused %s",
                bank_transaction_id, bank_txn.transaction_id, transaction_id,
            )
            raise AlreadyMatchedError(
                f"Bank transaction {bank_transaction_id} is already matched to transaction {bank_txn.transaction_id}"
            )
        if self.db.get_transaction(transaction_id) is None:
            raise UnknownTransactionError(transaction_not_found(transaction_id))

        self.db.set_bank_transaction_match(bank_transaction_id, bank_txn.version, transaction_id)
        logger.info("Matched bank transaction %s to transaction %s", bank_transaction_id, transaction_id)

    def unmatch_transaction(self, bank_transaction_id: int) -> None:
        """Clear the match of a bank transaction. Unmatched ones are left alone.

        Raises:
            NotFoundError: If the bank transaction does not exist
        """
        bank_txn = self.require_bank_transaction(bank_transaction_id)
        if not bank_txn.is_matched:
            return
        self.db.set_bank_transaction_match(bank_transaction_id, bank_txn.version, None)
        logger.info("Unmatched bank transaction %s", bank_transaction_id)

    def matching_summary(self, bank_account_id: int) -> MatchingSummary:
        """Count matched, unmatched and pending bank transactions of a bank account."""
        transactions = self.list_bank_transactions(bank_account_id)
        matched = sum(1 for t in transactions if t.is_matched)
        return MatchingSummary(
            total=len(transactions),
            matched=matched,
            unmatched=len(transactions) - matched,
            pending=sum(1 for t in transactions if t.pending),
        )

    def suggest_matches(self, bank_transaction_id: int, window_days: int = 3) -> list[TransactionEntity]:
        """Find ledger transactions that could match a bank transaction.

        Candidates have an entry on the linked account for exactly the bank
        amount, are dated within window_days of it and are not matched yet.

        Returns:
            Candidate transactions, closest date first
        """
        if window_days < 0:
            raise ValidationError("Window must not be negative")
        bank_txn = self.require_bank_transaction(bank_transaction_id)
        bank_account = self.require_bank_account(bank_txn.bank_account_id)

        window = timedelta(days=window_days)
        candidates = self.db.list_transactions(
            start_date=bank_txn.date - window,
            end_date=bank_txn.date + window,
            account_id=bank_account.account_id,
        )
        matched_ids = self.db.get_matched_transaction_ids()
        suggestions = [
            txn
            for txn in candidates
            if txn.id not in matched_ids
            and any(e.account_id == bank_account.account_id and e.amount == bank_txn.amount for e in txn.entries)
        ]
        suggestions.sort(key=lambda txn: (abs((txn.date - bank_txn.date).days), txn.id))
        return suggestions

    def create_transaction_from_bank_transaction(
        self,
        bank_transaction_id: int,
        offset_account_id: int,
        description: Optional[str] = None,
    ) -> int:
        """Post a ledger transaction for an unmatched bank transaction and match it.

        The linked account receives the bank amount and the offset account
        its negation. Posting and matching happen together.

        Returns:
            ID of the new ledger transaction

        Raises:
            NotFoundError: If the bank transaction or its bank account does not exist
            AlreadyMatchedError: If the bank transaction is already matched
            ValidationError: If the bank amount is zero
            plus every error of posting a transaction
        """
        bank_txn = self.require_bank_transaction(bank_transaction_id)
        if bank_txn.is_matched:
            raise AlreadyMatchedError(
                f"Bank transaction {bank_transaction_id} is already matched to transaction {bank_txn.transaction_id}"
            )
        if bank_txn.amount == 0:
            raise ValidationError(f"Bank transaction {bank_transaction_id} has a zero amount")
        bank_account = self.require_bank_account(bank_txn.bank_account_id)

        entries = self.ledger.validate_entries(
            [
                EntryInput(account_id=bank_account.account_id, amount=bank_txn.amount),
                EntryInput(account_id=offset_account_id, amount=-bank_txn.amount),
            ]
        )
        transaction_id = self.db.post_transaction(
            date=bank_txn.date,
            description=description or bank_txn.description,
            entries=entries,
            match_bank_transaction_id=bank_transaction_id,
        )
        logger.info(
            "Created transaction %s from bank transaction %s", transaction_id, bank_transaction_id
        )
        return transaction_id

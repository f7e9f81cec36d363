"""Chart of accounts domain service."""

from decimal import Decimal
from typing import Optional

from finstream.database.base import Database
from finstream.domain.entities import (
    ACCOUNT_SUBTYPES,
    Account as AccountEntity,
    AccountSubtype,
    AccountType,
)
from finstream.domain.errors import (
    DuplicateError,
    InvalidSubtypeError,
    NonZeroBalanceError,
    NotFoundError,
    ValidationError,
    account_not_found,
)
from finstream.logging_config import get_logger

logger = get_logger(__name__)

# (name, type, subtype, description, selected by default)
DEFAULT_ACCOUNTS: tuple[tuple[str, AccountType, AccountSubtype, str, bool], ...] = (
    ("Checking Account", AccountType.ASSET, AccountSubtype.BANK, "Primary business checking", True),
    ("Savings Account", AccountType.ASSET, AccountSubtype.BANK, "Business savings", True),
    ("Accounts Receivable", AccountType.ASSET, AccountSubtype.ACCOUNTS_RECEIVABLE, "Money owed by customers", True),
    ("Inventory", AccountType.ASSET, AccountSubtype.INVENTORY, "Goods held for sale", True),
    ("Office Equipment", AccountType.ASSET, AccountSubtype.FIXED_ASSET, "Computers, furniture and equipment", True),
    ("Accounts Payable", AccountType.LIABILITY, AccountSubtype.ACCOUNTS_PAYABLE, "Money owed to vendors", True),
    ("Credit Card", AccountType.LIABILITY, AccountSubtype.CREDIT_CARD, "Business credit card", True),
    ("Sales Tax Payable", AccountType.LIABILITY, AccountSubtype.TAX_PAYABLE, "Sales tax collected", True),
    ("Owner's Equity", AccountType.EQUITY, AccountSubtype.OWNER_EQUITY, "Owner investment", True),
    ("Retained Earnings", AccountType.EQUITY, AccountSubtype.RETAINED_EARNINGS, "Accumulated profits", True),
    ("Sales Revenue", AccountType.INCOME, AccountSubtype.SALES, "Income from sales", True),
    ("Interest Income", AccountType.INCOME, AccountSubtype.OTHER_INCOME, "Interest earned", False),
    ("Rent Expense", AccountType.EXPENSE, AccountSubtype.OPERATING_EXPENSE, "Office rent", True),
    ("Utilities", AccountType.EXPENSE, AccountSubtype.OPERATING_EXPENSE, "Electricity, water, internet", True),
    ("Office Supplies", AccountType.EXPENSE, AccountSubtype.OPERATING_EXPENSE, "Consumable office supplies", True),
    ("Payroll", AccountType.EXPENSE, AccountSubtype.PAYROLL, "Wages and salaries", True),
    ("Insurance", AccountType.EXPENSE, AccountSubtype.OPERATING_EXPENSE, "Business insurance", True),
    ("Income Tax", AccountType.EXPENSE, AccountSubtype.TAX_EXPENSE, "Income tax expense", True),
)


def _coerce_type(account_type: AccountType | str) -> AccountType:
    try:
        return AccountType(account_type.upper() if isinstance(account_type, str) else account_type)
    except ValueError as e:
        valid = ", ".join(t.value for t in AccountType)
        raise ValidationError(f"Unknown account type '{account_type}'. Valid types: {valid}") from e


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, db: Database, require_zero_balance: bool = False):
        """Initialize account service.

        Args:
            db: Database instance
            require_zero_balance: Refuse to archive accounts that carry a balance
        """
        self.db = db
        self.require_zero_balance = require_zero_balance

    @staticmethod
    def account_types() -> list[AccountType]:
        """Return all account types in chart order."""
        return list(AccountType)

    @staticmethod
    def subtypes_for(account_type: AccountType | str) -> tuple[AccountSubtype, ...]:
        """Return the subtypes valid for an account type."""
        return ACCOUNT_SUBTYPES[_coerce_type(account_type)]

    def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        subtype: AccountSubtype | str,
        number: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a new account with a zero balance.

        Args:
            name: Account name, unique across the chart
            account_type: Top-level type
            subtype: Subtype, which must belong to account_type
            number: Optional account number
            description: Optional description

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or the type is unknown
            InvalidSubtypeError: If subtype is not valid for account_type
            DuplicateError: If an account with the same name exists
        """
        name = name.strip() if name else ""
        if not name:
            raise ValidationError("Account name is required")

        account_type = _coerce_type(account_type)
        try:
            subtype = AccountSubtype(subtype.upper() if isinstance(subtype, str) else subtype)
        except ValueError as e:
            raise InvalidSubtypeError(f"Unknown account subtype '{subtype}'") from e
        if subtype not in ACCOUNT_SUBTYPES[account_type]:
            valid = ", ".join(s.value for s in ACCOUNT_SUBTYPES[account_type])
            raise InvalidSubtypeError(
                f"Subtype {subtype.value} is not valid for {account_type.value} accounts. Valid subtypes: {valid}"
            )

        if self.db.get_account_by_name(name) is not None:
            raise DuplicateError(f"Account with name '{name}' already exists")

        account_id = self.db.create_account(
            name=name,
            account_type=account_type,
            subtype=subtype,
            number=number,
            description=description,
        )
        logger.info("Created account %s '%s' (%s/%s)", account_id, name, account_type.value, subtype.value)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise NotFoundError."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def find_by_name(self, name: str) -> Optional[AccountEntity]:
        """Get account by exact name."""
        return self.db.get_account_by_name(name)

    def list_accounts(
        self, account_type: Optional[AccountType | str] = None, include_archived: bool = False
    ) -> list[AccountEntity]:
        """List accounts.

        Args:
            account_type: Only list accounts of this type
            include_archived: Include archived accounts

        Returns:
            List of account entities ordered by type and name
        """
        if account_type is not None:
            account_type = _coerce_type(account_type)
        return self.db.list_accounts(account_type=account_type, include_archived=include_archived)

    def get_balance(self, account_id: int) -> Decimal:
        """Return the current balance of an account.

        Raises:
            NotFoundError: If account not found
        """
        return self.require_account(account_id).balance

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        number: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update descriptive account fields. Type, subtype and balance are fixed.

        Raises:
            NotFoundError: If account not found
            DuplicateError: If the new name is taken by another account
        """
        account = self.require_account(account_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Account name is required")
            existing = self.db.get_account_by_name(name)
            if existing is not None and existing.id != account_id:
                raise DuplicateError(f"Account with name '{name}' already exists")

        self.db.update_account(
            account_id,
            expected_version=account.version,
            name=name,
            number=number,
            description=description,
        )
        logger.info("Updated account %s", account_id)

    def set_active(self, account_id: int, active: bool) -> None:
        """Mark an account active or inactive."""
        account = self.require_account(account_id)
        self.db.update_account(account_id, expected_version=account.version, is_active=active)

    def archive_account(self, account_id: int) -> None:
        """Archive an account so it receives no new entries.

        Archived accounts keep their history and balance.

        Raises:
            NotFoundError: If account not found
            NonZeroBalanceError: If zero balances are required and the balance is not zero
        """
        account = self.require_account(account_id)
        if account.is_archived:
            return
        if self.require_zero_balance and account.balance != 0:
            logger.warning("Refused to archive account %s with balance %s", account_id, account.balance)
            raise NonZeroBalanceError(
                f"Cannot archive account '{account.name}': balance is {account.balance}"
            )
        self.db.update_account(account_id, expected_version=account.version, is_archived=True)
        logger.info("Archived account %s", account_id)

    def restore_account(self, account_id: int) -> None:
        """Restore an archived account.

        Raises:
            NotFoundError: If account not found
        """
        account = self.require_account(account_id)
        if not account.is_archived:
            return
        self.db.update_account(account_id, expected_version=account.version, is_archived=False)
        logger.info("Restored account %s", account_id)

    def create_default_chart(self, include_optional: bool = False) -> list[int]:
        """Create the starter chart of accounts.

        Accounts whose name already exists are skipped, so running this twice
        is safe.

        Args:
            include_optional: Also create accounts that are not selected by default

        Returns:
            IDs of the accounts created
        """
        created = []
        for name, account_type, subtype, description, selected in DEFAULT_ACCOUNTS:
            if not selected and not include_optional:
                continue
            if self.db.get_account_by_name(name) is not None:
                continue
            created.append(self.create_account(name, account_type, subtype, description=description))
        return created

"""Tests for AccountService."""

from datetime import date
from decimal import Decimal

import pytest

from finstream.domain.account import DEFAULT_ACCOUNTS, AccountService
from finstream.domain.entities import AccountSubtype, AccountType, EntryInput
from finstream.domain.errors import (
    DuplicateError,
    InvalidSubtypeError,
    NonZeroBalanceError,
    NotFoundError,
    ValidationError,
)


def test_create_account(account_service):
    account_id = account_service.create_account(
        "Checking", AccountType.ASSET, AccountSubtype.BANK, number="1000", description="Main account"
    )

    account = account_service.get_account(account_id)
    assert account.name == "Checking"
    assert account.type == AccountType.ASSET
    assert account.subtype == AccountSubtype.BANK
    assert account.number == "1000"
    assert account.balance == Decimal("0")
    assert account.is_active
    assert not account.is_archived


def test_create_account_accepts_strings(account_service):
    account_id = account_service.create_account("Payroll", "expense", "payroll")
    account = account_service.get_account(account_id)
    assert account.type == AccountType.EXPENSE
    assert account.subtype == AccountSubtype.PAYROLL


def test_create_account_rejects_subtype_of_other_type(account_service):
    with pytest.raises(InvalidSubtypeError) as excinfo:
        account_service.create_account("Bad", AccountType.INCOME, AccountSubtype.BANK)
    assert "not valid for INCOME" in str(excinfo.value)
    assert isinstance(excinfo.value, ValidationError)


def test_create_account_rejects_unknown_type(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account("Bad", "REVENUE", "SALES")


def test_create_account_rejects_duplicate_name(account_service):
    account_service.create_account("Checking", AccountType.ASSET, AccountSubtype.BANK)
    with pytest.raises(DuplicateError):
        account_service.create_account("Checking", AccountType.ASSET, AccountSubtype.CASH)


def test_create_account_rejects_empty_name(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account("  ", AccountType.ASSET, AccountSubtype.BANK)


def test_subtypes_for(account_service):
    assert AccountSubtype.RETAINED_EARNINGS in AccountService.subtypes_for(AccountType.EQUITY)
    assert AccountSubtype.SALES not in AccountService.subtypes_for("EXPENSE")
    assert AccountService.account_types()[0] == AccountType.ASSET


def test_get_balance_unknown_account(account_service):
    with pytest.raises(NotFoundError):
        account_service.get_balance(999)


def test_list_accounts_filters(account_service, sample_accounts):
    expenses = account_service.list_accounts(account_type=AccountType.EXPENSE)
    assert [a.name for a in expenses] == ["Office"]

    account_service.archive_account(sample_accounts["office"])
    assert "Office" not in [a.name for a in account_service.list_accounts()]
    assert "Office" in [a.name for a in account_service.list_accounts(include_archived=True)]


def test_archive_and_restore(account_service, sample_accounts):
    account_id = sample_accounts["office"]

    account_service.archive_account(account_id)
    assert account_service.get_account(account_id).is_archived

    account_service.restore_account(account_id)
    assert not account_service.get_account(account_id).is_archived


def test_archive_with_balance_allowed_by_default(account_service, ledger_service, sample_accounts):
    ledger_service.post_transaction(
        date(2024, 1, 1),
        "Supplies",
        [
            EntryInput(sample_accounts["office"], Decimal("10.00")),
            EntryInput(sample_accounts["checking"], Decimal("-10.00")),
        ],
    )

    account_service.archive_account(sample_accounts["office"])
    account = account_service.get_account(sample_accounts["office"])
    assert account.is_archived
    assert account.balance == Decimal("10.00")


def test_archive_with_balance_rejected_when_required(temp_db, ledger_service, sample_accounts):
    ledger_service.post_transaction(
        date(2024, 1, 1),
        "Supplies",
        [
            EntryInput(sample_accounts["office"], Decimal("10.00")),
            EntryInput(sample_accounts["checking"], Decimal("-10.00")),
        ],
    )
    strict = AccountService(temp_db, require_zero_balance=True)

    with pytest.raises(NonZeroBalanceError):
        strict.archive_account(sample_accounts["office"])
    assert not strict.get_account(sample_accounts["office"]).is_archived

    # Zero-balance accounts can still be archived
    strict.archive_account(sample_accounts["sales"])
    assert strict.get_account(sample_accounts["sales"]).is_archived


def test_update_account(account_service, sample_accounts):
    account_service.update_account(sample_accounts["office"], name="Office Costs", number="6100")
    account = account_service.get_account(sample_accounts["office"])
    assert account.name == "Office Costs"
    assert account.number == "6100"
    assert account.version > 1


def test_update_account_rejects_taken_name(account_service, sample_accounts):
    with pytest.raises(DuplicateError):
        account_service.update_account(sample_accounts["office"], name="Sales")


def test_set_active(account_service, sample_accounts):
    account_service.set_active(sample_accounts["sales"], False)
    assert not account_service.get_account(sample_accounts["sales"]).is_active


def test_find_by_name(account_service, sample_accounts):
    assert account_service.find_by_name("Checking").id == sample_accounts["checking"]
    assert account_service.find_by_name("Nope") is None


def test_create_default_chart(account_service):
    created = account_service.create_default_chart()

    selected = [entry for entry in DEFAULT_ACCOUNTS if entry[4]]
    assert len(created) == len(selected)
    assert account_service.find_by_name("Interest Income") is None
    assert account_service.find_by_name("Sales Tax Payable").subtype == AccountSubtype.TAX_PAYABLE

    # Running again creates nothing new
    assert account_service.create_default_chart() == []
    assert len(account_service.create_default_chart(include_optional=True)) == 1

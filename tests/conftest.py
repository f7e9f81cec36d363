"""Shared pytest fixtures for finstream tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from finstream.database.factories import create_sqlite_database
from finstream.domain.account import AccountService
from finstream.domain.entities import AccountSubtype, AccountType, InvoiceItemInput
from finstream.domain.invoice import InvoiceService
from finstream.domain.ledger import LedgerService
from finstream.domain.reconciliation import ReconciliationService
from finstream.logging_config import reset_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers the CLI installs so each test starts with default logging."""
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def sample_accounts(account_service):
    """Create a small chart of accounts and return their IDs by short name."""
    return {
        "checking": account_service.create_account("Checking", AccountType.ASSET, AccountSubtype.BANK),
        "receivable": account_service.create_account(
            "Accounts Receivable", AccountType.ASSET, AccountSubtype.ACCOUNTS_RECEIVABLE
        ),
        "office": account_service.create_account("Office", AccountType.EXPENSE, AccountSubtype.OPERATING_EXPENSE),
        "sales": account_service.create_account("Sales", AccountType.INCOME, AccountSubtype.SALES),
        "equity": account_service.create_account("Owner Equity", AccountType.EQUITY, AccountSubtype.OWNER_EQUITY),
    }


@pytest.fixture
def sent_invoice(invoice_service):
    """Create and send an invoice totalling 909.50 (850.00 + 7% tax), due 2024-02-14."""
    invoice_id = invoice_service.create_invoice(
        customer_id="CUST-1",
        items=[InvoiceItemInput(description="Consulting", quantity=Decimal("10"), price=Decimal("85.00"))],
        due_date=date(2024, 2, 14),
        tax_rate=Decimal("0.07"),
        invoice_date=date(2024, 1, 15),
    )
    invoice_service.send_invoice(invoice_id)
    return invoice_service.get_invoice(invoice_id)


@pytest.fixture
def bank_account(reconciliation_service, sample_accounts):
    """Link a bank account to the Checking account."""
    bank_account_id = reconciliation_service.link_bank_account(
        account_id=sample_accounts["checking"],
        institution_name="First Bank",
        account_name="Business Checking",
        account_type="checking",
        account_number="000123456789",
    )
    return reconciliation_service.get_bank_account(bank_account_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

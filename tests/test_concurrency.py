"""Tests for optimistic locking and concurrent writers."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from finstream.database.factories import create_sqlite_database
from finstream.domain.entities import EntryInput, InvoiceStatus
from finstream.domain.errors import ConflictError, DomainError
from finstream.domain.invoice import InvoiceService
from finstream.domain.ledger import LedgerService


@pytest.fixture
def second_db(temp_db):
    """Open a second Database on the same file, like a second process."""
    db = create_sqlite_database(database_path=temp_db.database_path)
    db.connect()
    yield db
    db.disconnect()


def test_stale_invoice_version_conflicts(temp_db, second_db, invoice_service, sent_invoice):
    """A write based on an old read fails instead of overwriting."""
    stale = invoice_service.get_invoice(sent_invoice.id)

    InvoiceService(second_db).record_payment(sent_invoice.id, "100.00", payment_date=date(2024, 1, 20))

    with pytest.raises(ConflictError) as excinfo:
        temp_db.add_invoice_payment(
            sent_invoice.id,
            expected_version=stale.version,
            amount=Decimal("909.50"),
            payment_date=date(2024, 1, 21),
            amount_paid=Decimal("909.50"),
            status=InvoiceStatus.PAID,
        )
    assert excinfo.value.retryable

    invoice = invoice_service.get_invoice(sent_invoice.id)
    assert invoice.amount_paid == Decimal("100.00")
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    assert len(invoice_service.list_payments(sent_invoice.id)) == 1


def test_stale_account_version_conflicts(temp_db, account_service, sample_accounts):
    stale = account_service.get_account(sample_accounts["office"])
    account_service.update_account(sample_accounts["office"], name="Office Costs")

    with pytest.raises(ConflictError):
        temp_db.update_account(sample_accounts["office"], stale.version, is_archived=True)
    assert not account_service.get_account(sample_accounts["office"]).is_archived


def test_concurrent_full_payments_apply_once(temp_db, invoice_service, sent_invoice):
    """Two clerks paying the full balance at once: exactly one payment lands."""
    barrier = threading.Barrier(2)
    outcomes = []

    def pay():
        barrier.wait()
        try:
            invoice_service.record_payment(sent_invoice.id, "909.50", payment_date=date(2024, 1, 20))
            outcomes.append("paid")
        except DomainError as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=pay) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("paid") == 1
    invoice = invoice_service.get_invoice(sent_invoice.id)
    assert invoice.amount_paid == Decimal("909.50")
    assert invoice.status == InvoiceStatus.PAID
    assert len(invoice_service.list_payments(sent_invoice.id)) == 1


def test_concurrent_postings_keep_balances(temp_db, ledger_service, sample_accounts):
    """Balances stay equal to the entry sums under parallel posting."""

    def post(n):
        for _ in range(n):
            ledger_service.post_transaction(
                date(2024, 1, 10),
                "Sale",
                [
                    EntryInput(sample_accounts["checking"], Decimal("1.25")),
                    EntryInput(sample_accounts["sales"], Decimal("-1.25")),
                ],
            )

    threads = [threading.Thread(target=post, args=(10,)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert temp_db.get_account(sample_accounts["checking"]).balance == Decimal("50.00")
    assert temp_db.get_account(sample_accounts["sales"]).balance == Decimal("-50.00")
    for key in ("checking", "sales"):
        assert LedgerService(temp_db).rebuild_balance(sample_accounts[key]) == temp_db.get_account(
            sample_accounts[key]
        ).balance


def test_concurrent_reversals_post_once(temp_db, ledger_service, sample_accounts, monkeypatch):
    """Two callers that both saw no reversal: only one reversal is posted."""
    original_id = ledger_service.post_transaction(
        date(2024, 1, 5),
        "Office supplies",
        [
            EntryInput(sample_accounts["office"], Decimal("125.99")),
            EntryInput(sample_accounts["checking"], Decimal("-125.99")),
        ],
    )
    barrier = threading.Barrier(2)
    find_reversal = temp_db.find_reversal

    def find_reversal_then_wait(transaction_id):
        result = find_reversal(transaction_id)
        barrier.wait()
        return result

    monkeypatch.setattr(temp_db, "find_reversal", find_reversal_then_wait)
    outcomes = []

    def reverse():
        try:
            outcomes.append(ledger_service.reverse_transaction(original_id, date(2024, 1, 31)))
        except DomainError as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=reverse) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ValidationError") == 1
    assert len([o for o in outcomes if isinstance(o, int)]) == 1
    reversals = [t for t in ledger_service.list_transactions() if t.reversal_of_id == original_id]
    assert len(reversals) == 1
    assert temp_db.get_account(sample_accounts["office"]).balance == Decimal("0")

"""Tests for invoice commands."""

from datetime import date
from decimal import Decimal

from finstream.cli.main import cli
from finstream.domain.entities import InvoiceItemInput, InvoiceStatus


def test_invoice_create(cli_runner, temp_db):
    """Test creating an invoice with a taxable and an untaxed item."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "invoice",
            "create",
            "--customer",
            "ACME",
            "--item",
            "Consulting|10|85.00",
            "--item",
            "Setup fee|1|100|notax",
            "--date",
            "2024-01-15",
            "--tax-rate",
            "0.07",
            "--terms",
            "Net 30",
        ],
    )

    assert result.exit_code == 0
    assert "Created invoice INV-00001" in result.output
    assert "total 1,009.50" in result.output

    invoice = temp_db.get_invoice_by_number("INV-00001")
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.subtotal == Decimal("950.00")
    assert invoice.tax_amount == Decimal("59.50")
    assert str(invoice.due_date) == "2024-02-14"
    assert invoice.terms == "Net 30"


def test_invoice_create_invalid_item(cli_runner, temp_db):
    """Test that a malformed item is rejected."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "invoice", "create", "--customer", "ACME", "--item", "Consulting|10"],
    )

    assert result.exit_code == 1
    assert "Invalid item" in result.output


def test_invoice_create_due_before_date(cli_runner, temp_db):
    """Test that a due date before the invoice date is rejected."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "invoice",
            "create",
            "--customer",
            "ACME",
            "--item",
            "Consulting|1|10",
            "--date",
            "2024-01-15",
            "--due",
            "2024-01-01",
        ],
    )

    assert result.exit_code == 1
    assert "before invoice date" in result.output


def test_invoice_lifecycle(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test partial and final payment through the CLI."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "invoice",
            "pay",
            str(sent_invoice.id),
            "400.00",
            "--date",
            "2024-01-20",
            "--method",
            "check",
        ],
    )
    assert result.exit_code == 0
    assert "paid 400.00 of 909.50 (PARTIALLY_PAID)" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "invoice", "pay", str(sent_invoice.id), "509.50"]
    )
    assert result.exit_code == 0
    assert "(PAID)" in result.output

    invoice = invoice_service.get_invoice(sent_invoice.id)
    assert invoice.status == InvoiceStatus.PAID
    assert invoice.amount_paid == Decimal("909.50")


def test_invoice_pay_overpayment(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test that overpayment is rejected and nothing is recorded."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "invoice", "pay", str(sent_invoice.id), "1000.00"]
    )

    assert result.exit_code == 1
    assert "exceeds balance due" in result.output
    assert invoice_service.list_payments(sent_invoice.id) == []


def test_invoice_pay_draft(cli_runner, temp_db, invoice_service):
    """Test that drafts cannot be paid."""
    invoice_id = invoice_service.create_invoice(
        "ACME", [InvoiceItemInput("Consulting", Decimal("1"), Decimal("10"))], due_date=date(2024, 2, 1),
        invoice_date=date(2024, 1, 1),
    )

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "pay", str(invoice_id), "10"])

    assert result.exit_code == 1
    assert "in status DRAFT" in result.output


def test_invoice_send_twice(cli_runner, temp_db, sent_invoice):
    """Test that sending a sent invoice fails."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "send", str(sent_invoice.id)])

    assert result.exit_code == 1
    assert "Cannot send invoice" in result.output


def test_invoice_show(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test showing an invoice with its payments."""
    invoice_service.record_payment(sent_invoice.id, "100.00", method="card")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "show", str(sent_invoice.id)])

    assert result.exit_code == 0
    assert "Customer: CUST-1" in result.output
    assert "Consulting" in result.output
    assert "909.50" in result.output
    assert "809.50" in result.output
    assert "via card" in result.output


def test_invoice_show_missing(cli_runner, temp_db):
    """Test showing an invoice that does not exist."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "show", "7"])

    assert result.exit_code == 1
    assert "Invoice 7 not found" in result.output


def test_invoice_list(cli_runner, temp_db, sent_invoice):
    """Test listing invoices with a status filter."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "list", "--status", "sent"])
    assert result.exit_code == 0
    assert sent_invoice.invoice_number in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "list", "--status", "PAID"])
    assert "No invoices found." in result.output


def test_invoice_sweep_overdue(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test the overdue sweep before and after the due date."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "invoice", "sweep-overdue", "--as-of", "2024-02-14"]
    )
    assert result.exit_code == 0
    assert "No invoices became overdue." in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "invoice", "sweep-overdue", "--as-of", "2024-02-15"]
    )
    assert result.exit_code == 0
    assert f"Marked 1 invoice(s) overdue: {sent_invoice.id}" in result.output
    assert invoice_service.get_invoice(sent_invoice.id).status == InvoiceStatus.OVERDUE


def test_invoice_cancel_and_delete(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test cancelling then deleting an unpaid invoice."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "cancel", str(sent_invoice.id)])
    assert result.exit_code == 0
    assert invoice_service.get_invoice(sent_invoice.id).status == InvoiceStatus.CANCELLED

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "delete", str(sent_invoice.id)])
    assert result.exit_code == 0
    assert invoice_service.get_invoice(sent_invoice.id) is None


def test_invoice_cancel_paid(cli_runner, temp_db, invoice_service, sent_invoice):
    """Test that paid invoices cannot be cancelled."""
    invoice_service.record_payment(sent_invoice.id, "909.50")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "invoice", "cancel", str(sent_invoice.id)])

    assert result.exit_code == 1
    assert "Cannot cancel invoice" in result.output
    assert invoice_service.get_invoice(sent_invoice.id).status == InvoiceStatus.PAID

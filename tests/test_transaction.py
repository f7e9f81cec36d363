"""Tests for transaction commands."""

from datetime import date
from decimal import Decimal

import pytest

from finstream.cli.main import cli
from finstream.domain.entities import EntryInput


@pytest.fixture
def posted(ledger_service, sample_accounts):
    """Post a paper purchase and return its ID."""
    return ledger_service.post_transaction(
        date(2024, 1, 15),
        "Printer paper",
        [
            EntryInput(sample_accounts["office"], Decimal("125.99"), memo="Paper"),
            EntryInput(sample_accounts["checking"], Decimal("-125.99")),
        ],
        reference="CHK-1001",
    )


def test_post_transaction(cli_runner, temp_db, sample_accounts):
    """Test posting a balanced transaction with accounts given by name."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--date",
            "2024-01-15",
            "--description",
            "Printer paper",
            "--entry",
            "Office=125.99:Paper",
            "--entry",
            "Checking=-125.99",
        ],
    )

    assert result.exit_code == 0
    assert "Posted transaction" in result.output
    assert temp_db.get_account(sample_accounts["office"]).balance == Decimal("125.99")
    assert temp_db.get_account(sample_accounts["checking"]).balance == Decimal("-125.99")


def test_post_transaction_by_account_id(cli_runner, temp_db, sample_accounts):
    """Test posting with account IDs."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--description",
            "Owner investment",
            "--entry",
            f"{sample_accounts['checking']}=5000.00",
            "--entry",
            f"{sample_accounts['equity']}=-5000.00",
        ],
    )

    assert result.exit_code == 0
    assert temp_db.get_account(sample_accounts["equity"]).balance == Decimal("-5000.00")


def test_post_unbalanced_transaction(cli_runner, temp_db, sample_accounts):
    """Test that unbalanced entries are rejected and nothing is stored."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--description",
            "Broken",
            "--entry",
            "Office=100.00",
            "--entry",
            "Checking=-99.99",
        ],
    )

    assert result.exit_code == 1
    assert "sum to zero" in result.output
    assert temp_db.list_transactions() == []
    assert temp_db.get_account(sample_accounts["office"]).balance == Decimal("0")


def test_post_single_entry(cli_runner, temp_db, sample_accounts):
    """Test that a single entry is rejected."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "post", "--description", "Solo", "--entry", "Office=0"],
    )

    assert result.exit_code == 1
    assert "at least 2 entries" in result.output


def test_post_invalid_entry_format(cli_runner, temp_db, sample_accounts):
    """Test that a malformed entry is rejected."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--description",
            "Bad",
            "--entry",
            "Office 100",
            "--entry",
            "Checking=-100",
        ],
    )

    assert result.exit_code == 1
    assert "Invalid entry" in result.output


def test_post_unknown_account(cli_runner, temp_db, sample_accounts):
    """Test that an unknown account name is rejected."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--description",
            "Bad",
            "--entry",
            "Travel=100",
            "--entry",
            "Checking=-100",
        ],
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_post_to_archived_account(cli_runner, temp_db, account_service, sample_accounts):
    """Test that archived accounts cannot receive entries."""
    account_service.archive_account(sample_accounts["office"])

    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "post",
            "--description",
            "Paper",
            "--entry",
            "Office=10",
            "--entry",
            "Checking=-10",
        ],
    )

    assert result.exit_code == 1
    assert "archived" in result.output


def test_list_transactions(cli_runner, temp_db, posted):
    """Test listing transactions."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "list"])

    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "Printer paper" in result.output
    assert "125.99" in result.output


def test_list_transactions_filters(cli_runner, temp_db, posted):
    """Test date, account and reconciliation filters."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "list", "--start-date", "2024-02-01"],
    )
    assert result.exit_code == 0
    assert "No transactions found." in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--account", "Sales"]
    )
    assert "No transactions found." in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--account", "Office", "--unreconciled"]
    )
    assert "Printer paper" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "list", "--reconciled"])
    assert "No transactions found." in result.output


def test_list_transactions_two_periods(cli_runner, temp_db):
    """Test that only one period flag is accepted."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--this-month", "--last-month"]
    )

    assert result.exit_code == 1
    assert "Only one period option" in result.output


def test_show_transaction(cli_runner, temp_db, posted):
    """Test showing a transaction with its entries."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "show", str(posted)])

    assert result.exit_code == 0
    assert "Printer paper" in result.output
    assert "CHK-1001" in result.output
    assert "Office" in result.output
    assert "-125.99" in result.output
    assert "Paper" in result.output


def test_show_missing_transaction(cli_runner, temp_db):
    """Test showing a transaction that does not exist."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "show", "42"])

    assert result.exit_code == 1
    assert "Transaction 42 not found" in result.output


def test_reverse_transaction(cli_runner, temp_db, posted, sample_accounts):
    """Test that reversing restores the balances."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "reverse", str(posted), "--date", "2024-01-20"]
    )

    assert result.exit_code == 0
    assert f"Reversed transaction {posted}" in result.output
    assert temp_db.get_account(sample_accounts["office"]).balance == Decimal("0")
    assert temp_db.get_account(sample_accounts["checking"]).balance == Decimal("0")

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "reverse", str(posted)])
    assert result.exit_code == 1
    assert "already reversed" in result.output


def test_reconcile_and_undo(cli_runner, temp_db, posted):
    """Test setting and clearing the reconciled flag."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "reconcile", str(posted)])
    assert result.exit_code == 0
    assert "marked reconciled" in result.output
    assert temp_db.get_transaction(posted).is_reconciled

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "reconcile", str(posted), "--undo"]
    )
    assert result.exit_code == 0
    assert not temp_db.get_transaction(posted).is_reconciled


def test_delete_transaction(cli_runner, temp_db, posted, sample_accounts):
    """Test deleting reverts balances."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", str(posted), "--yes"]
    )

    assert result.exit_code == 0
    assert temp_db.get_transaction(posted) is None
    assert temp_db.get_account(sample_accounts["office"]).balance == Decimal("0")


def test_delete_transaction_cancelled(cli_runner, temp_db, posted):
    """Test that answering no keeps the transaction."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", str(posted)], input="n\n"
    )

    assert result.exit_code == 0
    assert "Deletion cancelled." in result.output
    assert temp_db.get_transaction(posted) is not None


def test_delete_reconciled_transaction(cli_runner, temp_db, ledger_service, posted):
    """Test that reconciled transactions cannot be deleted."""
    ledger_service.reconcile_transaction(posted)

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", str(posted), "--yes"]
    )

    assert result.exit_code == 1
    assert "reconciled" in result.output
    assert "Post a reversal instead" in result.output
    assert temp_db.get_transaction(posted) is not None


def test_attach_and_detach(cli_runner, temp_db, posted):
    """Test linking and unlinking a receipt."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "attach",
            str(posted),
            "--name",
            "receipt.pdf",
            "--url",
            "file:///receipts/receipt.pdf",
            "--type",
            "application/pdf",
            "--size",
            "2048",
        ],
    )
    assert result.exit_code == 0
    attachments = temp_db.get_transaction(posted).attachments
    assert [a.file_name for a in attachments] == ["receipt.pdf"]

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "show", str(posted)])
    assert "receipt.pdf" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "detach", str(attachments[0].id)]
    )
    assert result.exit_code == 0
    assert temp_db.get_transaction(posted).attachments == ()

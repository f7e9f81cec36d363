"""Ledger transaction commands."""

import click
from finstream.cli.date_filters import collect_period_flags, period_options, resolve_cli_date_range
from finstream.cli.entry_parsing import parse_entry
from finstream.cli.error_handling import handle_domain_error, resolve_account_or_exit
from finstream.domain.account import AccountService
from finstream.domain.ledger import LedgerService
from finstream.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Post and manage ledger transactions."""
    pass


def _parse_date_or_exit(ctx, value: str, label: str = "date"):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@transaction_group.command("post")
@click.option("--date", "txn_date", default="today", show_default=True, help="Transaction date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--description", required=True, help="Transaction description")
@click.option("--reference", help="Reference (check number, invoice number)")
@click.option(
    "--entry",
    "entries",
    multiple=True,
    required=True,
    help="Entry as ACCOUNT=AMOUNT[:MEMO]; positive debits, negative credits. Repeat for each entry.",
)
@click.pass_context
def post_transaction(ctx, txn_date: str, description: str, reference: str | None, entries: tuple[str, ...]):
    """Post a balanced transaction.

    Entries must sum to exactly zero.

    Examples:
        finstream transaction post --description "Printer paper" \\
            --entry "Office Supplies=125.99" --entry "Checking=-125.99"
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    ledger_service = LedgerService(db)

    parsed_date = _parse_date_or_exit(ctx, txn_date)
    parsed_entries = [parse_entry(ctx, account_service, text) for text in entries]

    try:
        transaction_id = ledger_service.post_transaction(
            date=parsed_date,
            description=description,
            entries=parsed_entries,
            reference=reference,
        )
        click.echo(f"Posted transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.option("--account", help="Account name or ID")
@click.option("--reconciled/--unreconciled", default=None, help="Filter by reconciliation status")
@click.pass_context
def list_transactions(
    ctx, start_date: str | None, end_date: str | None, account: str | None, reconciled: bool | None, **kwargs
):
    """List transactions with optional filters.

    Account can be specified by name or ID.
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    ledger_service = LedgerService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(kwargs),
    )

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    transactions = ledger_service.list_transactions(
        start_date=start, end_date=end, account_id=account_id, reconciled=reconciled
    )

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 90)
    for txn in transactions:
        total = sum(e.amount for e in txn.entries if e.amount > 0)
        flags = " [R]" if txn.is_reconciled else ""
        if txn.reversal_of_id is not None:
            flags += f" [reverses #{txn.reversal_of_id}]"
        click.echo(f"ID: {txn.id:4d} | {txn.date} | {txn.description[:40]:40s} | {total:>12,.2f}{flags}")


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction with its entries."""
    db = ctx.obj["db"]
    account_service = AccountService(db)
    ledger_service = LedgerService(db)

    try:
        txn = ledger_service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(include_archived=True)}

    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Description: {txn.description}")
    if txn.reference:
        click.echo(f"  Reference: {txn.reference}")
    click.echo(f"  Reconciled: {'yes' if txn.is_reconciled else 'no'}")
    click.echo("  Entries:")
    for entry in txn.entries:
        memo = f"  {entry.memo}" if entry.memo else ""
        click.echo(f"    {accounts.get(entry.account_id, 'Unknown'):24s} {entry.amount:>12,.2f}{memo}")
    if txn.attachments:
        click.echo("  Attachments:")
        for attachment in txn.attachments:
            click.echo(f"    [{attachment.id}] {attachment.file_name} ({attachment.file_url})")


@transaction_group.command("reverse")
@click.argument("transaction_id", type=int)
@click.option("--date", "reversal_date", default="today", show_default=True, help="Date of the reversing transaction")
@click.pass_context
def reverse_transaction(ctx, transaction_id: int, reversal_date: str):
    """Post a transaction that cancels out another one."""
    db = ctx.obj["db"]
    ledger_service = LedgerService(db)
    parsed_date = _parse_date_or_exit(ctx, reversal_date)

    try:
        reversal_id = ledger_service.reverse_transaction(transaction_id, parsed_date)
        click.echo(f"Reversed transaction {transaction_id} with transaction {reversal_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("reconcile")
@click.argument("transaction_id", type=int)
@click.option("--undo", is_flag=True, help="Clear the reconciled flag instead")
@click.pass_context
def reconcile_transaction(ctx, transaction_id: int, undo: bool):
    """Mark a transaction as reconciled."""
    db = ctx.obj["db"]
    ledger_service = LedgerService(db)

    try:
        ledger_service.reconcile_transaction(transaction_id, reconciled=not undo)
        state = "unreconciled" if undo else "reconciled"
        click.echo(f"Transaction {transaction_id} marked {state}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool):
    """Delete a transaction and undo its effect on balances.

    Reconciled, matched or reversed transactions cannot be deleted; post a
    reversal instead.
    """
    db = ctx.obj["db"]
    ledger_service = LedgerService(db)

    try:
        txn = ledger_service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Delete transaction {txn.id} '{txn.description}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger_service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("attach")
@click.argument("transaction_id", type=int)
@click.option("--name", "file_name", required=True, help="File name")
@click.option("--url", "file_url", required=True, help="Where the file is stored")
@click.option("--type", "file_type", default="application/octet-stream", show_default=True, help="MIME type")
@click.option("--size", "file_size", type=int, default=0, help="File size in bytes")
@click.pass_context
def attach_file(ctx, transaction_id: int, file_name: str, file_url: str, file_type: str, file_size: int):
    """Link a file (receipt, contract) to a transaction."""
    db = ctx.obj["db"]
    ledger_service = LedgerService(db)

    try:
        attachment_id = ledger_service.add_attachment(transaction_id, file_name, file_url, file_type, file_size)
        click.echo(f"Added attachment {attachment_id} to transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("detach")
@click.argument("attachment_id", type=int)
@click.pass_context
def detach_file(ctx, attachment_id: int):
    """Remove an attachment link."""
    db = ctx.obj["db"]
    ledger_service = LedgerService(db)

    try:
        ledger_service.remove_attachment(attachment_id)
        click.echo(f"Removed attachment {attachment_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")

"""Bank feed and reconciliation commands."""

import json
from decimal import Decimal

import click
from finstream.cli.error_handling import handle_domain_error, resolve_account_or_exit
from finstream.domain.account import AccountService
from finstream.domain.entities import BankTransactionData
from finstream.domain.reconciliation import ReconciliationService
from finstream.utils.amount_parser import parse_amount
from finstream.utils.date_parser import parse_date


@click.group()
def bank_group():
    """Link bank accounts, sync feeds and reconcile."""
    pass


@bank_group.command("link")
@click.argument("account", metavar="ACCOUNT")
@click.option("--institution", required=True, help="Bank or institution name")
@click.option("--name", "account_name", required=True, help="Account name at the bank")
@click.option("--type", "account_type", default="checking", show_default=True, help="Bank account type")
@click.option("--number", "account_number", required=True, help="Account number (only the last 4 digits are kept)")
@click.option("--routing", "routing_number", help="Routing number")
@click.option("--balance", default="0", show_default=True, help="Current bank balance")
@click.pass_context
def link_bank_account(
    ctx,
    account: str,
    institution: str,
    account_name: str,
    account_type: str,
    account_number: str,
    routing_number: str | None,
    balance: str,
):
    """Link a bank account to an internal account.

    ACCOUNT is the internal account name or ID the bank feed posts against.

    Examples:
        finstream bank link "Checking Account" --institution "First Bank" --name "Business Checking" --number 123456789
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = ReconciliationService(db)
    account_id = resolve_account_or_exit(ctx, account_service, account)

    try:
        bank_account_id = service.link_bank_account(
            account_id=account_id,
            institution_name=institution,
            account_name=account_name,
            account_type=account_type,
            account_number=account_number,
            routing_number=routing_number,
            balance=parse_amount(balance),
        )
        click.echo(f"Linked bank account {bank_account_id} to account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bank_group.command("list")
@click.pass_context
def list_bank_accounts(ctx):
    """List linked bank accounts."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    bank_accounts = service.list_bank_accounts()
    if not bank_accounts:
        click.echo("No bank accounts found.")
        return

    click.echo("\nBank accounts:")
    click.echo("-" * 90)
    for ba in bank_accounts:
        click.echo(
            f"ID: {ba.id:3d} | {ba.institution_name[:20]:20s} | {ba.account_name[:20]:20s} | ****{ba.account_number} | "
            f"{ba.balance:>12,.2f} | account {ba.account_id}"
        )


@bank_group.command("unlink")
@click.argument("bank_account_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def unlink_bank_account(ctx, bank_account_id: int, yes: bool):
    """Delete a bank account and its bank transactions. The ledger is untouched."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    if not yes and not click.confirm(f"Delete bank account {bank_account_id} and its bank transactions?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_bank_account(bank_account_id)
        click.echo(f"Deleted bank account {bank_account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def _record_from_json(raw: dict) -> BankTransactionData:
    """Build a sync record from one JSON object of a delta file."""
    if not isinstance(raw, dict):
        raise ValueError(f"Bank transaction record must be an object, got {raw!r}")
    provider_id = raw.get("provider_transaction_id", raw.get("transaction_id"))
    if provider_id is None:
        raise ValueError(f"Bank transaction record has no transaction_id: {raw!r}")
    amount = raw.get("amount")
    if amount is None:
        raise ValueError(f"Bank transaction {provider_id} has no amount")
    return BankTransactionData(
        provider_transaction_id=str(provider_id),
        date=parse_date(str(raw.get("date", ""))),
        description=raw.get("description", raw.get("name", "")) or "",
        amount=amount if isinstance(amount, Decimal) else parse_amount(str(amount)),
        category=raw.get("category"),
        pending=bool(raw.get("pending", False)),
    )


@bank_group.command("sync")
@click.argument("bank_account_id", type=int)
@click.argument("delta_file", type=click.File("r"))
@click.pass_context
def sync_bank_account(ctx, bank_account_id: int, delta_file):
    """Apply a bank feed delta from a JSON file.

    The file holds {"added": [...], "modified": [...], "removed": [...]} and
    optionally "balance". Each record has transaction_id, date, description
    (or name), amount (positive for money in), and optional category and
    pending. Applying the same file twice is harmless.
    """
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        # Decimal keeps amounts exact
        delta = json.load(delta_file, parse_float=Decimal)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON in {delta_file.name}: {e}", err=True)
        ctx.exit(1)
    if not isinstance(delta, dict):
        click.echo("Error: Delta file must contain a JSON object", err=True)
        ctx.exit(1)

    try:
        added = [_record_from_json(raw) for raw in delta.get("added", [])]
        modified = [_record_from_json(raw) for raw in delta.get("modified", [])]
        removed = [str(pid) for pid in delta.get("removed", [])]
        balance = delta.get("balance")
        result = service.apply_sync_delta(
            bank_account_id,
            added=added,
            modified=modified,
            removed=removed,
            balance=None if balance is None else parse_amount(str(balance)),
        )
        click.echo(f"Synced: {result.added} added, {result.modified} modified, {result.removed} removed")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bank_group.command("transactions")
@click.argument("bank_account_id", type=int)
@click.option("--matched/--unmatched", default=None, help="Filter by match status")
@click.pass_context
def list_bank_transactions(ctx, bank_account_id: int, matched: bool | None):
    """List bank transactions of a bank account."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        transactions = service.list_bank_transactions(bank_account_id, matched=matched)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No bank transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} bank transaction(s):")
    click.echo("-" * 90)
    for bt in transactions:
        status = f"matched #{bt.transaction_id}" if bt.is_matched else "unmatched"
        if bt.pending:
            status += ", pending"
        click.echo(f"ID: {bt.id:4d} | {bt.date} | {bt.description[:36]:36s} | {bt.amount:>12,.2f} | {status}")


@bank_group.command("match")
@click.argument("bank_transaction_id", type=int)
@click.argument("transaction_id", type=int)
@click.pass_context
def match_transaction(ctx, bank_transaction_id: int, transaction_id: int):
    """Match a bank transaction to a ledger transaction."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        service.match_transaction(bank_transaction_id, transaction_id)
        click.echo(f"Matched bank transaction {bank_transaction_id} to transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bank_group.command("unmatch")
@click.argument("bank_transaction_id", type=int)
@click.pass_context
def unmatch_transaction(ctx, bank_transaction_id: int):
    """Clear the match of a bank transaction."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        service.unmatch_transaction(bank_transaction_id)
        click.echo(f"Unmatched bank transaction {bank_transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bank_group.command("summary")
@click.argument("bank_account_id", type=int)
@click.pass_context
def matching_summary(ctx, bank_account_id: int):
    """Show how many bank transactions are matched."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        summary = service.matching_summary(bank_account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Total: {summary.total}")
    click.echo(f"Matched: {summary.matched}")
    click.echo(f"Unmatched: {summary.unmatched}")
    click.echo(f"Pending: {summary.pending}")


@bank_group.command("suggest")
@click.argument("bank_transaction_id", type=int)
@click.option("--window", "window_days", type=int, default=3, show_default=True, help="Days either side of the bank date")
@click.pass_context
def suggest_matches(ctx, bank_transaction_id: int, window_days: int):
    """Suggest ledger transactions that could match a bank transaction."""
    db = ctx.obj["db"]
    service = ReconciliationService(db)

    try:
        suggestions = service.suggest_matches(bank_transaction_id, window_days=window_days)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not suggestions:
        click.echo("No matching transactions found.")
        return

    for txn in suggestions:
        click.echo(f"ID: {txn.id:4d} | {txn.date} | {txn.description}")


@bank_group.command("create-transaction")
@click.argument("bank_transaction_id", type=int)
@click.option("--offset", "offset_account", required=True, help="Account name or ID for the other side")
@click.option("--description", help="Description (defaults to the bank description)")
@click.pass_context
def create_transaction(ctx, bank_transaction_id: int, offset_account: str, description: str | None):
    """Post a ledger transaction for a bank transaction and match it.

    Examples:
        finstream bank create-transaction 12 --offset "Office Supplies"
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = ReconciliationService(db)
    offset_account_id = resolve_account_or_exit(ctx, account_service, offset_account)

    try:
        transaction_id = service.create_transaction_from_bank_transaction(
            bank_transaction_id, offset_account_id, description=description
        )
        click.echo(f"Posted transaction {transaction_id} and matched bank transaction {bank_transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")

"""Account management commands."""

import click
from finstream.cli.date_filters import collect_period_flags, period_options, resolve_cli_date_range
from finstream.cli.error_handling import handle_domain_error, resolve_account_or_exit
from finstream.domain.account import AccountService
from finstream.domain.entities import AccountSubtype, AccountType
from finstream.domain.ledger import LedgerService


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    required=True,
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    help="Account type",
)
@click.option(
    "--subtype",
    required=True,
    type=click.Choice([s.value for s in AccountSubtype], case_sensitive=False),
    help="Account subtype (must belong to the type, see 'account types')",
)
@click.option("--number", help="Account number")
@click.option("--description", help="Account description")
@click.pass_context
def create_account(ctx, name: str, account_type: str, subtype: str, number: str | None, description: str | None):
    """Create a new account.

    Examples:
        finstream account create "Checking" --type ASSET --subtype BANK
        finstream account create "Office Supplies" --type EXPENSE --subtype OPERATING_EXPENSE --number 6100
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            name=name,
            account_type=account_type,
            subtype=subtype,
            number=number,
            description=description,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    help="Only list accounts of this type",
)
@click.option("--all", "include_archived", is_flag=True, help="Include archived accounts")
@click.pass_context
def list_accounts(ctx, account_type: str | None, include_archived: bool):
    """List accounts with their balances."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(account_type=account_type, include_archived=include_archived)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        flags = " [archived]" if acc.is_archived else ""
        if not acc.is_active:
            flags += " [inactive]"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:24s} | {acc.type.value:9s} | {acc.subtype.value:19s} | "
            f"{acc.balance:>12,.2f}{flags}"
        )


@account_group.command("types")
def list_types():
    """Show account types and their valid subtypes."""
    for account_type in AccountService.account_types():
        subtypes = ", ".join(s.value for s in AccountService.subtypes_for(account_type))
        click.echo(f"{account_type.value}: {subtypes}")


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_balance(ctx, account: str):
    """Show the balance of an account.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        acc = service.require_account(account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{acc.name}: {acc.balance:,.2f}")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--number", help="New account number")
@click.option("--description", help="New description")
@click.option("--active/--inactive", default=None, help="Mark the account active or inactive")
@click.pass_context
def update_account(
    ctx, account: str, name: str | None, number: str | None, description: str | None, active: bool | None
) -> None:
    """Update account details.

    ACCOUNT can be an account name or ID. Type and subtype cannot be changed.

    Examples:
        finstream account update "Checking" --name "Main Checking"
        finstream account update 3 --inactive
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    if name is None and number is None and description is None and active is None:
        click.echo("Error: Nothing to update", err=True)
        ctx.exit(1)

    try:
        if name is not None or number is not None or description is not None:
            service.update_account(account_id, name=name, number=number, description=description)
        if active is not None:
            service.set_active(account_id, active)
        click.echo(f"Updated account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("archive")
@click.argument("account", metavar="ACCOUNT")
@click.option(
    "--require-zero-balance",
    is_flag=True,
    help="Refuse to archive if the account balance is not zero",
)
@click.pass_context
def archive_account(ctx, account: str, require_zero_balance: bool) -> None:
    """Archive an account so it receives no new entries.

    ACCOUNT can be an account name or ID. History and balance are kept and
    the account can be restored later.
    """
    db = ctx.obj["db"]
    service = AccountService(db, require_zero_balance=require_zero_balance)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.archive_account(account_id)
        click.echo(f"Archived account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("restore")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def restore_account(ctx, account: str) -> None:
    """Restore an archived account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.restore_account(account_id)
        click.echo(f"Restored account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("init")
@click.option("--include-optional", is_flag=True, help="Also create optional accounts such as Interest Income")
@click.pass_context
def init_accounts(ctx, include_optional: bool) -> None:
    """Create the starter chart of accounts.

    Accounts that already exist are skipped.
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        created = service.create_default_chart(include_optional=include_optional)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {len(created)} account(s)")


@account_group.command("statement")
@click.argument("account", metavar="ACCOUNT")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def account_statement(ctx, account: str, start_date: str | None, end_date: str | None, **kwargs) -> None:
    """Show the entries of an account with running balances.

    ACCOUNT can be an account name or ID.

    Examples:
        finstream account statement "Checking" --this-month
        finstream account statement 1 --start-date 2024-01-01 --end-date 2024-03-31
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    ledger_service = LedgerService(db)
    account_id = resolve_account_or_exit(ctx, account_service, account)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(kwargs),
    )

    try:
        statement = ledger_service.get_account_statement(account_id, start_date=start, end_date=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nStatement for {statement.account.name}")
    click.echo("-" * 90)
    click.echo(f"{'Starting balance':>70s} {statement.starting_balance:>12,.2f}")
    for line in statement.lines:
        description = line.description if not line.memo else f"{line.description} ({line.memo})"
        click.echo(
            f"{line.date} | #{line.transaction_id:<5d} | {description[:40]:40s} | "
            f"{line.amount:>12,.2f} {line.running_balance:>12,.2f}"
        )
    click.echo(f"{'Ending balance':>70s} {statement.ending_balance:>12,.2f}")


@account_group.command("rebuild-balance")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def rebuild_balance(ctx, account: str) -> None:
    """Recompute an account's balance from its posted entries."""
    db = ctx.obj["db"]
    account_service = AccountService(db)
    ledger_service = LedgerService(db)
    account_id = resolve_account_or_exit(ctx, account_service, account)

    try:
        balance = ledger_service.rebuild_balance(account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Balance of account {account_id}: {balance:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")

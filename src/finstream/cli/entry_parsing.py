"""CLI helpers for parsing journal entries and invoice items from options."""

import click

from finstream.cli.error_handling import resolve_account_or_exit
from finstream.domain.account import AccountService
from finstream.domain.entities import EntryInput, InvoiceItemInput
from finstream.utils.amount_parser import parse_amount


def parse_entry(ctx: click.Context, account_service: AccountService, text: str) -> EntryInput:
    """Parse an entry written as ACCOUNT=AMOUNT or ACCOUNT=AMOUNT:MEMO.

    ACCOUNT is an account name or ID. Positive amounts are debits, negative
    amounts credits.
    """
    account, sep, rest = text.rpartition("=")
    if not sep or not account.strip() or not rest.strip():
        click.echo(f"Error: Invalid entry '{text}'. Expected ACCOUNT=AMOUNT[:MEMO]", err=True)
        ctx.exit(1)

    amount_text, _, memo = rest.partition(":")
    try:
        amount = parse_amount(amount_text)
    except ValueError as e:
        click.echo(f"Error: Invalid amount in entry '{text}': {e}", err=True)
        ctx.exit(1)

    account_id = resolve_account_or_exit(ctx, account_service, account.strip())
    return EntryInput(account_id=account_id, amount=amount, memo=memo.strip() or None)


def parse_item(ctx: click.Context, text: str) -> InvoiceItemInput:
    """Parse an invoice item written as DESCRIPTION|QUANTITY|PRICE[|notax]."""
    parts = [part.strip() for part in text.split("|")]
    if len(parts) not in (3, 4) or (len(parts) == 4 and parts[3].lower() != "notax"):
        click.echo(f"Error: Invalid item '{text}'. Expected DESCRIPTION|QUANTITY|PRICE[|notax]", err=True)
        ctx.exit(1)

    try:
        quantity = parse_amount(parts[1])
        price = parse_amount(parts[2])
    except ValueError as e:
        click.echo(f"Error: Invalid number in item '{text}': {e}", err=True)
        ctx.exit(1)

    return InvoiceItemInput(
        description=parts[0],
        quantity=quantity,
        price=price,
        taxable=len(parts) == 3,
    )

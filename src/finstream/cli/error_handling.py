"""CLI error handling helpers."""

import click

from finstream.domain.account import AccountService
from finstream.domain.errors import DomainError
from finstream.utils.account_resolver import resolve_account


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    message = f"Error: {error}"
    if isinstance(error, DomainError) and error.retryable:
        message += " (retry the command)"
    click.echo(message, err=True)
    ctx.exit(1)


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str | int) -> int:
    """Resolve an account name or ID for a command, exiting with an error if unknown."""
    try:
        return resolve_account(account_service, account)
    except ValueError as e:
        handle_domain_error(ctx, e)

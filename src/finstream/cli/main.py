"""Main CLI entry point."""

import click
from finstream.database.factories import create_database
from finstream.logging_config import configure_logging

# Import and register all commands at module level
from finstream.cli.commands import (
    account,
    transaction,
    invoice,
    bank,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides FINSTREAM_DB_PATH environment variable)",
    envvar="FINSTREAM_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL, takes precedence over --db-path (FINSTREAM_DB_URL)",
    envvar="FINSTREAM_DB_URL",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for messages written to stderr (FINSTREAM_LOG_LEVEL)",
    envvar="FINSTREAM_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, db_url: str | None, log_level: str):
    """Finstream - Small-business bookkeeping.

    Keep a double-entry ledger over a chart of accounts, issue invoices and
    track their payments, and reconcile bank feeds against the ledger.
    """
    ctx.ensure_object(dict)
    configure_logging(level=log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=db_url, database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
invoice.register_commands(cli)
bank.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

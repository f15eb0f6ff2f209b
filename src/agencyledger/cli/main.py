"""Main CLI entry point."""

import click
from agencyledger.config import DB_PATH_ENV, LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL
from agencyledger.database.factories import create_sqlite_database
from agencyledger.logging_config import setup_logging

# Import and register all commands at module level
from agencyledger.cli.commands import (
    account,
    transaction,
    sale,
    supplier,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=DEFAULT_LOG_LEVEL,
    show_default=True,
    help="Log level of the JSON log written to stderr",
    envvar=LOG_LEVEL_ENV,
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Agencyledger - Bank ledger and installment payments for travel agencies.

    Track bank balances, record sales with installment plans, register client
    payments and keep supplier debts under control.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
sale.register_commands(cli)
supplier.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

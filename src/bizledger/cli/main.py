"""Main CLI entry point."""

import logging

import click
from bizledger.cli.error_handling import echo_notifications, handle_domain_error
from bizledger.database.factories import create_sqlite_store
from bizledger.domain.errors import PersistenceError
from bizledger.domain.session import DEFAULT_LATENCY, Session

# Import and register all commands at module level
from bizledger.cli.commands import (
    add,
    analytics,
    auth,
    plan,
    report,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to data file (overrides BIZLEDGER_DB_PATH environment variable)",
    envvar="BIZLEDGER_DB_PATH",
)
@click.option(
    "--latency",
    type=float,
    default=DEFAULT_LATENCY,
    show_default=True,
    help="Seconds of simulated API and payment latency",
    envvar="BIZLEDGER_LATENCY",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging verbosity",
    envvar="BIZLEDGER_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, latency: float, log_level: str):
    """Bizledger - Small-business finance tracker.

    Record income and expenses, review monthly analytics and export period
    reports. Available features depend on your subscription plan.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Open the store only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            store = create_sqlite_store(database_path=db_path)
        except PersistenceError as e:
            handle_domain_error(ctx, e)
        store.connect()
        store.initialize_schema()
        session = Session(store, latency=latency)
        ctx.obj["store"] = store
        ctx.obj["session"] = session

        def close() -> None:
            echo_notifications(session)
            store.disconnect()

        ctx.call_on_close(close)


# Register all commands
auth.register_commands(cli)
plan.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
analytics.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

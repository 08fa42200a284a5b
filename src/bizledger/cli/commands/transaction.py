"""Transaction management commands."""

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.entities import ReportPeriod, TransactionKind
from bizledger.domain.errors import DomainError
from bizledger.domain.periods import classify
from bizledger.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option(
    "--period",
    type=click.Choice([p.value for p in ReportPeriod], case_sensitive=False),
    help="Only show transactions in this period",
)
@click.option("--date", "reference", help="Reference date for --period (defaults to today)")
@click.pass_context
def list_transactions(ctx, period: str | None, reference: str | None):
    """List transactions, newest first."""
    session = ctx.obj["session"]
    try:
        session.require_access()
    except DomainError as e:
        handle_domain_error(ctx, e)

    transactions = list(session.transactions)
    if period is not None:
        try:
            reference_date = parse_date(reference, today=session.today()) if reference else session.today()
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)
        transactions = classify(transactions, ReportPeriod(period.lower()), reference_date)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo("\nTransactions:")
    click.echo("-" * 90)
    for txn in transactions:
        sign = "+" if txn.kind == TransactionKind.INCOME else "-"
        click.echo(
            f"{txn.id:>13s} | {txn.date} | {txn.kind.value:7s} | {txn.category:22s} | "
            f"{sign}${txn.amount:>10,.2f} | {txn.description}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool):
    """Delete a transaction."""
    session = ctx.obj["session"]

    if not yes:
        click.confirm(f"Delete transaction {transaction_id}?", abort=True)

    try:
        session.delete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")

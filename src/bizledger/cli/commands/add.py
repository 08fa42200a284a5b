"""Add transaction command."""

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.entities import DEFAULT_CATEGORIES, TransactionKind
from bizledger.domain.errors import DomainError
from bizledger.utils.amount_parser import parse_amount
from bizledger.utils.date_parser import parse_date


@click.command("add")
@click.option("--amount", required=True, help="Transaction amount (e.g., 123.45)")
@click.option(
    "--category",
    required=True,
    help=f"Category (e.g., {', '.join(DEFAULT_CATEGORIES[:4])}, ...)",
)
@click.option(
    "--type",
    "kind",
    type=click.Choice([k.value for k in TransactionKind], case_sensitive=False),
    default=TransactionKind.EXPENSE.value,
    show_default=True,
    help="Transaction type",
)
@click.option(
    "--date",
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday'; defaults to today)",
)
@click.option("--description", default="", help="Transaction description")
@click.pass_context
def add_transaction(
    ctx,
    amount: str,
    category: str,
    kind: str,
    date: str | None,
    description: str,
):
    """Record an income or expense.

    Examples:
        bizledger add --amount 49.99 --category Software --description "Editor license"
        bizledger add --amount 1200 --category Consulting --type income --date 2024-01-15
    """
    session = ctx.obj["session"]

    # Parse amount
    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    # Parse date
    txn_date = None
    if date:
        try:
            txn_date = parse_date(date, today=session.today())
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        txn = session.add_transaction(
            amount=txn_amount,
            category=category,
            kind=TransactionKind(kind.lower()),
            txn_date=txn_date,
            description=description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    label = "Expense" if txn.kind == TransactionKind.EXPENSE else "Income"
    click.echo(f"{label} of ${txn.amount:,.2f} has been recorded (ID: {txn.id})")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Category: {txn.category}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")

    count, decision = session.transaction_usage()
    if decision.limit is not None:
        click.echo(f"{count}/{decision.limit} transactions used this month")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)

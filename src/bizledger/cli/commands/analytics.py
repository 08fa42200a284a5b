"""Analytics dashboard command."""

from decimal import Decimal

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.entities import Feature, MonthSummary
from bizledger.domain.entitlements import check_capability
from bizledger.domain.errors import DomainError
from bizledger.utils.date_parser import parse_date


def _signed_percent(value: Decimal) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"


def _display_month(title: str, month: MonthSummary) -> None:
    click.echo(f"\n{title} ({month.name})")
    click.echo(f"  {'Income':<16} ${month.income:>12,.2f}")
    click.echo(f"  {'Expenses':<16} ${month.expense:>12,.2f}")
    click.echo(f"  {'Net Profit':<16} ${month.profit:>12,.2f}")
    click.echo(f"  {'Profit Margin':<16} {month.profit_margin:>12.1f}%")
    click.echo(f"  {'Transactions':<16} {month.transaction_count:>13d}")


@click.command("analytics")
@click.option("--date", "reference", help="Any day of the month to analyse (defaults to today)")
@click.pass_context
def analytics(ctx, reference: str | None):
    """Show the financial analytics dashboard."""
    session = ctx.obj["session"]

    reference_date = None
    if reference:
        try:
            reference_date = parse_date(reference, today=session.today())
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        user = session.require_access()
        snapshot = session.analytics(reference_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{user.business_name or 'Your Business'} - Financial Analytics")
    click.echo("=" * 50)
    click.echo(f"Financial Health: {snapshot.health_label} (score {snapshot.health_score}/100)")

    _display_month("Current Month", snapshot.current_month)
    _display_month("Previous Month", snapshot.previous_month)

    click.echo("\nMonth-over-Month")
    click.echo(f"  {'Income Change':<16} {_signed_percent(snapshot.changes.income):>13s}")
    click.echo(f"  {'Expense Change':<16} {_signed_percent(snapshot.changes.expense):>13s}")
    click.echo(f"  {'Profit Change':<16} {_signed_percent(snapshot.changes.profit):>13s}")

    click.echo("\nAverages")
    click.echo(f"  {'Income':<16} ${snapshot.averages.income:>12,.2f}")
    click.echo(f"  {'Expense':<16} ${snapshot.averages.expense:>12,.2f}")

    click.echo(f"\nTop Expense Categories ({snapshot.current_month.name})")
    if not snapshot.top_categories:
        click.echo("  No expense data available for this month")
    for index, category in enumerate(snapshot.top_categories, start=1):
        click.echo(f"  {index}. {category.category:<24} ${category.amount:>12,.2f}")

    if not check_capability(user.subscription.tier, Feature.OPTIMIZATION_SUGGESTIONS).allowed:
        return

    try:
        suggestions = session.suggestions(reference_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nExpense Optimization Suggestions")
    if not suggestions:
        click.echo("  Add more transactions to receive optimization suggestions")
    for suggestion in suggestions:
        click.echo(f"  * {suggestion.title}: {suggestion.message}")


def register_commands(cli):
    """Register analytics command with main CLI."""
    cli.add_command(analytics)

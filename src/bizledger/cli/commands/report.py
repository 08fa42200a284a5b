"""Report commands."""

from pathlib import Path

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.entities import ExportFormat, ReportPeriod
from bizledger.domain.entitlements import available_periods
from bizledger.domain.errors import DomainError
from bizledger.domain.reports import export_filename
from bizledger.utils.date_parser import parse_date

PERIOD_CHOICE = click.Choice([p.value for p in ReportPeriod], case_sensitive=False)


def _reference_date(ctx, session, reference: str | None):
    if not reference:
        return session.today()
    try:
        return parse_date(reference, today=session.today())
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


@click.group()
def report_group():
    """View and export period reports."""
    pass


@report_group.command("show")
@click.option("--period", type=PERIOD_CHOICE, default="monthly", show_default=True)
@click.option("--date", "reference", help="Reference date (defaults to today)")
@click.pass_context
def show_report(ctx, period: str, reference: str | None):
    """Show a financial summary for a period."""
    session = ctx.obj["session"]
    reference_date = _reference_date(ctx, session, reference)

    try:
        report = session.report(ReportPeriod(period.lower()), reference_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\n{report.label}")
    click.echo("=" * len(report.label))
    click.echo(f"Total Income:   ${report.totals.income:>12,.2f}")
    click.echo(f"Total Expenses: ${report.totals.expense:>12,.2f}")
    click.echo(f"Net Profit:     ${report.totals.net:>12,.2f}")

    if not report.transactions:
        click.echo(f"\nNo transactions found for the selected {period} period.")
        return

    click.echo("\nCategory Breakdown")
    for entry in report.category_breakdown:
        click.echo(
            f"  {entry.kind.value:7s} {entry.category:<24} ${entry.amount:>12,.2f} "
            f"({entry.count} transactions)"
        )

    click.echo("\nTransactions")
    for txn in report.transactions:
        click.echo(
            f"  {txn.date} | {txn.kind.value:7s} | {txn.category:<22} | "
            f"${txn.amount:>10,.2f} | {txn.description}"
        )


@report_group.command("periods")
@click.pass_context
def list_periods(ctx):
    """List report periods available on the current plan."""
    session = ctx.obj["session"]
    try:
        user = session.require_access()
    except DomainError as e:
        handle_domain_error(ctx, e)
    for period in available_periods(user.subscription.tier):
        click.echo(period.value)


@report_group.command("export")
@click.option("--period", type=PERIOD_CHOICE, default="monthly", show_default=True)
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in ExportFormat], case_sensitive=False),
    default=ExportFormat.CSV.value,
    show_default=True,
    help="csv (Standard plan or higher) or text (Premium)",
)
@click.option("--date", "reference", help="Reference date (defaults to today)")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (defaults to <period>-report-<today>.<ext>)",
)
@click.pass_context
def export(ctx, period: str, fmt: str, reference: str | None, output: Path | None):
    """Export a report as CSV or plain text.

    Examples:
        bizledger report export --period monthly --format csv
        bizledger report export --period yearly --format text --output year.txt
    """
    session = ctx.obj["session"]
    reference_date = _reference_date(ctx, session, reference)
    report_period = ReportPeriod(period.lower())
    export_format = ExportFormat(fmt.lower())

    # Nothing is written unless every entitlement check passed
    try:
        content = session.export_report(report_period, export_format, reference_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if output is None:
        output = Path(export_filename(report_period, export_format, session.today()))
    output.write_text(content, encoding="utf-8")
    click.echo(f"Report Downloaded: {period} report saved to {output}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")

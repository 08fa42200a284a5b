"""CLI error handling helpers."""

import click

from bizledger.domain.errors import (
    DomainError,
    EntitlementDeniedError,
    QuotaExceededError,
    SubscriptionExpiredError,
    SubscriptionRequiredError,
)

PLANS_HINT = "Run 'bizledger plan list' to see available plans."


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, (SubscriptionRequiredError, SubscriptionExpiredError)):
        click.echo("The dashboard is locked until a plan is active.", err=True)
        click.echo(PLANS_HINT, err=True)
    elif isinstance(error, EntitlementDeniedError):
        click.echo(
            f"Run 'bizledger plan activate {error.required_tier}' to upgrade.", err=True
        )
    elif isinstance(error, QuotaExceededError):
        click.echo(PLANS_HINT, err=True)
    ctx.exit(1)


def echo_notifications(session) -> None:
    """Print pending non-fatal notifications of a session."""
    for note in session.drain_notifications():
        click.echo(f"{note.title}: {note.message}", err=True)

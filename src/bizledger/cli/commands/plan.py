"""Subscription plan commands."""

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.entities import Tier
from bizledger.domain.entitlements import (
    FEATURE_LABELS,
    available_periods,
    entitlement_for,
)
from bizledger.domain.errors import DomainError
from bizledger.domain.subscription import PLAN_PRICES, is_expired

PLAN_NAMES = {
    Tier.TRIAL: "Free Trial",
    Tier.BASIC: "Basic",
    Tier.STANDARD: "Standard",
    Tier.PREMIUM: "Premium",
}


def _quota_text(tier: Tier) -> str:
    quota = entitlement_for(tier).monthly_transaction_quota
    return "unlimited" if quota is None else f"{quota}/month"


@click.group()
def plan_group():
    """View and activate subscription plans."""
    pass


@plan_group.command("list")
def list_plans():
    """List available plans."""
    click.echo("\nPlans:")
    click.echo("-" * 78)
    for tier, name in PLAN_NAMES.items():
        periods = ", ".join(p.value for p in available_periods(tier))
        features = ", ".join(
            FEATURE_LABELS[f] for f in sorted(entitlement_for(tier).features, key=lambda f: f.value)
        )
        click.echo(
            f"{tier.value:9s} | {name:11s} | ${PLAN_PRICES[tier]:>6s}/month | "
            f"{_quota_text(tier):>11s} transactions"
        )
        click.echo(f"{'':9s}   Reports: {periods}")
        if features:
            click.echo(f"{'':9s}   Features: {features}")
    click.echo("\nThe free trial lasts 30 days and includes all Standard features.")


@plan_group.command("activate")
@click.argument(
    "tier", type=click.Choice([t.value for t in PLAN_NAMES], case_sensitive=False)
)
@click.pass_context
def activate_plan(ctx, tier: str):
    """Activate a plan for the logged-in user.

    Examples:
        bizledger plan activate trial
        bizledger plan activate premium
    """
    session = ctx.obj["session"]
    selected = Tier(tier.lower())
    if selected != Tier.TRIAL:
        click.echo("Processing payment...")
    try:
        user = session.activate_plan(selected)
    except DomainError as e:
        handle_domain_error(ctx, e)

    expiry = user.subscription.expiry
    if selected == Tier.TRIAL:
        click.echo("Welcome to your 30-day free trial with Standard features.")
    else:
        click.echo(f"Welcome to the {PLAN_NAMES[selected]} plan.")
    if expiry is not None:
        click.echo(f"Valid until {expiry.date().isoformat()}")


@plan_group.command("status")
@click.pass_context
def plan_status(ctx):
    """Show the current plan, expiry and monthly usage."""
    session = ctx.obj["session"]
    try:
        user = session.require_user()
    except DomainError as e:
        handle_domain_error(ctx, e)

    subscription = user.subscription
    if subscription.tier == Tier.NONE:
        click.echo("No plan selected.")
        click.echo("Run 'bizledger plan list' to see available plans.")
        return

    click.echo(f"Plan: {PLAN_NAMES[subscription.tier]}")
    if subscription.expiry is not None:
        click.echo(f"Expires: {subscription.expiry.date().isoformat()}")
    if is_expired(subscription, session.clock()):
        click.echo(f"Status: expired. Renew with 'bizledger plan activate {subscription.tier.value}'")
        return

    status = session.trial_status()
    if status is not None:
        if status.expired:
            click.echo("Trial expired. Upgrade to continue using all features.")
        elif status.expiring_soon:
            click.echo(f"Trial: {status.days_left} days left - upgrade now to keep access")
        else:
            click.echo(f"Trial: {status.days_left} days left")

    count, decision = session.transaction_usage()
    if decision.limit is None:
        click.echo(f"Transactions this month: {count} (unlimited)")
    else:
        line = f"Transactions this month: {count}/{decision.limit}"
        if not decision.allowed:
            line += " - Limit reached!"
        click.echo(line)


def register_commands(cli):
    """Register plan commands with main CLI."""
    cli.add_command(plan_group, name="plan")

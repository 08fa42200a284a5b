"""Authentication commands."""

import click
from bizledger.cli.error_handling import handle_domain_error
from bizledger.domain.errors import DomainError


@click.group()
def auth_group():
    """Sign up, log in and log out."""
    pass


@auth_group.command("signup")
@click.option("--name", required=True, help="Your name")
@click.option("--email", required=True, help="Email address used to log in")
@click.option("--business", "business_name", default="", help="Business name")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (prompted if omitted)",
)
@click.pass_context
def signup(ctx, name: str, email: str, business_name: str, password: str):
    """Create an account and log in.

    Examples:
        bizledger auth signup --name "Ada" --email ada@example.com --business "Ada's Bakery"
    """
    session = ctx.obj["session"]
    click.echo("Creating account...")
    try:
        user = session.signup(
            name=name, email=email, password=password, business_name=business_name
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Welcome, {user.name}! Account created (ID: {user.id})")
    click.echo("Choose a plan to get started: bizledger plan list")


@auth_group.command("login")
@click.option("--email", required=True, help="Email address")
@click.option("--password", prompt=True, hide_input=True, help="Password (prompted if omitted)")
@click.pass_context
def login(ctx, email: str, password: str):
    """Log in with email and password."""
    session = ctx.obj["session"]
    click.echo("Signing in...")
    try:
        user = session.login(email=email, password=password)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Welcome back, {user.name}")


@auth_group.command("logout")
@click.pass_context
def logout(ctx):
    """Log out of the current session."""
    session = ctx.obj["session"]
    session.logout()
    click.echo("Logged out")


@auth_group.command("whoami")
@click.pass_context
def whoami(ctx):
    """Show the logged-in user."""
    session = ctx.obj["session"]
    user = session.user
    if user is None:
        click.echo("Not logged in.")
        return

    click.echo(f"{user.name} <{user.email}>")
    click.echo(f"Business: {user.business_name or 'Your Business'}")
    click.echo(f"Plan: {user.subscription.tier.value}")


def register_commands(cli):
    """Register auth commands with main CLI."""
    cli.add_command(auth_group, name="auth")

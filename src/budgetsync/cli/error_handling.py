"""CLI error handling helpers."""

import click

from budgetsync.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def format_amount(amount) -> str:
    """Format a signed currency amount for display."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"

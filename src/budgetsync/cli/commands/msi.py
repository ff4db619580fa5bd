"""Installment (MSI) commands."""

import click

from budgetsync.cli.error_handling import format_amount, handle_domain_error
from budgetsync.domain import installments
from budgetsync.domain.entities import InstallmentConfig
from budgetsync.domain.errors import NotFoundError, ValidationError

MONTH_CHOICES = [str(months) for months, _ in installments.MONTH_OPTIONS]


def _build_config(ctx, transaction_id: str, months: str, start: str, counter_category: str | None) -> InstallmentConfig:
    store = ctx.obj["store"]
    original = store.get_original_transaction(transaction_id)
    if original is None:
        handle_domain_error(ctx, NotFoundError(f"Transaction {transaction_id} not found"))
    return InstallmentConfig(
        original=original,
        months=int(months),
        start_date=start,
        counter_category_id=counter_category,
    )


def _show_plan(plan) -> None:
    click.echo(f"Total:              {format_amount(plan.total_amount)}")
    click.echo(f"Monthly payment:    {format_amount(plan.monthly_amount)}")
    click.echo(f"First payment:      {format_amount(-plan.first_payment)}")
    click.echo(f"Rounding adjustment: {format_amount(plan.rounding_adjustment)}")


def msi_options(func):
    func = click.option("--counter-category", help="Category for the counter-entry (defaults to the original)")(func)
    func = click.option("--start", required=True, help="First payment date")(func)
    func = click.option("--months", type=click.Choice(MONTH_CHOICES), required=True, help="Number of payments")(func)
    func = click.argument("transaction_id")(func)
    return func


@click.group()
def msi_group():
    """Split purchases into monthly installments."""
    pass


@msi_group.command("preview")
@msi_options
@click.pass_context
def preview(ctx, transaction_id: str, months: str, start: str, counter_category: str | None):
    """Show the installment plan for a purchase without recording it."""
    config = _build_config(ctx, transaction_id, months, start, counter_category)
    try:
        plan = installments.calculate(config)
    except ValidationError as e:
        for reason in e.reasons:
            click.echo(f"Error: {reason}", err=True)
        ctx.exit(1)
    _show_plan(plan)


@msi_group.command("apply")
@msi_options
@click.option("--expand", is_flag=True, help="Record one transaction per month instead of a schedule")
@click.pass_context
def apply(ctx, transaction_id: str, months: str, start: str, counter_category: str | None, expand: bool):
    """Record the counter-entry and payments for a purchase.

    Examples:
        budgetsync --edit msi apply 3f2a... --months 12 --start 2024-02-01
        budgetsync --edit msi apply 3f2a... --months 3 --start "next month" --expand
    """
    context = ctx.obj["context"]
    config = _build_config(ctx, transaction_id, months, start, counter_category)
    try:
        plan = installments.calculate(config)
        if expand:
            changes = [plan.counter_entry] + installments.generate_payments(config)
        else:
            changes = [plan.counter_entry, plan.schedule_entry]
        context.record_many(changes)
    except ValidationError as e:
        for reason in e.reasons:
            click.echo(f"Error: {reason}", err=True)
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)

    _show_plan(plan)
    click.echo(f"Recorded {len(changes)} change(s).")


def register_commands(cli):
    """Register MSI commands with main CLI."""
    cli.add_command(msi_group, name="msi")

"""Monthly budget commands."""

import click

from budgetsync.cli.commands.entity import record_or_exit, require_entity
from budgetsync.cli.error_handling import format_amount
from budgetsync.domain.entities import BudgetLinePayload, ChangeAction, EntityType, NewChange
from budgetsync.utils.amount_parser import parse_amount
from budgetsync.utils.date_parser import parse_month


def budget_line_id(category_id: str, month: str) -> str:
    """Stable id of the budget line for a category and month."""
    return f"mcb/{month}/{category_id}"


@click.group()
def budget_group():
    """Manage monthly budget amounts."""
    pass


@budget_group.command("set")
@click.argument("category_id")
@click.argument("month")
@click.argument("amount")
@click.pass_context
def set_budget(ctx, category_id: str, month: str, amount: str):
    """Set the amount budgeted for a category in a month.

    Examples:
        budgetsync --edit budget set 7c1e... 2024-03 450.00
        budgetsync --edit budget set 7c1e... "this month" 0
    """
    require_entity(ctx, EntityType.CATEGORY, category_id)
    try:
        month_key = parse_month(month)
        budgeted = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    line_id = budget_line_id(category_id, month_key)
    exists = ctx.obj["store"].entity_exists(EntityType.BUDGET_LINE, line_id)
    record_or_exit(
        ctx,
        NewChange(
            entity_type=EntityType.BUDGET_LINE,
            action=ChangeAction.UPDATE if exists else ChangeAction.CREATE,
            entity_id=line_id,
            entity_name=month_key,
            payload=BudgetLinePayload(category_id=category_id, month=month_key, budgeted=budgeted),
        ),
    )
    click.echo(f"Budgeted {format_amount(budgeted)} for {month_key} (pending)")


def register_commands(cli):
    """Register budget commands with main CLI."""
    cli.add_command(budget_group, name="budget")

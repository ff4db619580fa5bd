"""Account, category and payee commands.

Each command records a pending change; nothing is written to the budget
until `budgetsync sync`.
"""

import click

from budgetsync.cli.error_handling import handle_domain_error
from budgetsync.domain import errors
from budgetsync.domain.entities import (
    AccountPayload,
    CategoryPayload,
    ChangeAction,
    EntityType,
    NewChange,
    PayeePayload,
)
from budgetsync.domain.errors import NotFoundError, ValidationError


def require_entity(ctx: click.Context, entity_type: EntityType, entity_id: str) -> None:
    """Exit with an error unless the entity is stored or pending creation.

    Entities with a pending delete are refused too, since the ledger would
    ignore further edits to them.
    """
    store = ctx.obj["store"]
    pending = ctx.obj["context"].ledger.find(entity_type, entity_id)
    if pending is not None and pending.action == ChangeAction.DELETE:
        label = f"{entity_type.value.capitalize()} {entity_id}"
        handle_domain_error(ctx, ValidationError(errors.pending_delete(label)))
    if store.entity_exists(entity_type, entity_id):
        return
    if pending is not None and pending.action == ChangeAction.CREATE:
        return
    handle_domain_error(ctx, NotFoundError(f"{entity_type.value.capitalize()} {entity_id} not found"))


def record_or_exit(ctx: click.Context, change: NewChange) -> str:
    """Record a change through the context, exiting on domain errors.

    Partial updates keep the fields of an update already pending for the
    same entity.
    """
    context = ctx.obj["context"]
    try:
        return context.record(context.ledger.overlay_pending(change))
    except ValueError as e:
        handle_domain_error(ctx, e)


def _record_rename(ctx, entity_type: EntityType, payload_type, entity_id: str, new_name: str) -> None:
    require_entity(ctx, entity_type, entity_id)
    record_or_exit(
        ctx,
        NewChange(
            entity_type=entity_type,
            action=ChangeAction.UPDATE,
            entity_id=entity_id,
            entity_name=new_name,
            payload=payload_type(name=new_name),
        ),
    )
    click.echo(f"Renamed {entity_type.value} {entity_id} to '{new_name}' (pending)")


def _record_delete(ctx, entity_type: EntityType, entity_id: str) -> None:
    require_entity(ctx, entity_type, entity_id)
    record_or_exit(
        ctx,
        NewChange(entity_type=entity_type, action=ChangeAction.DELETE, entity_id=entity_id),
    )
    click.echo(f"Deleted {entity_type.value} {entity_id} (pending)")


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--type", "account_type", default="Checking", show_default=True, help="Account type")
@click.option("--off-budget", is_flag=True, help="Create a tracking (off-budget) account")
@click.pass_context
def create_account(ctx, name: str, account_type: str, off_budget: bool):
    """Create a new account.

    Examples:
        budgetsync --edit account create "Checking"
        budgetsync --edit account create "Mortgage" --type Mortgage --off-budget
    """
    change = NewChange(
        entity_type=EntityType.ACCOUNT,
        action=ChangeAction.CREATE,
        entity_name=name,
        payload=AccountPayload(
            name=name,
            account_type=account_type,
            on_budget=not off_budget,
            closed=False,
            hidden=False,
        ),
    )
    change_id = record_or_exit(ctx, change)
    account_id = ctx.obj["context"].ledger.get(change_id).entity_id
    click.echo(f"Created account '{name}' (ID: {account_id}, pending)")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List synced accounts."""
    accounts = ctx.obj["store"].list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        budget_label = "on budget" if acc.on_budget else "off budget"
        click.echo(f"{acc.id} | {acc.name:20s} | {acc.account_type or '':12s} | {budget_label}")


@account_group.command("rename")
@click.argument("account_id")
@click.argument("new_name")
@click.pass_context
def rename_account(ctx, account_id: str, new_name: str):
    """Rename an account."""
    _record_rename(ctx, EntityType.ACCOUNT, AccountPayload, account_id, new_name)


@account_group.command("delete")
@click.argument("account_id")
@click.pass_context
def delete_account(ctx, account_id: str):
    """Delete an account."""
    _record_delete(ctx, EntityType.ACCOUNT, account_id)


@click.group()
def category_group():
    """Manage budget categories."""
    pass


@category_group.command("create")
@click.argument("name")
@click.option("--master", "master_category_id", help="Master category ID")
@click.pass_context
def create_category(ctx, name: str, master_category_id: str | None):
    """Create a category."""
    change_id = record_or_exit(
        ctx,
        NewChange(
            entity_type=EntityType.CATEGORY,
            action=ChangeAction.CREATE,
            entity_name=name,
            payload=CategoryPayload(name=name, master_category_id=master_category_id),
        ),
    )
    category_id = ctx.obj["context"].ledger.get(change_id).entity_id
    click.echo(f"Created category '{name}' (ID: {category_id}, pending)")


@category_group.command("rename")
@click.argument("category_id")
@click.argument("new_name")
@click.pass_context
def rename_category(ctx, category_id: str, new_name: str):
    """Rename a category."""
    _record_rename(ctx, EntityType.CATEGORY, CategoryPayload, category_id, new_name)


@category_group.command("delete")
@click.argument("category_id")
@click.pass_context
def delete_category(ctx, category_id: str):
    """Delete a category."""
    _record_delete(ctx, EntityType.CATEGORY, category_id)


@click.group()
def payee_group():
    """Manage payees."""
    pass


@payee_group.command("create")
@click.argument("name")
@click.pass_context
def create_payee(ctx, name: str):
    """Create a payee."""
    change_id = record_or_exit(
        ctx,
        NewChange(
            entity_type=EntityType.PAYEE,
            action=ChangeAction.CREATE,
            entity_name=name,
            payload=PayeePayload(name=name),
        ),
    )
    payee_id = ctx.obj["context"].ledger.get(change_id).entity_id
    click.echo(f"Created payee '{name}' (ID: {payee_id}, pending)")


@payee_group.command("rename")
@click.argument("payee_id")
@click.argument("new_name")
@click.pass_context
def rename_payee(ctx, payee_id: str, new_name: str):
    """Rename a payee."""
    _record_rename(ctx, EntityType.PAYEE, PayeePayload, payee_id, new_name)


@payee_group.command("delete")
@click.argument("payee_id")
@click.pass_context
def delete_payee(ctx, payee_id: str):
    """Delete a payee."""
    _record_delete(ctx, EntityType.PAYEE, payee_id)


def register_commands(cli):
    """Register entity commands with main CLI."""
    cli.add_command(account_group, name="account")
    cli.add_command(category_group, name="category")
    cli.add_command(payee_group, name="payee")

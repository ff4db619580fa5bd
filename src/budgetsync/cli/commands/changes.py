"""Pending change commands."""

import click

from budgetsync.cli.error_handling import handle_domain_error
from budgetsync.domain.entities import EntityType
from budgetsync.domain.errors import NotFoundError, ValidationError


def short_id(change_id: str) -> str:
    return change_id[:8]


def resolve_change_id(ledger, prefix: str) -> str:
    """Resolve a full or abbreviated change id.

    Raises:
        NotFoundError: If no change matches
        ValidationError: If the prefix matches several changes
    """
    matches = [change.id for change in ledger.snapshot() if change.id.startswith(prefix)]
    if not matches:
        raise NotFoundError(f"Change '{prefix}' not found")
    if len(matches) > 1:
        raise ValidationError(f"Change id '{prefix}' is ambiguous")
    return matches[0]


@click.command("status")
@click.pass_context
def status(ctx):
    """Show edit mode and the number of unsaved changes."""
    context = ctx.obj["context"]
    ledger = context.ledger

    click.echo(f"Edit mode: {'on' if context.edit_mode else 'off'}")
    if ledger.is_dirty:
        click.echo(f"{ledger.count} unsaved change{'s' if ledger.count != 1 else ''}")
    else:
        click.echo("No unsaved changes")


@click.group()
def changes_group():
    """Inspect and discard pending changes."""
    pass


@changes_group.command("list")
@click.pass_context
def list_changes(ctx):
    """List pending changes, oldest first."""
    ledger = ctx.obj["context"].ledger

    pending = ledger.snapshot()
    if not pending:
        click.echo("No pending changes.")
        return

    click.echo("\nPending changes:")
    click.echo("-" * 70)
    for change in pending:
        click.echo(
            f"{short_id(change.id)} | {change.action.value:6s} | {change.entity_type.value:21s} | "
            f"{change.entity_name or change.entity_id}"
        )


@changes_group.command("discard")
@click.argument("change_id", metavar="CHANGE_ID")
@click.pass_context
def discard_change(ctx, change_id: str):
    """Discard one pending change (full id or unique prefix)."""
    ledger = ctx.obj["context"].ledger
    try:
        full_id = resolve_change_id(ledger, change_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    ledger.discard(full_id)
    click.echo(f"Discarded change {short_id(full_id)}")


@changes_group.command("withdraw")
@click.argument("entity_type", type=click.Choice([t.value for t in EntityType]))
@click.argument("entity_id")
@click.pass_context
def withdraw_delete(ctx, entity_type: str, entity_id: str):
    """Withdraw a pending delete so the entity can be edited again."""
    ledger = ctx.obj["context"].ledger
    if ledger.withdraw_delete(EntityType(entity_type), entity_id):
        click.echo(f"Withdrew delete of {entity_type} {entity_id}")
    else:
        handle_domain_error(ctx, NotFoundError(f"No pending delete for {entity_type} {entity_id}"))


@changes_group.command("clear")
@click.confirmation_option(prompt="Discard all pending changes?")
@click.pass_context
def clear_changes(ctx):
    """Discard every pending change."""
    ledger = ctx.obj["context"].ledger
    count = ledger.count
    ledger.clear()
    click.echo(f"Discarded {count} change{'s' if count != 1 else ''}")


def register_commands(cli):
    """Register change commands with main CLI."""
    cli.add_command(status)
    cli.add_command(changes_group, name="changes")

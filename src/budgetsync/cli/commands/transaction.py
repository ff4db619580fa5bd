"""Transaction management commands."""

import click

from budgetsync.cli.commands.entity import record_or_exit, require_entity
from budgetsync.cli.error_handling import format_amount, handle_domain_error
from budgetsync.domain.entities import (
    ChangeAction,
    ClearedStatus,
    EntityType,
    Flag,
    NewChange,
    TransactionPayload,
)
from budgetsync.utils.account_resolver import resolve_account
from budgetsync.utils.amount_parser import parse_amount
from budgetsync.utils.date_parser import parse_date

CLEARED_CHOICES = [status.value for status in ClearedStatus]
FLAG_CHOICES = [flag.value for flag in Flag]


def _parse_fields(ctx, date: str | None, amount: str | None):
    txn_date = None
    if date is not None:
        try:
            txn_date = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    txn_amount = None
    if amount is not None:
        try:
            txn_amount = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    return txn_date, txn_amount


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", required=True, help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--amount", required=True, help="Transaction amount (e.g., 123.45 or -123.45)")
@click.option("--payee", help="Payee name")
@click.option("--category", "category_id", help="Category ID")
@click.option("--memo", help="Memo")
@click.option("--cleared", type=click.Choice(CLEARED_CHOICES), default=ClearedStatus.UNCLEARED.value)
@click.option("--flag", type=click.Choice(FLAG_CHOICES), help="Flag colour")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date: str,
    amount: str,
    payee: str | None,
    category_id: str | None,
    memo: str | None,
    cleared: str,
    flag: str | None,
):
    """Add a transaction.

    Examples:
        budgetsync --edit transaction add --account Checking --date 2024-01-15 --amount -50.00 --payee "Grocery store"
        budgetsync --edit transaction add --account Checking --date today --amount 1000 --cleared Cleared
    """
    context = ctx.obj["context"]
    try:
        account_id = resolve_account(ctx.obj["store"], context.ledger, account)
    except ValueError as e:
        handle_domain_error(ctx, e)

    txn_date, txn_amount = _parse_fields(ctx, date, amount)

    change_id = record_or_exit(
        ctx,
        NewChange(
            entity_type=EntityType.TRANSACTION,
            action=ChangeAction.CREATE,
            entity_name=payee or "",
            payload=TransactionPayload(
                account_id=account_id,
                date=txn_date,
                amount=txn_amount,
                payee_name=payee,
                category_id=category_id,
                memo=memo,
                cleared=ClearedStatus(cleared),
                flag=Flag(flag) if flag else None,
            ),
        ),
    )
    transaction_id = context.ledger.get(change_id).entity_id
    click.echo(f"Created transaction {transaction_id} (pending)")
    click.echo(f"  Date: {txn_date}")
    click.echo(f"  Amount: {format_amount(txn_amount)}")
    if payee:
        click.echo(f"  Payee: {payee}")


@transaction_group.command("update")
@click.argument("transaction_id")
@click.option("--date", help="Transaction date")
@click.option("--amount", help="Transaction amount")
@click.option("--payee", help="Payee name")
@click.option("--category", "category_id", help="Category ID")
@click.option("--memo", help="Memo")
@click.option("--cleared", type=click.Choice(CLEARED_CHOICES))
@click.option("--flag", type=click.Choice(FLAG_CHOICES), help="Flag colour")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: str,
    date: str | None,
    amount: str | None,
    payee: str | None,
    category_id: str | None,
    memo: str | None,
    cleared: str | None,
    flag: str | None,
):
    """Update a transaction.

    Updates only the fields that are provided.

    Examples:
        budgetsync --edit transaction update 3f2a... --amount -75.00
        budgetsync --edit transaction update 3f2a... --cleared Cleared
    """
    require_entity(ctx, EntityType.TRANSACTION, transaction_id)
    txn_date, txn_amount = _parse_fields(ctx, date, amount)

    payload = TransactionPayload(
        date=txn_date,
        amount=txn_amount,
        payee_name=payee,
        category_id=category_id,
        memo=memo,
        cleared=ClearedStatus(cleared) if cleared else None,
        flag=Flag(flag) if flag else None,
    )
    if payload == TransactionPayload():
        click.echo("Error: Nothing to update", err=True)
        ctx.exit(1)

    record_or_exit(
        ctx,
        NewChange(
            entity_type=EntityType.TRANSACTION,
            action=ChangeAction.UPDATE,
            entity_id=transaction_id,
            entity_name=payee or "",
            payload=payload,
        ),
    )
    click.echo(f"Updated transaction {transaction_id} (pending)")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.pass_context
def delete_transaction(ctx, transaction_id: str):
    """Delete a transaction."""
    require_entity(ctx, EntityType.TRANSACTION, transaction_id)
    record_or_exit(
        ctx,
        NewChange(entity_type=EntityType.TRANSACTION, action=ChangeAction.DELETE, entity_id=transaction_id),
    )
    click.echo(f"Deleted transaction {transaction_id} (pending)")


@transaction_group.command("list")
@click.option("--account", required=True, help="Account name or ID")
@click.pass_context
def list_transactions(ctx, account: str):
    """List synced transactions of an account."""
    store = ctx.obj["store"]
    try:
        account_id = resolve_account(store, ctx.obj["context"].ledger, account)
    except ValueError as e:
        handle_domain_error(ctx, e)

    transactions = store.get_transaction_snapshot(account_id)
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        click.echo(
            f"{txn.id} | {txn.date} | {format_amount(txn.amount):>12s} | "
            f"{txn.cleared.value:10s} | {txn.payee_name}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")

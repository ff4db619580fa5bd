"""Account reconciliation command."""

import click

from budgetsync.cli.error_handling import format_amount, handle_domain_error
from budgetsync.utils.account_resolver import resolve_account


@click.command("reconcile")
@click.argument("account", metavar="ACCOUNT")
@click.option("--balance", required=True, help="Statement ending balance (e.g., 1,234.56)")
@click.option("--date", "statement_date", default="today", show_default=True, help="Statement date")
@click.option("--select", "selected", multiple=True, help="Uncleared transaction ID on the statement (repeatable)")
@click.option("--select-all", is_flag=True, help="Select every uncleared transaction")
@click.option("--adjust", is_flag=True, help="Create an adjustment transaction for any remaining difference")
@click.pass_context
def reconcile(
    ctx,
    account: str,
    balance: str,
    statement_date: str,
    selected: tuple[str, ...],
    select_all: bool,
    adjust: bool,
):
    """Reconcile an account against a bank statement.

    Compares the statement balance with the account's cleared balance plus
    the selected transactions. When they match, the selected transactions
    are marked reconciled (pending until the next sync).

    Examples:
        budgetsync --edit reconcile Checking --balance 523.50 --select 3f2a... --select 91bc...
        budgetsync --edit reconcile Checking --balance 523.50 --select-all --adjust
    """
    context = ctx.obj["context"]
    try:
        account_id = resolve_account(ctx.obj["store"], context.ledger, account)
        session = context.open_reconciliation(account_id)
        session.confirm_statement(balance, statement_date)

        to_select = [t.id for t in session.selectable_transactions] if select_all else list(selected)
        for transaction_id in to_select:
            session.toggle_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Statement balance: {format_amount(session.statement_balance)}")
    click.echo(f"Cleared balance:   {format_amount(session.cleared_balance)}")
    click.echo(f"Selected:          {len(session.selected_transaction_ids)} transaction(s)")
    click.echo(f"Difference:        {format_amount(session.difference)}")

    if not session.is_balanced and adjust:
        adjustment = session.create_adjustment()
        click.echo(f"Adjustment:        {format_amount(adjustment.payload.amount)}")

    if not session.is_balanced:
        remaining = [t for t in session.selectable_transactions if t.id not in session.selected_transaction_ids]
        if remaining:
            click.echo("\nUncleared transactions not selected:")
            for txn in remaining:
                click.echo(f"  {txn.id} | {txn.date} | {format_amount(txn.amount):>12s} | {txn.payee_name}")
        session.cancel()
        click.echo("Error: Account is not balanced; nothing was recorded", err=True)
        ctx.exit(1)

    try:
        change_ids = session.finish()
    except ValueError as e:
        session.cancel()
        handle_domain_error(ctx, e)
    session.close()
    click.echo(f"Reconciled. Recorded {len(change_ids)} change(s).")


def register_commands(cli):
    """Register reconcile command with main CLI."""
    cli.add_command(reconcile)

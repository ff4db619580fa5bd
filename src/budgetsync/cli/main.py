"""Main CLI entry point."""

import logging

import click

from budgetsync.database.factories import create_sqlite_store
from budgetsync.domain.context import BudgetContext

# Import and register all commands at module level
from budgetsync.cli.commands import (
    budget,
    changes,
    entity,
    msi,
    reconcile,
    sync,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to budget file (overrides BUDGETSYNC_DB_PATH environment variable)",
    envvar="BUDGETSYNC_DB_PATH",
)
@click.option("--edit", "edit_mode", is_flag=True, help="Enable edit mode for this command")
@click.option("--read-only", is_flag=True, help="Refuse to push changes to the budget")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="BUDGETSYNC_LOG_LEVEL",
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, edit_mode: bool, read_only: bool, log_level: str):
    """Budgetsync - offline budget editing.

    Record edits while offline, reconcile accounts against bank statements,
    split purchases into installments and push everything to the budget
    when ready.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Open the budget only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        store = create_sqlite_store(database_path=db_path, read_only=read_only)
        store.connect()
        context = BudgetContext(client=store, ledger=store.load_ledger(), edit_mode=edit_mode)
        ctx.obj["store"] = store
        ctx.obj["context"] = context

        def close() -> None:
            store.save_ledger(context.ledger)
            store.disconnect()

        ctx.call_on_close(close)


# Register all commands
changes.register_commands(cli)
entity.register_commands(cli)
transaction.register_commands(cli)
budget.register_commands(cli)
reconcile.register_commands(cli)
msi.register_commands(cli)
sync.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

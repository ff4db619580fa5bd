"""Sync and device commands."""

import asyncio

import click

from budgetsync.cli.error_handling import handle_domain_error


@click.command("sync")
@click.pass_context
def sync(ctx):
    """Push pending changes to the budget."""
    dispatcher = ctx.obj["context"].dispatcher
    result = asyncio.run(dispatcher.flush())
    if not result.success:
        handle_domain_error(ctx, result.error)
    click.echo(result.message)


@click.group(invoke_without_command=True)
@click.pass_context
def device(ctx):
    """Show this device's identity in the budget."""
    if ctx.invoked_subcommand is not None:
        return
    identity = ctx.obj["context"].dispatcher.device_info()
    if identity is None:
        click.echo("No device registered. Run 'budgetsync device register'.")
        return
    click.echo(f"Device: {identity.id} (short ID: {identity.short_id})")


@device.command("register")
@click.pass_context
def register_device(ctx):
    """Register this device with the budget."""
    identity = ctx.obj["store"].register_device()
    click.echo(f"Device: {identity.id} (short ID: {identity.short_id})")


def register_commands(cli):
    """Register sync commands with main CLI."""
    cli.add_command(sync)
    cli.add_command(device)

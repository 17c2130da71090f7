"""repositories command — show the server's repository catalog."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewbot_cli.context import get_connection
from reviewbot_cli.errors import reported_errors

console = Console()


@click.command("repositories")
@click.pass_context
def repositories_cmd(ctx):
    """List repository names and ids, for use with `pending --repository`."""
    with reported_errors():
        catalog = get_connection(ctx).get_repositories()

    if not catalog:
        console.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(title="Repositories", show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right", width=8)
    table.add_column("Name")
    for name, repository_id in catalog.items():
        table.add_row(str(repository_id), name)
    console.print(table)

"""pending command — list pending reviews that need a build."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewbot_cli.context import get_connection
from reviewbot_cli.errors import reported_errors
from reviewbot_core.rb.decoding import format_timestamp

console = Console()


@click.command("pending")
@click.option(
    "--period",
    "period_hours",
    type=float,
    default=None,
    help="Recency window in hours, relative to the most recently updated review. "
    "Negative means 1 hour. Overrides config file.",
)
@click.option(
    "--mine/--all",
    "restrict_to_user",
    default=None,
    help="Only reviews assigned to this account. Overrides config file.",
)
@click.option("--repository", default=None, help="Only reviews in this repository (name, case-insensitive).")
@click.option("--repository-id", type=int, default=None, help="Only reviews in this repository (numeric id).")
@click.option("--urls-only", is_flag=True, help="Print one review URL per line instead of a table.")
@click.pass_context
def pending_cmd(
    ctx,
    period_hours: float | None,
    restrict_to_user: bool | None,
    repository: str | None,
    repository_id: int | None,
    urls_only: bool,
):
    """List pending reviews with a new diff this account has not reviewed yet.

    Only reviews updated within the recency window are considered, so old
    reviews are not rebuilt on every poll.
    """
    config = ctx.obj["config"]

    if repository is not None and repository_id is not None:
        raise click.UsageError("Use either --repository or --repository-id, not both.")
    if period_hours is None:
        period_hours = config.get("period_hours", 1)
    if restrict_to_user is None:
        restrict_to_user = bool(config.get("restrict_to_user", False))
    if repository is None and repository_id is None:
        repository = config.get("repository")
        # YAML reads `repository: 5` as an int: that is an id, not a name.
        if isinstance(repository, int) and not isinstance(repository, bool):
            repository_id, repository = repository, None
        elif repository is not None:
            repository = str(repository)

    connection = get_connection(ctx)
    with reported_errors():
        if repository:
            catalog = connection.get_repositories()
            if repository not in catalog:
                raise click.UsageError(f"Unknown repository {repository!r}.")
            repository_id = catalog[repository]

        results = connection.get_pending_reviews(
            period_in_hours=period_hours,
            restrict_to_account=restrict_to_user,
            repository_id=-1 if repository_id is None else repository_id,
        )

    if urls_only:
        for result in results:
            click.echo(result.url)
        return

    if not results:
        console.print("[yellow]No pending reviews need a build.[/yellow]")
        return

    table = Table(title="Reviews needing a build", show_header=True, header_style="bold cyan")
    table.add_column("Review", style="bold")
    table.add_column("Last upload", width=20)
    table.add_column("Branch")
    table.add_column("Repository")
    for result in results:
        table.add_row(
            result.url,
            format_timestamp(result.last_upload) if result.last_upload else "",
            result.branch,
            result.repository,
        )
    console.print(table)

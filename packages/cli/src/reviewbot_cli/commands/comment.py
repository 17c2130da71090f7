"""comment command — report a build outcome on a review."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from reviewbot_cli.context import get_connection
from reviewbot_cli.errors import reported_errors, resolve_review_url

console = Console()


@click.command("comment")
@click.argument("review")
@click.option("--message", "-m", required=True, help="Comment body. Use '-' to read it from stdin.")
@click.option("--ship-it", is_flag=True, help="Mark the review as Ship It.")
@click.option(
    "--markdown/--plain",
    default=None,
    help="Tag the body as Markdown. Overrides config file.",
)
@click.pass_context
def comment_cmd(ctx, review: str, message: str, ship_it: bool, markdown: bool | None):
    """Post a public top-level comment on REVIEW.

    REVIEW is a review URL, a review id, or any text containing the id
    (e.g. a commit message). Exits with status 1 if the server did not
    accept the comment.
    """
    connection = get_connection(ctx)
    if markdown is None:
        markdown = bool(ctx.obj["config"].get("markdown", False))
    if message == "-":
        message = sys.stdin.read()

    review_url = resolve_review_url(connection, review)
    with reported_errors():
        posted = connection.post_comment(review_url, message, ship_it=ship_it, markdown=markdown)
    if not posted:
        console.print(f"[red]Could not post comment to {review_url}.[/red]")
        ctx.exit(1)
    console.print(f"[green]Comment posted to {review_url}.[/green]")

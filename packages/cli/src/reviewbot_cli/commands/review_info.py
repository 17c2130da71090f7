"""properties and diff commands — read a single review."""

from __future__ import annotations

import click

from reviewbot_cli.context import get_connection
from reviewbot_cli.errors import reported_errors, resolve_review_url


@click.command("properties")
@click.argument("review")
@click.pass_context
def properties_cmd(ctx, review: str):
    """Print build parameters for REVIEW as KEY=VALUE lines."""
    connection = get_connection(ctx)
    review_url = resolve_review_url(connection, review)
    with reported_errors():
        properties = connection.get_properties(review_url)
    for key, value in sorted(properties.items()):
        click.echo(f"{key}={value}")


@click.command("diff")
@click.argument("review")
@click.pass_context
def diff_cmd(ctx, review: str):
    """Print the latest uploaded patch of REVIEW."""
    connection = get_connection(ctx)
    review_url = resolve_review_url(connection, review)
    with reported_errors():
        patch = connection.get_diff(review_url)
    click.echo(patch, nl=False)

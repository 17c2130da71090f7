"""CLI entry point for reviewbot.

Commands:
  pending       — list pending reviews that need a build
  repositories  — list the repositories known to the server
  comment       — post a review comment (optionally Ship It)
  properties    — print build parameters for a review
  diff          — print the latest patch of a review
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewbot_cli.commands.comment import comment_cmd
from reviewbot_cli.commands.pending import pending_cmd
from reviewbot_cli.commands.repositories import repositories_cmd
from reviewbot_cli.commands.review_info import diff_cmd, properties_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewbot"),
    prog_name="reviewbot",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewbot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWBOT_CONFIG",
)
@click.option("--url", default=None, help="Review Board base URL. Overrides config file.")
@click.option("--username", default=None, help="Review Board account. Overrides config file.")
@click.option("--verbose", "-v", is_flag=True, help="Log every request made to the server.")
@click.pass_context
def main(ctx: click.Context, config_path: str, url: str | None, username: str | None, verbose: bool):
    """Find Review Board reviews that need a build and report results back."""
    from reviewbot_core.config import load_config
    from reviewbot_cli.auth import resolve_password

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"url": url, "username": username})

    password = resolve_password(config.get("url"))
    if password:
        config["password"] = password

    ctx.obj["config"] = config


main.add_command(pending_cmd)
main.add_command(repositories_cmd)
main.add_command(comment_cmd)
main.add_command(properties_cmd)
main.add_command(diff_cmd)

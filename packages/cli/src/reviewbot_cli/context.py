"""Lazy access to the Review Board connection shared by all subcommands.

The group callback only loads settings; the connection is built the first
time a command needs it, so `--help` works before anything is configured.
"""

from __future__ import annotations

import click


def build_connection(config: dict):
    """Instantiate the connection from merged settings.

    Missing settings are reported as a UsageError naming what to set.
    """
    from reviewbot_core.config import connection_config
    from reviewbot_core.rb.connection import ReviewboardConnection

    try:
        return ReviewboardConnection(connection_config(config))
    except ValueError as e:
        raise click.UsageError(
            f"{e}.\nSet url/username in .reviewbot.yml (or --url/--username) "
            "and REVIEWBOARD_PASSWORD in the environment or ~/.netrc."
        )


def get_connection(ctx: click.Context):
    """Return the command's connection, building it and scheduling close() on first use."""
    root = ctx.find_root()
    connection = root.obj.get("connection")
    if connection is None:
        connection = build_connection(root.obj["config"])
        root.obj["connection"] = connection
        root.call_on_close(connection.close)
    return connection

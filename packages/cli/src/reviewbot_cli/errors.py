"""Turn connection failures into clean CLI errors (exit code 1, no traceback)."""

from __future__ import annotations

from contextlib import contextmanager

import click
import requests

from reviewbot_core.errors import ReviewboardError


@contextmanager
def reported_errors():
    try:
        yield
    except (ReviewboardError, requests.RequestException) as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


def resolve_review_url(connection, review: str) -> str:
    """Accept a canonical review URL, a bare id, or any text containing an id."""
    if "/r/" in review:
        return review
    url = connection.build_review_url(review)
    if url == connection.review_number_to_url(0):
        raise click.BadParameter(f"No review id found in {review!r}.", param_hint="REVIEW")
    return url

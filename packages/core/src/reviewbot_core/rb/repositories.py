"""Repository catalog: every repository on the server, keyed by name."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from requests.structures import CaseInsensitiveDict

if TYPE_CHECKING:
    from reviewbot_core.rb.session import ReviewboardSession

logger = logging.getLogger(__name__)


def fetch_catalog(session: ReviewboardSession, start_url: str) -> CaseInsensitiveDict:
    """Walk the paginated repository listing starting at ``start_url``.

    Returns a case-insensitive ``name -> id`` mapping ordered by name. When
    two repositories share a name (ignoring case) the one seen last wins.
    """
    catalog: CaseInsensitiveDict = CaseInsensitiveDict()
    url: str | None = start_url
    visited: set[str] = set()
    while url and url not in visited:
        visited.add(url)
        page = session.fetch(url, "repository_list")
        if page.count < 1:
            break
        for repository in page.repositories:
            catalog[repository.name] = repository.id
        url = page.links.next_href

    logger.debug("Repository catalog has %d entries (%d page(s)).", len(catalog), len(visited))
    return CaseInsensitiveDict(sorted(catalog.items(), key=lambda kv: kv[0].lower()))

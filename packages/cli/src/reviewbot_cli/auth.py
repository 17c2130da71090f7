"""Review Board password resolution with ~/.netrc fallback.

Resolution order (stops at first success):
  1. REVIEWBOARD_PASSWORD environment variable (CI / explicit override)
  2. The ~/.netrc entry for the server's host
"""

from __future__ import annotations

import logging
import os

from requests.utils import get_netrc_auth

logger = logging.getLogger(__name__)


def resolve_password(url: str | None) -> str | None:
    """Return the Review Board password or None if no source provides one.

    Never raises; callers should check for None and emit a UsageError.
    """
    password = os.environ.get("REVIEWBOARD_PASSWORD")
    if password:
        return password

    if not url:
        return None

    # A missing or unreadable netrc is not an error; get_netrc_auth returns None.
    netrc_auth = get_netrc_auth(url)
    if netrc_auth and netrc_auth[1]:
        logger.debug("Resolved Review Board password from ~/.netrc.")
        return netrc_auth[1]

    return None

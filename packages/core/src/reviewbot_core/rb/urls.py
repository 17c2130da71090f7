"""Endpoint URL construction for the Review Board web API.

All functions are pure. ``base_url`` is the server root and always ends with
``/`` (see ConnectionConfig).
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlsplit

from reviewbot_core.errors import PreconditionError

MAX_RESULTS = 200
ANY_PORT = None

_DIGITS_RE = re.compile(r"\d+")
_REVIEW_MARKER = "/r/"


def extract_host_and_port(url: str) -> tuple[str, int | None]:
    """Return ``(host, port)`` for a URL such as ``https://rb.example.com:8443/``.

    Without an explicit port the scheme's default is used; without a scheme
    the port is ANY_PORT. Userinfo is dropped and IPv6 hosts lose their
    brackets. The host comes back lowercased. Raises ValueError for a
    non-numeric or out-of-range port.
    """
    parts = urlsplit(url if "://" in url else "//" + url)
    host = parts.hostname or ""
    port = parts.port
    if port is not None:
        return host, port
    scheme = parts.scheme.lower()
    if scheme == "http":
        return host, 80
    if scheme == "https":
        return host, 443
    return host, ANY_PORT


def review_number_to_url(base_url: str, number: str | int) -> str:
    return f"{base_url}r/{number}/"


def review_url_from_text(base_url: str, text: str) -> str:
    """Build a review URL from the first run of digits in ``text``.

    Yields the id ``0`` when ``text`` has no digits; callers must read that
    as "no review referenced".
    """
    match = _DIGITS_RE.search(text or "")
    return review_number_to_url(base_url, match.group() if match else "0")


def review_id_from_url(review_url: str) -> int:
    """Parse the numeric id out of a canonical ``<base>/r/<id>/`` URL."""
    split_point = review_url.find(_REVIEW_MARKER)
    if split_point < 0:
        raise PreconditionError(f"Not a review URL (no {_REVIEW_MARKER!r} marker): {review_url}")
    id_part = review_url[split_point + len(_REVIEW_MARKER) :].split("/", 1)[0]
    if not id_part.isdigit():
        raise PreconditionError(f"Review URL has no numeric id: {review_url}")
    return int(id_part)


def api_url_for_review(review_url: str, resource: str = "") -> str:
    """Rewrite ``<base>/r/<id>/`` to ``<base>/api/review-requests/<id>/<resource>/``."""
    review_id = review_id_from_url(review_url)
    root = review_url[: review_url.find(_REVIEW_MARKER)]
    return _with_resource(f"{root}/api/review-requests/{review_id}/", resource)


def api_url_for_id(base_url: str, review_id: int, resource: str = "") -> str:
    return _with_resource(f"{base_url}api/review-requests/{review_id}/", resource)


def diffs_url(base_url: str, review_id: int) -> str:
    return api_url_for_id(base_url, review_id, "diffs")


def comments_url(base_url: str, review_id: int) -> str:
    return api_url_for_id(base_url, review_id, "reviews")


def pending_list_url(base_url: str, username: str, only_assigned_to_account: bool, repository_id: int = -1) -> str:
    url = f"{base_url}api/review-requests/?status=pending"
    if only_assigned_to_account:
        url += f"&to-users={quote(username)}"
    url += f"&max-results={MAX_RESULTS}"
    if repository_id is not None and repository_id >= 0:
        url += f"&repository={repository_id}"
    return url


def repository_list_url(base_url: str) -> str:
    return f"{base_url}api/repositories/?max-results={MAX_RESULTS}"


def session_url(base_url: str) -> str:
    return f"{base_url}api/session/"


def logout_url(base_url: str) -> str:
    return f"{base_url}api/accounts/logout/"


def _with_resource(url: str, resource: str) -> str:
    if resource:
        url += resource.strip("/") + "/"
    return url

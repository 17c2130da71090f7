"""Decode Review Board XML responses into the models in rb.models.

Each response shape has its own decoding function; ``decode`` picks one by
name. Any structural problem is reported as a single DecodeError, so a caller
never sees a partially decoded page.

Timestamps come in two encodings. Current servers emit XML Schema
``dateTime`` values (``2013-08-25T00:31:00Z``); Review Board 1.6 emits
``2013-08-25 00:31:00``. Both decode to timezone-aware UTC datetimes, and a
value without an offset is taken as UTC.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from reviewbot_core.errors import DecodeError
from reviewbot_core.rb.models import (
    CommentEntry,
    CommentListPage,
    DiffEntry,
    DiffSet,
    PaginationLink,
    RepositoryEntry,
    RepositoryListPage,
    ReviewItem,
    ReviewListPage,
)

LEGACY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Response shape -> element wrapping its <array><item> list.
_ITEM_CONTAINERS = {
    "review_list": "review_requests",
    "diff_list": "diffs",
    "comment_list": "reviews",
    "repository_list": "repositories",
}


def parse_timestamp(value: str | None) -> datetime:
    """Parse a timestamp in either supported encoding, standard form first."""
    text = (value or "").strip()
    try:
        return _parse_xsd_datetime(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, LEGACY_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise DecodeError(f"Unparseable timestamp: {value!r}") from None


def format_timestamp(value: datetime) -> str:
    """Inverse of parse_timestamp, always in the standard UTC form."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_xsd_datetime(text: str) -> datetime:
    # fromisoformat() also accepts a space separator; the legacy form must
    # go through the fallback.
    if "T" not in text:
        raise ValueError(text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def decode(payload: bytes | str, shape: str):
    """Decode ``payload`` as the named response shape."""
    try:
        decoder = _DECODERS[shape]
    except KeyError:
        raise ValueError(f"Unknown response shape: {shape!r}") from None
    root = _parse_envelope(payload)
    return decoder(root)


def _parse_envelope(payload: bytes | str) -> ET.Element:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as e:
        raise DecodeError(f"Malformed XML response: {e}") from e
    if root.tag != "rsp":
        raise DecodeError(f"Unexpected root element <{root.tag}>, expected <rsp>")
    if _optional_text(root, "stat") == "fail":
        message = _optional_text(root, "err/msg") or "unknown error"
        raise DecodeError(f"Server reported failure: {message}")
    return root


def _optional_text(elem: ET.Element, path: str) -> str:
    child = elem.find(path)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _required_text(elem: ET.Element, path: str) -> str:
    child = elem.find(path)
    if child is None or child.text is None or not child.text.strip():
        raise DecodeError(f"Missing required element <{path}> in <{elem.tag}>")
    return child.text.strip()


def _required_int(elem: ET.Element, path: str) -> int:
    text = _required_text(elem, path)
    try:
        return int(text)
    except ValueError:
        raise DecodeError(f"Element <{path}> is not an integer: {text!r}") from None


def _count(root: ET.Element) -> int:
    return _required_int(root, "total_results")


def _items(root: ET.Element, shape: str, count: int) -> list[ET.Element]:
    container_name = _ITEM_CONTAINERS[shape]
    container = root.find(container_name)
    if container is None:
        if count > 0:
            raise DecodeError(f"Missing required element <{container_name}>")
        return []
    items = container.findall("array/item")
    return items or container.findall("item")


def _decode_review_item(elem: ET.Element) -> ReviewItem:
    review_id = _required_int(elem, "id")
    if review_id <= 0:
        raise DecodeError(f"Review id must be positive, got {review_id}")
    last_updated_text = _optional_text(elem, "last_updated")
    return ReviewItem(
        id=review_id,
        last_updated=parse_timestamp(last_updated_text) if last_updated_text else None,
        branch=_optional_text(elem, "branch"),
        repository_title=_optional_text(elem, "links/repository/title"),
    )


def _decode_review_request(root: ET.Element) -> ReviewItem:
    elem = root.find("review_request")
    if elem is None:
        raise DecodeError("Missing required element <review_request>")
    return _decode_review_item(elem)


def _decode_review_list(root: ET.Element) -> ReviewListPage:
    count = _count(root)
    items = [_decode_review_item(e) for e in _items(root, "review_list", count)]
    return ReviewListPage(count=count, items=items)


def _decode_diff_list(root: ET.Element) -> DiffSet:
    count = _count(root)
    diffs = []
    for position, elem in enumerate(_items(root, "diff_list", count), 1):
        revision_text = _optional_text(elem, "revision")
        diffs.append(
            DiffEntry(
                revision=int(revision_text) if revision_text.isdigit() else position,
                timestamp=parse_timestamp(_required_text(elem, "timestamp")),
            )
        )
    if count > 0 and not diffs:
        raise DecodeError(f"Diff list reports {count} diff(s) but contains none")
    return DiffSet(count=count, diffs=diffs)


def _decode_comment_list(root: ET.Element) -> CommentListPage:
    count = _count(root)
    comments = [
        CommentEntry(
            author=_optional_text(elem, "links/user/title"),
            timestamp=parse_timestamp(_required_text(elem, "timestamp")),
        )
        for elem in _items(root, "comment_list", count)
    ]
    return CommentListPage(count=count, comments=comments)


def _decode_repository_list(root: ET.Element) -> RepositoryListPage:
    count = _count(root)
    repositories = [
        RepositoryEntry(
            id=_required_int(elem, "id"),
            name=_required_text(elem, "name"),
            tool=_optional_text(elem, "tool"),
            path=_optional_text(elem, "path"),
        )
        for elem in _items(root, "repository_list", count)
    ]
    next_href = _optional_text(root, "links/next/href") or None
    return RepositoryListPage(count=count, repositories=repositories, links=PaginationLink(next_href=next_href))


_DECODERS = {
    "review_request": _decode_review_request,
    "review_list": _decode_review_list,
    "diff_list": _decode_diff_list,
    "comment_list": _decode_comment_list,
    "repository_list": _decode_repository_list,
}

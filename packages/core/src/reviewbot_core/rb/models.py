"""Typed view of the Review Board API payloads.

Only the fields the polling pipeline reads are modelled. Page shapes mirror
the ``<rsp>`` envelope: a ``total_results`` count, the list of items and an
optional link to the next page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

DEFAULT_BRANCH = "master"
UNKNOWN_REPOSITORY = "unknown"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ReviewItem:
    """One review request as listed by ``api/review-requests/``."""

    id: int
    last_updated: datetime | None
    branch: str = ""
    repository_title: str = ""

    def recency_key(self) -> tuple[bool, datetime]:
        """Sort key for newest-first ordering; a missing timestamp ranks oldest."""
        if self.last_updated is None:
            return (False, _OLDEST)
        return (True, self.last_updated)


@dataclass
class DiffEntry:
    revision: int
    timestamp: datetime


@dataclass
class DiffSet:
    count: int
    diffs: list[DiffEntry] = field(default_factory=list)

    @property
    def last_upload_time(self) -> datetime | None:
        """Timestamp of the newest diff, or None when nothing was uploaded."""
        if self.count < 1 or not self.diffs:
            return None
        return self.diffs[-1].timestamp


@dataclass
class CommentEntry:
    """A review (top-level comment) left on a review request."""

    author: str
    timestamp: datetime


@dataclass
class RepositoryEntry:
    id: int
    name: str
    tool: str = ""
    path: str = ""


@dataclass
class PaginationLink:
    next_href: str | None = None


@dataclass
class ReviewListPage:
    count: int
    items: list[ReviewItem] = field(default_factory=list)


@dataclass
class CommentListPage:
    count: int
    comments: list[CommentEntry] = field(default_factory=list)


@dataclass
class RepositoryListPage:
    count: int
    repositories: list[RepositoryEntry] = field(default_factory=list)
    links: PaginationLink = field(default_factory=PaginationLink)


@dataclass(frozen=True)
class ReviewResult:
    """What the build orchestrator receives for each review needing a build."""

    url: str
    last_upload: datetime | None
    branch: str
    repository: str


@dataclass
class ReviewSummary:
    """A hot review enriched with the time of its latest diff upload."""

    review_id: int
    url: str
    last_upload: datetime | None
    item: ReviewItem

    def trim(self) -> ReviewResult:
        return ReviewResult(
            url=self.url,
            last_upload=self.last_upload,
            branch=self.item.branch or DEFAULT_BRANCH,
            repository=self.item.repository_title or UNKNOWN_REPOSITORY,
        )

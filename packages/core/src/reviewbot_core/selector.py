"""Pending review selection — which reviews need a build right now.

The pipeline is a linear sequence of stages, each returning a new list and
preserving the order it was given:

    fetch pending list → sort newest first → keep "hot" reviews
    → enrich with latest diff upload time → drop reviews already handled
    → trim to ReviewResult

A review is "hot" when its last update lies within ``period_in_hours`` of the
most recently updated review in the listing. A hot review is "unhandled" when
it has at least one diff and this account has not left a review on it after
that diff was uploaded. Remote calls run one at a time in list order: one for
the listing, one per hot review for diffs, one per diff-bearing review for
comments.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from reviewbot_core.rb.models import ReviewItem, ReviewResult, ReviewSummary
from reviewbot_core.rb.urls import comments_url, diffs_url, pending_list_url, review_number_to_url

if TYPE_CHECKING:
    from reviewbot_core.rb.session import ReviewboardSession

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = timedelta(hours=1)


def select_pending_reviews(
    session: ReviewboardSession,
    period_in_hours: float = 1,
    restrict_to_account: bool = False,
    repository_id: int = -1,
) -> list[ReviewResult]:
    """Return the pending reviews that need a build, hottest first.

    The caller is responsible for authenticating ``session`` beforehand.
    """
    url = pending_list_url(session.base_url, session.username, restrict_to_account, repository_id)
    page = session.fetch(url, "review_list")
    if page.count < 1 or not page.items:
        logger.debug("No pending reviews at %s", url)
        return []

    ordered = sort_by_recency(page.items)
    hot = filter_hot(ordered, period_in_hours)
    enriched = enrich(session, hot)
    unhandled = filter_unhandled(session, enriched)
    logger.debug(
        "Pending reviews: %d listed, %d hot, %d need a build.",
        len(ordered),
        len(hot),
        len(unhandled),
    )
    return [summary.trim() for summary in unhandled]


def sort_by_recency(items: list[ReviewItem]) -> list[ReviewItem]:
    """Newest first; stable for ties, and items without a timestamp go last."""
    return sorted(items, key=ReviewItem.recency_key, reverse=True)


def period_window(period_in_hours: float) -> timedelta:
    """A negative period means the default one-hour window."""
    if period_in_hours < 0:
        return DEFAULT_PERIOD
    return timedelta(hours=period_in_hours)


def filter_hot(ordered: list[ReviewItem], period_in_hours: float) -> list[ReviewItem]:
    """Keep items updated within the window ending at the newest item's update.

    ``ordered`` must already be sorted by sort_by_recency(). Items without a
    timestamp are never hot.
    """
    if not ordered or ordered[0].last_updated is None:
        return []
    threshold = ordered[0].last_updated - period_window(period_in_hours)
    return [item for item in ordered if item.last_updated is not None and item.last_updated >= threshold]


def enrich(session: ReviewboardSession, items: list[ReviewItem]) -> list[ReviewSummary]:
    """Attach the time of the latest diff upload (None without diffs) to each item."""
    summaries = []
    for item in items:
        diff_set = session.fetch(diffs_url(session.base_url, item.id), "diff_list")
        summaries.append(
            ReviewSummary(
                review_id=item.id,
                url=review_number_to_url(session.base_url, item.id),
                last_upload=diff_set.last_upload_time,
                item=item,
            )
        )
    return summaries


def filter_unhandled(session: ReviewboardSession, summaries: list[ReviewSummary]) -> list[ReviewSummary]:
    """Keep reviews with a diff that this account has not reviewed since it was uploaded."""
    return [summary for summary in summaries if needs_build(session, summary)]


def needs_build(session: ReviewboardSession, summary: ReviewSummary) -> bool:
    if summary.last_upload is None:
        return False  # no diffs uploaded
    page = session.fetch(comments_url(session.base_url, summary.review_id), "comment_list")
    for comment in page.comments:
        if comment.author == session.username and comment.timestamp > summary.last_upload:
            logger.debug("Review %d already handled at %s", summary.review_id, comment.timestamp)
            return False
    return True

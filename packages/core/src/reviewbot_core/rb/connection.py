"""ReviewboardConnection — the entry point used by the build orchestrator.

Every public operation authenticates first and then talks to the server
through a single ReviewboardSession. Reads fail loudly (AuthenticationError,
DecodeError, PreconditionError or a requests exception); the two side-effect
operations, post_comment() and logout(), report failure as False instead.
"""

from __future__ import annotations

import logging

import requests

from reviewbot_core.config import ConnectionConfig
from reviewbot_core.errors import PreconditionError, ReviewboardError
from reviewbot_core.rb.models import DEFAULT_BRANCH, UNKNOWN_REPOSITORY, ReviewResult
from reviewbot_core.rb.repositories import fetch_catalog
from reviewbot_core.rb.session import ReviewboardSession
from reviewbot_core.rb.urls import (
    api_url_for_review,
    repository_list_url,
    review_number_to_url,
    review_url_from_text,
)
from reviewbot_core.selector import select_pending_reviews

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = (200, 201)


class ReviewboardConnection:
    def __init__(self, config: ConnectionConfig, http: requests.Session | None = None):
        self.config = config
        self.session = ReviewboardSession(config, http=http)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def ensure_authenticated(self) -> None:
        self.session.ensure_authenticated()

    def logout(self) -> bool:
        return self.session.logout()

    def close(self) -> None:
        self.session.close()

    def review_number_to_url(self, number: str | int) -> str:
        return review_number_to_url(self.base_url, number)

    def build_review_url(self, text: str) -> str:
        """Canonical review URL for the first number found in ``text`` (id 0 if none)."""
        return review_url_from_text(self.base_url, text)

    def get_pending_reviews(
        self,
        period_in_hours: float = 1,
        restrict_to_account: bool = False,
        repository_id: int = -1,
    ) -> list[ReviewResult]:
        self.ensure_authenticated()
        return select_pending_reviews(self.session, period_in_hours, restrict_to_account, repository_id)

    def get_repositories(self):
        """Return the case-insensitive ``name -> id`` catalog of all repositories."""
        self.ensure_authenticated()
        return fetch_catalog(self.session, repository_list_url(self.base_url))

    def get_properties(self, review_url: str) -> dict[str, str]:
        """Build parameters for the orchestrator: the review's branch and repository."""
        self.ensure_authenticated()
        item = self.session.fetch(api_url_for_review(review_url), "review_request")
        return {
            "REVIEW_BRANCH": item.branch or DEFAULT_BRANCH,
            "REVIEW_REPOSITORY": item.repository_title or UNKNOWN_REPOSITORY,
        }

    def get_diff(self, review_url: str) -> str:
        """Return the latest uploaded patch of a review as text."""
        self.ensure_authenticated()
        diffs = api_url_for_review(review_url, "diffs")
        diff_set = self.session.fetch(diffs, "diff_list")
        if diff_set.count < 1:
            raise PreconditionError(f"Review {review_url} has no diffs")
        return self.session.get_patch(f"{diffs}{diff_set.count}/")

    def post_comment(self, review_url: str, body: str, ship_it: bool = False, markdown: bool = False) -> bool:
        """Publish a top-level review. Returns True only if the server confirms it.

        Never raises for server or transport failures; a malformed review URL
        still raises PreconditionError.
        """
        url = api_url_for_review(review_url, "reviews")
        data = {
            "body_top": body,
            "public": "true",
            "ship_it": "true" if ship_it else "false",
        }
        if markdown:
            data["body_top_text_type"] = "markdown"
        try:
            self.ensure_authenticated()
            response = self.session.post_form(url, data)
        except (ReviewboardError, requests.RequestException) as e:
            logger.warning("Posting comment to %s failed (%s): %s", review_url, type(e).__name__, e)
            return False
        if response.status_code not in _SUCCESS_STATUSES:
            logger.warning("Posting comment to %s was rejected: HTTP status=%d", review_url, response.status_code)
            return False
        return True

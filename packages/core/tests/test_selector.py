"""Tests for the pending review selection pipeline."""

from datetime import datetime, timedelta, timezone

from reviewbot_core.rb.decoding import decode, format_timestamp
from reviewbot_core.rb.models import ReviewItem, ReviewResult
from reviewbot_core.selector import filter_hot, select_pending_reviews, sort_by_recency

BASE = "https://rb.example.com/"
PENDING_URL = f"{BASE}api/review-requests/?status=pending&max-results=200"
T = datetime(2013, 8, 25, 12, 0, tzinfo=timezone.utc)


def _ts(value: datetime) -> str:
    return format_timestamp(value)


def _review_list(*items: str) -> str:
    return (
        f"<rsp><stat>ok</stat><total_results>{len(items)}</total_results>"
        f"<review_requests><array>{''.join(items)}</array></review_requests></rsp>"
    )


def _review(review_id: int, last_updated: datetime, branch: str = "", repository: str = "") -> str:
    links = f"<links><repository><title>{repository}</title></repository></links>" if repository else ""
    return (
        f"<item><id>{review_id}</id><branch>{branch}</branch>"
        f"<last_updated>{_ts(last_updated)}</last_updated>{links}</item>"
    )


def _diffs(*timestamps: datetime) -> str:
    items = "".join(
        f"<item><revision>{i}</revision><timestamp>{_ts(ts)}</timestamp></item>" for i, ts in enumerate(timestamps, 1)
    )
    return f"<rsp><total_results>{len(timestamps)}</total_results><diffs><array>{items}</array></diffs></rsp>"


def _comments(*entries: tuple[str, datetime]) -> str:
    items = "".join(
        f"<item><timestamp>{_ts(ts)}</timestamp><links><user><title>{author}</title></user></links></item>"
        for author, ts in entries
    )
    return f"<rsp><total_results>{len(entries)}</total_results><reviews><array>{items}</array></reviews></rsp>"


def _diffs_url(review_id: int) -> str:
    return f"{BASE}api/review-requests/{review_id}/diffs/"


def _comments_url(review_id: int) -> str:
    return f"{BASE}api/review-requests/{review_id}/reviews/"


class FakeSession:
    """Serves canned XML by URL and records every fetch in order."""

    base_url = BASE
    username = "jenkins"

    def __init__(self, responses: dict[str, str]):
        self.responses = responses
        self.calls: list[str] = []

    def fetch(self, url: str, shape: str):
        self.calls.append(url)
        return decode(self.responses[url], shape)


def _item(review_id: int, last_updated: datetime | None) -> ReviewItem:
    return ReviewItem(id=review_id, last_updated=last_updated)


class TestSortByRecency:
    def test_newest_first(self):
        items = [_item(1, T - timedelta(hours=2)), _item(2, T), _item(3, T - timedelta(hours=1))]
        assert [i.id for i in sort_by_recency(items)] == [2, 3, 1]

    def test_missing_timestamp_sorts_last_without_raising(self):
        items = [_item(1, None), _item(2, T - timedelta(days=400)), _item(3, T)]
        assert [i.id for i in sort_by_recency(items)] == [3, 2, 1]

    def test_ties_keep_original_order(self):
        items = [_item(1, T), _item(2, T), _item(3, T)]
        assert [i.id for i in sort_by_recency(items)] == [1, 2, 3]

    def test_does_not_mutate_input(self):
        items = [_item(1, T - timedelta(hours=1)), _item(2, T)]
        sort_by_recency(items)
        assert [i.id for i in items] == [1, 2]


class TestFilterHot:
    def _ordered(self):
        return [
            _item(1, T),
            _item(2, T - timedelta(minutes=59)),
            _item(3, T - timedelta(hours=1)),
            _item(4, T - timedelta(minutes=61)),
            _item(5, T - timedelta(hours=5)),
        ]

    def test_one_hour_window_is_inclusive(self):
        assert [i.id for i in filter_hot(self._ordered(), 1)] == [1, 2, 3]

    def test_negative_period_means_one_hour(self):
        assert [i.id for i in filter_hot(self._ordered(), -3)] == [1, 2, 3]

    def test_wider_window(self):
        assert [i.id for i in filter_hot(self._ordered(), 6)] == [1, 2, 3, 4, 5]

    def test_zero_window_keeps_only_newest(self):
        assert [i.id for i in filter_hot(self._ordered(), 0)] == [1]

    def test_every_kept_item_is_within_threshold(self):
        ordered = self._ordered()
        hot = filter_hot(ordered, 2)
        threshold = T - timedelta(hours=2)
        assert all(i.last_updated >= threshold for i in hot)
        assert all(i.last_updated < threshold for i in ordered if i not in hot)

    def test_items_without_timestamp_are_cold(self):
        ordered = sort_by_recency([_item(1, None), _item(2, T)])
        assert [i.id for i in filter_hot(ordered, 1)] == [2]

    def test_all_without_timestamp(self):
        assert filter_hot([_item(1, None)], 1) == []

    def test_empty(self):
        assert filter_hot([], 1) == []


class TestSelectPendingReviews:
    def test_empty_listing_stops_after_one_call(self):
        session = FakeSession({PENDING_URL: _review_list()})
        assert select_pending_reviews(session) == []
        assert session.calls == [PENDING_URL]

    def test_review_with_new_diff_needs_build(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T, branch="feature/x", repository="core")),
                _diffs_url(101): _diffs(T - timedelta(minutes=5)),
                _comments_url(101): _comments(),
            }
        )
        results = select_pending_reviews(session)
        assert results == [
            ReviewResult(
                url=f"{BASE}r/101/",
                last_upload=T - timedelta(minutes=5),
                branch="feature/x",
                repository="core",
            )
        ]

    def test_last_diff_is_the_upload_time(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(T - timedelta(days=2), T - timedelta(hours=3), T - timedelta(minutes=1)),
                _comments_url(101): _comments(("jenkins", T - timedelta(hours=2))),
            }
        )
        [result] = select_pending_reviews(session)
        assert result.last_upload == T - timedelta(minutes=1)

    def test_zero_diffs_never_selected_and_comments_not_fetched(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(),
            }
        )
        assert select_pending_reviews(session) == []
        assert _comments_url(101) not in session.calls

    def test_self_comment_after_upload_marks_handled(self):
        upload = T - timedelta(minutes=10)
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(upload),
                _comments_url(101): _comments(("jenkins", upload + timedelta(seconds=1))),
            }
        )
        assert select_pending_reviews(session) == []

    def test_self_comment_before_upload_still_needs_build(self):
        upload = T - timedelta(minutes=10)
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(upload),
                _comments_url(101): _comments(("jenkins", upload - timedelta(seconds=1))),
            }
        )
        assert [r.url for r in select_pending_reviews(session)] == [f"{BASE}r/101/"]

    def test_self_comment_at_upload_time_does_not_count(self):
        upload = T - timedelta(minutes=10)
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(upload),
                _comments_url(101): _comments(("jenkins", upload)),
            }
        )
        assert len(select_pending_reviews(session)) == 1

    def test_other_reviewers_comments_ignored(self):
        upload = T - timedelta(minutes=10)
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(upload),
                _comments_url(101): _comments(("alice", T), ("Jenkins", T)),
            }
        )
        assert len(select_pending_reviews(session)) == 1

    def test_cold_reviews_are_not_enriched(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T), _review(102, T - timedelta(hours=3))),
                _diffs_url(101): _diffs(T),
                _comments_url(101): _comments(),
            }
        )
        assert [r.url for r in select_pending_reviews(session, period_in_hours=1)] == [f"{BASE}r/101/"]
        assert _diffs_url(102) not in session.calls

    def test_result_order_follows_recency_and_calls_are_sequential(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(
                    _review(101, T - timedelta(minutes=30)),
                    _review(102, T),
                    _review(103, T - timedelta(minutes=45)),
                ),
                _diffs_url(101): _diffs(T - timedelta(minutes=30)),
                _diffs_url(102): _diffs(T),
                _diffs_url(103): _diffs(T - timedelta(minutes=45)),
                _comments_url(101): _comments(),
                _comments_url(102): _comments(),
                _comments_url(103): _comments(),
            }
        )
        results = select_pending_reviews(session)
        assert [r.url for r in results] == [f"{BASE}r/102/", f"{BASE}r/101/", f"{BASE}r/103/"]
        assert session.calls == [
            PENDING_URL,
            _diffs_url(102),
            _diffs_url(101),
            _diffs_url(103),
            _comments_url(102),
            _comments_url(101),
            _comments_url(103),
        ]

    def test_defaults_for_branch_and_repository(self):
        session = FakeSession(
            {
                PENDING_URL: _review_list(_review(101, T)),
                _diffs_url(101): _diffs(T),
                _comments_url(101): _comments(),
            }
        )
        [result] = select_pending_reviews(session)
        assert result.branch == "master"
        assert result.repository == "unknown"

    def test_filters_are_passed_to_listing(self):
        url = f"{BASE}api/review-requests/?status=pending&to-users=jenkins&max-results=200&repository=4"
        session = FakeSession({url: _review_list()})
        assert select_pending_reviews(session, restrict_to_account=True, repository_id=4) == []
        assert session.calls == [url]

"""Tests for the item locator."""

from __future__ import annotations

import logging

import pytest
from helpers.fake_github import BASE, OWNER, REPO, FakeGitHub

from ghfeedback.config import LocatorConfig
from ghfeedback.errors import ItemNotFoundError, NotFoundError, PermissionDeniedError, RemoteError
from ghfeedback.locator import Failed, Found, ItemLocator, NotFound, _attempt
from ghfeedback.models import ItemKind

CURRENT_PR = 7


def _locator(github: FakeGitHub, *, current_pr: int | None = CURRENT_PR, **config) -> ItemLocator:
    return ItemLocator(github, OWNER, REPO, current_pr=current_pr, config=LocatorConfig(**config))


# ---------------------------------------------------------------------------
# Strategy results
# ---------------------------------------------------------------------------


class TestAttempt:
    def test_not_found_is_tagged(self):
        def strategy(_item_id):
            raise NotFoundError("HTTP 404", status_code=404)

        assert isinstance(_attempt(strategy, 1), NotFound)

    def test_other_errors_are_failed(self):
        error = PermissionDeniedError("nope", status_code=403)

        def strategy(_item_id):
            raise error

        result = _attempt(strategy, 1)
        assert isinstance(result, Failed)
        assert result.error is error

    def test_none_is_not_found(self):
        def _try_review(_item_id):
            return None

        result = _attempt(_try_review, 3)
        assert result == NotFound("no review #3")

    def test_item_is_found(self, github):
        github.add_review_comment(1, CURRENT_PR)
        github.add_thread(CURRENT_PR, "PRRT_1", [1])
        result = _attempt(_locator(github)._try_thread, 1)
        assert isinstance(result, Found)
        assert result.item.kind == ItemKind.THREAD


# ---------------------------------------------------------------------------
# Thread strategy
# ---------------------------------------------------------------------------


class TestThreadStrategy:
    def test_detects_thread(self, github):
        github.add_review_comment(456, CURRENT_PR, login="alice")
        github.add_thread(CURRENT_PR, "PRRT_a", [455], path="a.py")
        github.add_thread(CURRENT_PR, "PRRT_b", [450, 456], path="b.py", line=42, resolved=True)

        item = _locator(github).locate(456)

        assert item.kind == ItemKind.THREAD
        assert item.id == 456
        assert item.mutation_handle == "PRRC_456"
        assert item.owner == "alice"
        assert item.pr_number == CURRENT_PR
        assert item.thread_id == "PRRT_b"
        assert item.is_resolved is True
        assert str(item.location) == "b.py:42"

    def test_later_strategies_never_called(self, github):
        github.add_review_comment(456, CURRENT_PR)
        github.add_thread(CURRENT_PR, "PRRT_1", [456])

        _locator(github).locate(456)

        assert github.calls_matching("issues/comments") == []
        assert github.calls_matching("/reviews/") == []
        assert github.calls_matching("pulls?state") == []

    def test_pagination_stops_at_matching_page(self):
        github = FakeGitHub(thread_page_size=1)
        github.add_review_comment(30, CURRENT_PR)
        for n in (10, 20, 30, 40, 50):
            github.add_thread(CURRENT_PR, f"PRRT_{n}", [n])

        item = _locator(github).locate(30)

        assert item.thread_id == "PRRT_30"
        assert len(github.calls_matching("ReviewThreads")) == 3

    def test_pr_taken_from_comment_not_branch(self, github):
        github.add_review_comment(456, 99)
        github.add_thread(99, "PRRT_1", [456])
        assert _locator(github).locate(456).pr_number == 99

    def test_deleted_author_is_ghost(self, github):
        github.add_review_comment(456, CURRENT_PR, login="")
        github.add_thread(CURRENT_PR, "PRRT_1", [456])
        assert _locator(github).locate(456).owner == "ghost"

    def test_missing_thread_is_fatal(self, github):
        github.add_review_comment(456, CURRENT_PR)
        github.add_issue_comment(456, CURRENT_PR)

        with pytest.raises(RemoteError, match="Thread containing comment #456 not found") as exc_info:
            _locator(github).locate(456)

        assert not isinstance(exc_info.value, NotFoundError)
        assert github.calls_matching("issues/comments") == []

    def test_unparseable_pr_url_is_fatal(self, github):
        github.resources[f"{BASE}/pulls/comments/456"] = {"id": 456, "node_id": "X", "pull_request_url": ""}
        with pytest.raises(RemoteError, match="Could not determine PR"):
            _locator(github).locate(456)


# ---------------------------------------------------------------------------
# Fallthrough and propagation
# ---------------------------------------------------------------------------


class TestStrategyOrder:
    def test_falls_through_to_comment(self, github):
        github.add_issue_comment(321, 12, login="bob")

        item = _locator(github).locate(321)

        assert item.kind == ItemKind.COMMENT
        assert item.mutation_handle == "IC_321"
        assert item.pr_number == 12
        assert item.owner == "bob"
        assert item.thread_id is None
        assert item.location is None
        assert github.calls_matching("/reviews/") == []

    def test_non_404_thread_failure_propagates(self, github):
        error = PermissionDeniedError("Resource not accessible by integration", status_code=403)
        github.fail(f"{BASE}/pulls/comments/5", error)
        github.add_issue_comment(5, CURRENT_PR)

        with pytest.raises(PermissionDeniedError) as exc_info:
            _locator(github).locate(5)

        assert exc_info.value is error
        assert github.calls_matching("issues/comments") == []
        assert github.calls_matching("/reviews/") == []

    def test_non_404_comment_failure_propagates(self, github):
        github.fail(f"{BASE}/issues/comments/5", RemoteError("connection reset"))
        with pytest.raises(RemoteError, match="connection reset"):
            _locator(github).locate(5)
        assert github.calls_matching("/reviews/") == []

    def test_nothing_found(self, github):
        github.set_recent_prs([7, 6, 5])
        with pytest.raises(ItemNotFoundError, match=r"Could not find item #404.*20 most recently updated PRs"):
            _locator(github).locate(404)


# ---------------------------------------------------------------------------
# Review strategy
# ---------------------------------------------------------------------------


class TestReviewStrategy:
    def test_review_with_body_targets_review(self, github):
        github.add_review(789, CURRENT_PR, body="Looks good overall", comment_ids=[1, 2])
        github.add_thread(CURRENT_PR, "PRRT_1", [1], path="a.py", line=3)
        github.add_thread(CURRENT_PR, "PRRT_2", [2], path="b.py", line=4, resolved=True)
        github.add_thread(CURRENT_PR, "PRRT_other", [50, 1])

        item = _locator(github).locate(789)

        assert item.kind == ItemKind.REVIEW
        assert item.mutation_handle == "PRR_789"
        assert item.owner == "carol"
        assert item.thread_id is None
        assert item.is_resolved is None
        assert [s.thread_id for s in item.sibling_threads] == ["PRRT_1", "PRRT_2"]
        assert [s.is_resolved for s in item.sibling_threads] == [False, True]
        assert item.sibling_threads[0].comment_id == 1

    def test_empty_body_targets_first_comment(self, github):
        github.add_review(789, CURRENT_PR, body="  ", comment_ids=[11, 12])
        github.add_thread(CURRENT_PR, "PRRT_11", [11], path="x.py", line=1, resolved=True)
        github.add_thread(CURRENT_PR, "PRRT_12", [12])

        item = _locator(github).locate(789)

        assert item.mutation_handle == "PRRC_11"
        assert item.thread_id == "PRRT_11"
        assert item.is_resolved is True
        assert str(item.location) == "x.py:1"
        assert [s.thread_id for s in item.sibling_threads] == ["PRRT_12"]

    def test_empty_body_reply_in_another_reviews_thread(self, github):
        github.add_thread(CURRENT_PR, "PRRT_a", [100, 200])
        github.add_review(789, CURRENT_PR, body="", comment_ids=[200])

        item = _locator(github).locate(789)

        assert item.kind == ItemKind.REVIEW
        assert item.thread_id == "PRRT_a"
        assert item.mutation_handle == "PRRC_200"
        assert item.node_id == "PRR_789"
        # The thread was opened by another review, so it is not a sibling either
        assert item.sibling_threads == []

    def test_empty_body_without_comments_targets_review(self, github):
        github.add_review(789, CURRENT_PR)

        item = _locator(github).locate(789)

        assert item.mutation_handle == "PRR_789"
        assert item.thread_id is None
        assert item.sibling_threads == []

    def test_empty_body_with_missing_thread_is_fatal(self, github):
        github.add_review(789, CURRENT_PR, comment_ids=[11])
        with pytest.raises(RemoteError, match="Thread containing comment #11 of review #789"):
            _locator(github).locate(789)

    def test_found_on_current_pr_without_search(self, github):
        github.add_review(789, CURRENT_PR, body="hi")
        _locator(github).locate(789)
        assert github.calls_matching("pulls?state") == []

    def test_searches_recent_prs_skipping_current(self, github, caplog):
        github.set_recent_prs([CURRENT_PR, 6, 5, 4])
        github.add_review(789, 5, body="hi")

        with caplog.at_level(logging.WARNING, logger="ghfeedback"):
            item = _locator(github).locate(789)

        assert item.pr_number == 5
        review_fetches = github.calls_matching("/reviews/789")
        assert f"GET {BASE}/pulls/{CURRENT_PR}/reviews/789" in review_fetches
        assert review_fetches.count(f"GET {BASE}/pulls/{CURRENT_PR}/reviews/789") == 1
        assert f"GET {BASE}/pulls/4/reviews/789" not in review_fetches
        assert "not in current PR" in caplog.text

    def test_without_branch_pr_searches_everything(self, github):
        github.set_recent_prs([3])
        github.add_review(789, 3, body="hi")
        assert _locator(github, current_pr=None).locate(789).pr_number == 3

    def test_search_limit_is_configurable(self, github):
        github.set_recent_prs([6, 5, 4], limit=2)
        github.add_review(789, 4, body="hi")

        with pytest.raises(ItemNotFoundError, match="2 most recently updated PRs"):
            _locator(github, review_search_limit=2).locate(789)

        assert f"GET {BASE}/pulls/4/reviews/789" not in github.calls

    def test_search_error_propagates(self, github):
        github.set_recent_prs([6, 5])
        github.fail(f"{BASE}/pulls/6/reviews/789", RemoteError("HTTP 500"))
        github.add_review(789, 5, body="hi")

        with pytest.raises(RemoteError, match="HTTP 500"):
            _locator(github).locate(789)

    def test_comment_ceiling_is_logged(self, github, caplog):
        github.add_review(789, CURRENT_PR, body="hi", comment_ids=[1, 2], comment_limit=2)
        github.add_thread(CURRENT_PR, "PRRT_1", [1])
        github.add_thread(CURRENT_PR, "PRRT_2", [2])

        with caplog.at_level(logging.WARNING, logger="ghfeedback"):
            item = _locator(github, review_comment_limit=2).locate(789)

        assert len(item.sibling_threads) == 2
        assert "at least 2 comments" in caplog.text


# ---------------------------------------------------------------------------
# Lookup by a known kind
# ---------------------------------------------------------------------------


class TestLocateAs:
    def test_comment_skips_thread_strategy(self, github):
        github.add_issue_comment(5, CURRENT_PR)

        item = _locator(github).locate_as(ItemKind.COMMENT, 5)

        assert item.kind == ItemKind.COMMENT
        assert item.node_id == "IC_5"
        assert github.calls_matching("pulls/comments") == []

    def test_wrong_kind_is_not_found(self, github):
        github.add_issue_comment(5, CURRENT_PR)
        with pytest.raises(ItemNotFoundError, match=r"Could not find thread #5\.$"):
            _locator(github).locate_as(ItemKind.THREAD, 5)

    def test_review_message_names_search_bound(self, github):
        github.set_recent_prs([])
        with pytest.raises(ItemNotFoundError, match="Could not find review #9. Reviews are only searched"):
            _locator(github).locate_as(ItemKind.REVIEW, 9)

    def test_failure_propagates(self, github):
        github.fail(f"{BASE}/issues/comments/5", PermissionDeniedError("nope", status_code=403))
        with pytest.raises(PermissionDeniedError):
            _locator(github).locate_as(ItemKind.COMMENT, 5)

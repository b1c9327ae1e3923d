"""Item locator: work out what a bare numeric feedback id refers to.

Three strategies are tried in a fixed order (thread, conversation comment,
review). Each returns a tagged result; only :class:`NotFound` lets the
locator move on to the next strategy, a :class:`Failed` aborts the lookup.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ghfeedback.config import LocatorConfig
from ghfeedback.errors import FeedbackError, ItemNotFoundError, NotFoundError, RemoteError
from ghfeedback.models import FeedbackItem, ItemKind, Location, SiblingThread
from ghfeedback.remote import dig

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

_PULL_URL_RE = re.compile(r"/pulls/(\d+)$")
_ISSUE_URL_RE = re.compile(r"/issues/(\d+)$")

# Lightweight: only thread ids, state, anchor and the comment ids of each thread
THREAD_LOOKUP_QUERY = """
query ReviewThreads($owner: String!, $repo: String!, $pr: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          isOutdated
          path
          line
          comments(first: 100) {
            nodes { databaseId }
          }
        }
      }
    }
  }
}
"""


# ---------------------------------------------------------------------------
# Strategy results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Found:
    item: FeedbackItem


@dataclass(frozen=True)
class NotFound:
    reason: str


@dataclass(frozen=True)
class Failed:
    error: FeedbackError


LocateResult = Found | NotFound | Failed


def _attempt(strategy: Callable[[int], FeedbackItem | None], item_id: int) -> LocateResult:
    """Run one strategy and tag its outcome."""
    try:
        item = strategy(item_id)
    except NotFoundError as exc:
        return NotFound(str(exc))
    except FeedbackError as exc:
        return Failed(exc)
    if item is None:
        return NotFound(f"no {strategy.__name__.removeprefix('_try_')} #{item_id}")
    return Found(item)


# ---------------------------------------------------------------------------
# Thread helpers
# ---------------------------------------------------------------------------


def _extract_threads(response: dict[str, Any]) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    threads = dig(response, "data", "repository", "pullRequest", "reviewThreads", context="reviewThreads response")
    return threads.get("pageInfo") or {}, threads.get("nodes") or []


def _comment_ids(thread: dict[str, Any]) -> list[int]:
    return [c["databaseId"] for c in (thread.get("comments") or {}).get("nodes") or [] if c.get("databaseId")]


def _root_comment_id(thread: dict[str, Any]) -> int | None:
    ids = _comment_ids(thread)
    return ids[0] if ids else None


def _location(thread: dict[str, Any]) -> Location | None:
    path = thread.get("path")
    return Location(path=path, line=thread.get("line")) if path else None


def _owner_login(payload: dict[str, Any]) -> str:
    user = payload.get("user") or {}
    return user.get("login") or "ghost"


def _pr_from_url(url: str | None, pattern: re.Pattern[str], what: str) -> int:
    match = pattern.search(url or "")
    if not match:
        msg = f"Could not determine PR for {what}."
        raise RemoteError(msg)
    return int(match.group(1))


class ItemLocator:
    """Map ``(repository, numeric id)`` to exactly one :class:`FeedbackItem`."""

    def __init__(
        self,
        remote: RemoteAccess,
        owner: str,
        repo: str,
        *,
        current_pr: int | None = None,
        config: LocatorConfig | None = None,
    ) -> None:
        self.remote = remote
        self.owner = owner
        self.repo = repo
        self.current_pr = current_pr
        self.config = config or LocatorConfig()

    @property
    def _base(self) -> str:
        return f"repos/{self.owner}/{self.repo}"

    @property
    def strategies(self) -> tuple[Callable[[int], FeedbackItem | None], ...]:
        return (self._try_thread, self._try_comment, self._try_review)

    def locate(self, item_id: int) -> FeedbackItem:
        """Try each strategy in order and return the first item found.

        Raises:
            ItemNotFoundError: If no strategy finds the id.
            FeedbackError: Any non-404 failure, as soon as a strategy hits it.
        """
        logger.info("Detecting item type for #%d...", item_id)
        for strategy in self.strategies:
            result = _attempt(strategy, item_id)
            match result:
                case Found(item=item):
                    logger.info("Found %s #%d by @%s", item.kind, item.id, item.owner)
                    return item
                case Failed(error=error):
                    raise error
                case NotFound(reason=reason):
                    logger.debug("%s: %s", strategy.__name__, reason)

        msg = (
            f"Could not find item #{item_id}. Ensure you're on the correct branch for this PR. "
            f"Reviews are only searched on the current branch's PR and the "
            f"{self.config.review_search_limit} most recently updated PRs."
        )
        raise ItemNotFoundError(msg)

    def locate_as(self, kind: ItemKind, item_id: int) -> FeedbackItem:
        """Look *item_id* up as one specific kind only.

        Raises:
            ItemNotFoundError: If no item of that kind has the id.
        """
        strategy = {
            ItemKind.THREAD: self._try_thread,
            ItemKind.COMMENT: self._try_comment,
            ItemKind.REVIEW: self._try_review,
        }[kind]
        match _attempt(strategy, item_id):
            case Found(item=item):
                return item
            case Failed(error=error):
                raise error
        msg = f"Could not find {kind} #{item_id}."
        if kind == ItemKind.REVIEW:
            msg += (
                f" Reviews are only searched on the current branch's PR and the "
                f"{self.config.review_search_limit} most recently updated PRs."
            )
        raise ItemNotFoundError(msg)

    # -- thread strategy -----------------------------------------------------

    def _try_thread(self, item_id: int) -> FeedbackItem:
        comment = self.remote.fetch_resource(f"{self._base}/pulls/comments/{item_id}")
        pr_number = _pr_from_url(comment.get("pull_request_url"), _PULL_URL_RE, f"review comment #{item_id}")
        thread = self.find_thread_for_comment(pr_number, item_id)
        if thread is None:
            msg = f"Thread containing comment #{item_id} not found in PR #{pr_number}."
            raise RemoteError(msg)

        return FeedbackItem(
            kind=ItemKind.THREAD,
            id=item_id,
            mutation_handle=comment["node_id"],
            node_id=comment["node_id"],
            owner=_owner_login(comment),
            pr_number=pr_number,
            location=_location(thread),
            thread_id=thread["id"],
            is_resolved=bool(thread.get("isResolved")),
        )

    def iter_threads(self, pr_number: int) -> Iterator[dict[str, Any]]:
        """Yield the PR's review threads, one page fetched at a time."""
        variables = {"owner": self.owner, "repo": self.repo, "pr": pr_number}
        for page in self.remote.iter_pages(THREAD_LOOKUP_QUERY, variables, _extract_threads):
            yield from page

    def find_thread_for_comment(self, pr_number: int, comment_id: int) -> dict[str, Any] | None:
        """Find the thread holding *comment_id*, stopping at the page that contains it."""
        for thread in self.iter_threads(pr_number):
            if comment_id in _comment_ids(thread):
                return thread
        return None

    # -- comment strategy ----------------------------------------------------

    def _try_comment(self, item_id: int) -> FeedbackItem:
        comment = self.remote.fetch_resource(f"{self._base}/issues/comments/{item_id}")
        pr_number = _pr_from_url(comment.get("issue_url"), _ISSUE_URL_RE, f"comment #{item_id}")
        return FeedbackItem(
            kind=ItemKind.COMMENT,
            id=item_id,
            mutation_handle=comment["node_id"],
            node_id=comment["node_id"],
            owner=_owner_login(comment),
            pr_number=pr_number,
        )

    # -- review strategy -----------------------------------------------------

    def _fetch_review(self, pr_number: int, review_id: int) -> dict[str, Any] | None:
        try:
            return self.remote.fetch_resource(f"{self._base}/pulls/{pr_number}/reviews/{review_id}")
        except NotFoundError:
            return None

    def _try_review(self, item_id: int) -> FeedbackItem | None:
        if self.current_pr is not None:
            review = self._fetch_review(self.current_pr, item_id)
            if review is not None:
                return self._review_item(self.current_pr, review)

        limit = self.config.review_search_limit
        logger.warning(
            "Review #%d not in current PR, searching the %d most recently updated PRs (this may be slow)...",
            item_id,
            limit,
        )
        prs = self.remote.fetch_resource(
            f"{self._base}/pulls?state=all&sort=updated&direction=desc&per_page={limit}",
        )
        for pr in (prs or [])[:limit]:
            number = pr["number"]
            if number == self.current_pr:
                continue
            review = self._fetch_review(number, item_id)
            if review is not None:
                return self._review_item(number, review)
        return None

    def _review_item(self, pr_number: int, review: dict[str, Any]) -> FeedbackItem:
        """Build a review item, choosing its mutation handle and sibling threads.

        A review with a body is targeted directly and every thread it opened is
        a sibling. A body-less review is only a container in the GitHub UI, so
        its first comment becomes the handle and that comment's thread the
        target; the remaining threads are siblings.
        """
        review_id = review["id"]
        comments = self._review_comments(pr_number, review_id)
        comment_ids = {c["id"] for c in comments}
        all_threads = list(self.iter_threads(pr_number))
        # A thread belongs to the review that posted its root comment
        threads = [t for t in all_threads if _root_comment_id(t) in comment_ids]
        siblings = [
            SiblingThread(
                thread_id=t["id"],
                comment_id=_root_comment_id(t),
                is_resolved=bool(t.get("isResolved")),
                location=_location(t),
            )
            for t in threads
        ]

        item = FeedbackItem(
            kind=ItemKind.REVIEW,
            id=review_id,
            mutation_handle=review["node_id"],
            node_id=review["node_id"],
            owner=_owner_login(review),
            pr_number=pr_number,
            sibling_threads=siblings,
        )
        if (review.get("body") or "").strip() or not comments:
            return item

        first = comments[0]
        # A reply to someone else's thread lands in a review of its own, so search every thread
        target = next((t for t in all_threads if first["id"] in _comment_ids(t)), None)
        if target is None:
            msg = f"Thread containing comment #{first['id']} of review #{review_id} not found in PR #{pr_number}."
            raise RemoteError(msg)

        return item.model_copy(
            update={
                "mutation_handle": first["node_id"],
                "thread_id": target["id"],
                "is_resolved": bool(target.get("isResolved")),
                "location": _location(target),
                "sibling_threads": [s for s in siblings if s.thread_id != target["id"]],
            },
        )

    def _review_comments(self, pr_number: int, review_id: int) -> list[dict[str, Any]]:
        limit = self.config.review_comment_limit
        comments = (
            self.remote.fetch_resource(
                f"{self._base}/pulls/{pr_number}/reviews/{review_id}/comments?per_page={limit}",
            )
            or []
        )
        if len(comments) >= limit:
            logger.warning(
                "Review #%d has at least %d comments; threads beyond that are not checked",
                review_id,
                limit,
            )
        return comments

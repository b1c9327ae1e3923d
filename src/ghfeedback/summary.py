"""PR summary: every thread, conversation comment and review with its derived status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ghfeedback.models import FeedbackSummary, ItemKind, Location, SummaryItem, SummaryResponse
from ghfeedback.remote import dig
from ghfeedback.status import derive_status, viewer_reactions

if TYPE_CHECKING:
    from collections.abc import Collection

    from ghfeedback.remote import PageExtractor, RemoteAccess

logger = logging.getLogger(__name__)

PR_HEADER_QUERY = """
query PullRequestHeader($owner: String!, $repo: String!, $pr: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) { title url }
  }
}
"""

SUMMARY_REVIEWS_QUERY = """
query SummaryReviews($owner: String!, $repo: String!, $pr: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviews(first: 50, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          databaseId
          author { login }
          state
          body
          submittedAt
          isMinimized
          reactionGroups { content viewerHasReacted }
        }
      }
    }
  }
}
"""

SUMMARY_COMMENTS_QUERY = """
query SummaryComments($owner: String!, $repo: String!, $pr: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      comments(first: 50, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          databaseId
          author { login }
          body
          createdAt
          isMinimized
          reactionGroups { content viewerHasReacted }
        }
      }
    }
  }
}
"""

SUMMARY_THREADS_QUERY = """
query SummaryThreads($owner: String!, $repo: String!, $pr: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviewThreads(first: 50, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          isOutdated
          path
          line
          comments(first: 100) {
            nodes {
              databaseId
              author { login }
              body
              createdAt
              isMinimized
              reactionGroups { content viewerHasReacted }
            }
          }
        }
      }
    }
  }
}
"""


def _connection(name: str) -> PageExtractor:
    def extract(response: dict[str, Any]) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        conn = dig(response, "data", "repository", "pullRequest", name, context=f"{name} response")
        return conn.get("pageInfo") or {}, conn.get("nodes") or []

    return extract


def _login(node: dict[str, Any]) -> str:
    author = node.get("author") or {}
    return author.get("login") or "ghost"


def _visible(node: dict[str, Any], *, hide_hidden: bool, ignored: Collection[str]) -> bool:
    if hide_hidden and node.get("isMinimized"):
        return False
    return _login(node) not in ignored


def review_items(
    nodes: list[dict[str, Any]],
    *,
    hide_hidden: bool = False,
    ignored: Collection[str] = (),
) -> list[SummaryItem]:
    """Reviews with a body. Body-less reviews only wrap threads, which are listed on their own."""
    return [
        SummaryItem(
            kind=ItemKind.REVIEW,
            id=r["databaseId"],
            timestamp=r.get("submittedAt") or "",
            status=derive_status(viewer_reactions(r.get("reactionGroups") or []), bool(r.get("isMinimized"))),
            author=_login(r),
            body=r["body"],
        )
        for r in nodes
        if (r.get("body") or "").strip() and _visible(r, hide_hidden=hide_hidden, ignored=ignored)
    ]


def comment_items(
    nodes: list[dict[str, Any]],
    *,
    hide_hidden: bool = False,
    ignored: Collection[str] = (),
) -> list[SummaryItem]:
    return [
        SummaryItem(
            kind=ItemKind.COMMENT,
            id=c["databaseId"],
            timestamp=c.get("createdAt") or "",
            status=derive_status(viewer_reactions(c.get("reactionGroups") or []), bool(c.get("isMinimized"))),
            author=_login(c),
            body=c["body"],
        )
        for c in nodes
        if (c.get("body") or "").strip() and _visible(c, hide_hidden=hide_hidden, ignored=ignored)
    ]


def thread_items(
    nodes: list[dict[str, Any]],
    *,
    hide_hidden: bool = False,
    hide_resolved: bool = False,
    ignored: Collection[str] = (),
) -> list[SummaryItem]:
    """One item per thread, keyed by its first visible comment; later comments become responses.

    Status comes from the viewer's reactions on that first comment, the same
    handle the workflow actions react on.
    """
    items: list[SummaryItem] = []
    for thread in nodes:
        is_resolved = bool(thread.get("isResolved"))
        if hide_resolved and is_resolved:
            continue
        comments = [
            c
            for c in (thread.get("comments") or {}).get("nodes") or []
            if _visible(c, hide_hidden=hide_hidden, ignored=ignored)
        ]
        if not comments:
            continue
        first, *rest = comments
        path = thread.get("path")
        items.append(
            SummaryItem(
                kind=ItemKind.THREAD,
                id=first["databaseId"],
                timestamp=first.get("createdAt") or "",
                status=derive_status(viewer_reactions(first.get("reactionGroups") or []), is_resolved),
                author=_login(first),
                location=Location(path=path, line=thread.get("line")) if path else None,
                body=first.get("body") or "",
                responses=[
                    SummaryResponse(author=_login(c), timestamp=c.get("createdAt") or "", body=c.get("body") or "")
                    for c in rest
                ],
            ),
        )
    return items


def fetch_summary(
    remote: RemoteAccess,
    owner: str,
    repo: str,
    pr_number: int,
    *,
    hide_hidden: bool = False,
    hide_resolved: bool = False,
    ignored_authors: Collection[str] = (),
) -> FeedbackSummary:
    """Collect all feedback on *pr_number*, oldest first.

    *hide_resolved* drops resolved threads; *hide_hidden* drops minimized
    comments and reviews (and minimized comments inside threads).
    """
    variables = {"owner": owner, "repo": repo, "pr": pr_number}
    header = dig(remote.query(PR_HEADER_QUERY, variables), "data", "repository", "pullRequest", context="pull request")

    logger.info("Fetching feedback for PR #%d...", pr_number)
    reviews = remote.paginate(SUMMARY_REVIEWS_QUERY, variables, _connection("reviews"))
    comments = remote.paginate(SUMMARY_COMMENTS_QUERY, variables, _connection("comments"))
    threads = remote.paginate(SUMMARY_THREADS_QUERY, variables, _connection("reviewThreads"))

    items = [
        *review_items(reviews, hide_hidden=hide_hidden, ignored=ignored_authors),
        *thread_items(threads, hide_hidden=hide_hidden, hide_resolved=hide_resolved, ignored=ignored_authors),
        *comment_items(comments, hide_hidden=hide_hidden, ignored=ignored_authors),
    ]
    # GitHub timestamps are ISO 8601 in UTC, so they sort as strings
    items.sort(key=lambda item: item.timestamp)
    return FeedbackSummary(
        pr_number=pr_number,
        pr_url=header.get("url") or "",
        pr_title=header.get("title") or "",
        items=items,
    )

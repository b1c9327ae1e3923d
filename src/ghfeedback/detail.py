"""Full content of a single feedback item."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ghfeedback.models import DetailComment, ItemDetail, ItemKind
from ghfeedback.reactions import Reaction
from ghfeedback.remote import dig

if TYPE_CHECKING:
    from ghfeedback.models import FeedbackItem, WorkflowStatus
    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

ITEM_DETAIL_QUERY = """
query ItemDetail($id: ID!) {
  node(id: $id) {
    ... on PullRequestReviewThread {
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
          reactionGroups { content reactors { totalCount } }
        }
      }
    }
    ... on IssueComment {
      body
      createdAt
      url
      reactionGroups { content reactors { totalCount } }
    }
    ... on PullRequestReview {
      body
      state
      submittedAt
      url
      reactionGroups { content reactors { totalCount } }
    }
  }
}
"""


def reaction_counts(groups: list[dict[str, Any]]) -> dict[str, int]:
    """Non-zero reaction counts from ``reactionGroups``, keyed by the short reaction name."""
    counts: dict[str, int] = {}
    for group in groups:
        total = (group.get("reactors") or {}).get("totalCount") or 0
        reaction = Reaction.from_graphql(group.get("content", ""))
        if total and reaction is not None:
            counts[reaction.value] = total
    return counts


def _detail_node_id(item: FeedbackItem) -> str:
    if item.kind == ItemKind.THREAD and item.thread_id:
        return item.thread_id
    return item.node_id or item.mutation_handle


def fetch_item_detail(remote: RemoteAccess, item: FeedbackItem, status: WorkflowStatus) -> ItemDetail:
    """Fetch the full body, reactions and (for threads) every comment of *item*."""
    node = dig(remote.query(ITEM_DETAIL_QUERY, {"id": _detail_node_id(item)}), "data", "node", context=f"{item.kind}")

    if item.kind == ItemKind.THREAD:
        comments = [
            DetailComment(
                id=c["databaseId"],
                author=(c.get("author") or {}).get("login") or "ghost",
                body=c.get("body") or "",
                created_at=c.get("createdAt") or "",
                reactions=reaction_counts(c.get("reactionGroups") or []),
            )
            for c in (node.get("comments") or {}).get("nodes") or []
        ]
        first = comments[0] if comments else None
        return ItemDetail(
            item=item,
            status=status,
            body=first.body if first else "",
            created_at=first.created_at if first else "",
            is_outdated=bool(node.get("isOutdated")),
            reactions=first.reactions if first else {},
            comments=comments,
        )

    return ItemDetail(
        item=item,
        status=status,
        body=node.get("body") or "",
        url=node.get("url") or "",
        created_at=node.get("submittedAt") or node.get("createdAt") or "",
        review_state=node.get("state"),
        reactions=reaction_counts(node.get("reactionGroups") or []),
    )

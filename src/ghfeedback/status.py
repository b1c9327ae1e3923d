"""Status resolver: derive a workflow status from reactions and resolution state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghfeedback.models import ItemStatus, WorkflowStatus
from ghfeedback.reactions import FINAL_REACTIONS, Reaction

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ghfeedback.models import FeedbackItem
    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

DONE_STATUSES: frozenset[WorkflowStatus] = frozenset({
    WorkflowStatus.AGREED,
    WorkflowStatus.DISAGREED,
    WorkflowStatus.ACKNOWLEDGED,
})

_FINAL_STATUS: dict[Reaction, WorkflowStatus] = {
    Reaction.THUMBS_UP: WorkflowStatus.AGREED,
    Reaction.THUMBS_DOWN: WorkflowStatus.DISAGREED,
    Reaction.ROCKET: WorkflowStatus.ACKNOWLEDGED,
}

ITEM_REACTIONS_QUERY = """
query ItemReactions($id: ID!) {
  node(id: $id) {
    ... on PullRequestReviewComment {
      isMinimized
      reactionGroups { content viewerHasReacted }
    }
    ... on IssueComment {
      isMinimized
      reactionGroups { content viewerHasReacted }
    }
    ... on PullRequestReview {
      isMinimized
      reactionGroups { content viewerHasReacted }
    }
  }
}
"""


def derive_status(reactions: Iterable[Reaction], done: bool) -> WorkflowStatus:
    """Map the viewer's reactions plus the done bit to a workflow status.

    More than one final reaction (+1, -1, rocket) means the item was triaged
    inconsistently, so it is reported as in-progress whatever the done bit says.
    Done items without a final reaction were closed outside the workflow and
    are in-progress too.
    """
    present = frozenset(reactions)
    finals = present & FINAL_REACTIONS
    if len(finals) > 1:
        return WorkflowStatus.IN_PROGRESS

    if done:
        if finals:
            (final,) = finals
            return _FINAL_STATUS[final]
        return WorkflowStatus.IN_PROGRESS

    if Reaction.CONFUSED in present:
        return WorkflowStatus.AWAITING_REPLY
    if present:
        return WorkflowStatus.IN_PROGRESS
    return WorkflowStatus.PENDING


def is_status_done(status: WorkflowStatus) -> bool:
    """True for agreed, disagreed and acknowledged."""
    return status in DONE_STATUSES


def viewer_reactions(reaction_groups: Iterable[dict]) -> list[Reaction]:
    """Pick the reactions the viewer applied out of GraphQL ``reactionGroups``."""
    found: list[Reaction] = []
    for group in reaction_groups:
        if not group.get("viewerHasReacted"):
            continue
        reaction = Reaction.from_graphql(group.get("content", ""))
        if reaction is not None:
            found.append(reaction)
    return found


def fetch_item_status(remote: RemoteAccess, item: FeedbackItem) -> ItemStatus:
    """Read the viewer's reactions and the done bit for *item* and derive its status."""
    result = remote.query(ITEM_REACTIONS_QUERY, {"id": item.mutation_handle})
    node = (result.get("data") or {}).get("node")
    if not node:
        logger.debug("Node %s not found when reading status", item.mutation_handle)
        return ItemStatus(status=WorkflowStatus.PENDING)

    reactions = viewer_reactions(node.get("reactionGroups") or [])
    is_minimized = bool(node.get("isMinimized"))
    # Threads (and reviews targeting one) are done when resolved, everything else when hidden
    is_done = bool(item.is_resolved) if item.targets_thread else is_minimized

    return ItemStatus(
        status=derive_status(reactions, is_done),
        viewer_reactions=reactions,
        is_minimized=is_minimized,
        is_done=is_done,
    )

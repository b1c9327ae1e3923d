"""Mutation applier: reactions, resolve/unresolve, hide/unhide and replies.

Every primitive is idempotent from the caller's point of view. Mutations
target the item's mutation handle, never its public id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ghfeedback.errors import InvalidInputError, NotFoundError, PermissionDeniedError, RemoteError
from ghfeedback.models import ItemKind, ReplyResult
from ghfeedback.reactions import Classifier
from ghfeedback.remote import dig

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ghfeedback.models import FeedbackItem
    from ghfeedback.reactions import Reaction
    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

# GitHub API limit for comment body length
MAX_COMMENT_LENGTH = 65_536

ADD_REACTION_MUTATION = """
mutation($subjectId: ID!, $content: ReactionContent!) {
  addReaction(input: {subjectId: $subjectId, content: $content}) {
    reaction { content }
  }
}
"""

REMOVE_REACTION_MUTATION = """
mutation($subjectId: ID!, $content: ReactionContent!) {
  removeReaction(input: {subjectId: $subjectId, content: $content}) {
    reaction { content }
  }
}
"""

RESOLVE_THREAD_MUTATION = """
mutation($threadId: ID!) {
  resolveReviewThread(input: {threadId: $threadId}) {
    thread { isResolved }
  }
}
"""

UNRESOLVE_THREAD_MUTATION = """
mutation($threadId: ID!) {
  unresolveReviewThread(input: {threadId: $threadId}) {
    thread { isResolved }
  }
}
"""

MINIMIZE_COMMENT_MUTATION = """
mutation($subjectId: ID!, $classifier: ReportedContentClassifiers!) {
  minimizeComment(input: {subjectId: $subjectId, classifier: $classifier}) {
    minimizedComment { isMinimized minimizedReason }
  }
}
"""

UNMINIMIZE_COMMENT_MUTATION = """
mutation($subjectId: ID!) {
  unminimizeComment(input: {subjectId: $subjectId}) {
    unminimizedComment { isMinimized }
  }
}
"""


def _mutate(remote: RemoteAccess, document: str, variables: dict[str, Any], what: str) -> dict[str, Any]:
    """Run a mutation, turning a permission failure into an actionable message."""
    try:
        return remote.query(document, variables)
    except PermissionDeniedError as exc:
        msg = f"You do not have permission to {what}. Write access to the repository is required. ({exc})"
        raise PermissionDeniedError(msg, status_code=exc.status_code, stderr=exc.stderr) from exc


# ---------------------------------------------------------------------------
# Reactions
# ---------------------------------------------------------------------------


def add_reaction(remote: RemoteAccess, handle: str, reaction: Reaction) -> None:
    """Add the viewer's *reaction* to *handle*. Adding an existing reaction is a no-op on GitHub."""
    logger.info("Adding %s reaction...", reaction)
    _mutate(
        remote,
        ADD_REACTION_MUTATION,
        {"subjectId": handle, "content": reaction.graphql},
        f"react to {handle}",
    )


def remove_reaction(remote: RemoteAccess, handle: str, reaction: Reaction) -> bool:
    """Remove the viewer's *reaction* from *handle*.

    Returns:
        False when there was nothing to remove. An absent reaction is never an error.
    """
    try:
        _mutate(
            remote,
            REMOVE_REACTION_MUTATION,
            {"subjectId": handle, "content": reaction.graphql},
            f"remove a reaction from {handle}",
        )
    except NotFoundError:
        logger.debug("No %s reaction on %s to remove", reaction, handle)
        return False
    return True


def remove_viewer_reactions(
    remote: RemoteAccess,
    handle: str,
    present: Iterable[Reaction],
    kinds: Iterable[Reaction],
) -> list[Reaction]:
    """Remove those of *kinds* the viewer actually applied (listed in *present*).

    Other people's reactions are never touched.
    """
    have = set(present)
    removed: list[Reaction] = []
    for reaction in kinds:
        if reaction in have and remove_reaction(remote, handle, reaction):
            removed.append(reaction)
    return removed


# ---------------------------------------------------------------------------
# Resolve / hide
# ---------------------------------------------------------------------------


def set_resolved(remote: RemoteAccess, thread_id: str, resolved: bool) -> bool:  # noqa: FBT001
    """Resolve or unresolve a review thread. Returns the thread's new resolved flag."""
    if resolved:
        logger.info("Resolving thread...")
        result = _mutate(remote, RESOLVE_THREAD_MUTATION, {"threadId": thread_id}, "resolve this thread")
        return bool(dig(result, "data", "resolveReviewThread", "thread", context="resolve response")["isResolved"])

    logger.info("Unresolving thread...")
    result = _mutate(remote, UNRESOLVE_THREAD_MUTATION, {"threadId": thread_id}, "unresolve this thread")
    return bool(dig(result, "data", "unresolveReviewThread", "thread", context="unresolve response")["isResolved"])


def set_hidden(
    remote: RemoteAccess,
    handle: str,
    hidden: bool,  # noqa: FBT001
    classifier: Classifier = Classifier.RESOLVED,
) -> bool:
    """Hide (minimize) or unhide a comment or review. Returns the new minimized flag."""
    if hidden:
        logger.info("Hiding as %s...", classifier)
        result = _mutate(
            remote,
            MINIMIZE_COMMENT_MUTATION,
            {"subjectId": handle, "classifier": classifier.value},
            "minimize this comment",
        )
        node = dig(result, "data", "minimizeComment", "minimizedComment", context="minimize response")
        return bool(node["isMinimized"])

    logger.info("Unhiding...")
    result = _mutate(remote, UNMINIMIZE_COMMENT_MUTATION, {"subjectId": handle}, "unminimize this comment")
    node = dig(result, "data", "unminimizeComment", "unminimizedComment", context="unminimize response")
    return bool(node["isMinimized"])


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


def reply_prefix(item: FeedbackItem) -> str:
    """Quote line prepended to replies that can't be threaded natively."""
    if item.kind == ItemKind.THREAD:
        return ""
    return f"> Replying to {item.kind} #{item.id}\n\n"


def validate_message(message: str, prefix: str = "") -> str:
    """Return the full reply body, rejecting empty or over-long messages.

    Raises:
        InvalidInputError: If the message is blank or the body exceeds 65,536 characters.
    """
    if not message.strip():
        msg = "Reply message is empty."
        raise InvalidInputError(msg)
    body = prefix + message
    if len(body) > MAX_COMMENT_LENGTH:
        including = " including prefix" if prefix else ""
        msg = (
            f"Message too long ({len(body)} chars{including}). "
            f"GitHub allows a maximum of {MAX_COMMENT_LENGTH} characters."
        )
        raise InvalidInputError(msg)
    return body


def post_reply(remote: RemoteAccess, item: FeedbackItem, message: str, owner: str, repo: str) -> ReplyResult:
    """Reply to *item*: natively for threads, as a quoted PR comment otherwise."""
    body = validate_message(message, reply_prefix(item))
    logger.info("Posting reply...")

    if item.kind == ItemKind.THREAD:
        path = f"repos/{owner}/{repo}/pulls/{item.pr_number}/comments/{item.id}/replies"
        try:
            result = remote.post_resource(path, body=body)
        except NotFoundError as exc:
            msg = (
                f"Unable to reply to thread #{item.id}. "
                "This may be a reply to another comment (can't reply to replies)."
            )
            raise RemoteError(msg, status_code=exc.status_code, stderr=exc.stderr) from exc
    else:
        result = remote.post_resource(f"repos/{owner}/{repo}/issues/{item.pr_number}/comments", body=body)

    if not isinstance(result, dict) or "id" not in result:
        msg = f"Unexpected GitHub reply response: {result!r}"
        raise RemoteError(msg)
    return ReplyResult(id=result["id"], url=result.get("html_url", ""))

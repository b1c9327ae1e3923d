"""Workflow guard: refuse illegal transitions before anything is mutated."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ghfeedback.errors import WorkflowViolation
from ghfeedback.models import ItemKind
from ghfeedback.status import is_status_done

if TYPE_CHECKING:
    from ghfeedback.models import FeedbackItem, SiblingThread, WorkflowStatus


def unresolved_siblings(item: FeedbackItem) -> list[SiblingThread]:
    """Sibling threads that closing *item* would hide while still unresolved.

    The item's own target thread (body-less reviews) is never counted.
    """
    if item.kind != ItemKind.REVIEW:
        return []
    return [s for s in item.sibling_threads if s.thread_id != item.thread_id and not s.is_resolved]


def _describe(sibling: SiblingThread) -> str:
    return f"#{sibling.comment_id} at {sibling.location}" if sibling.location else f"#{sibling.comment_id}"


def block_if_unresolved_siblings(item: FeedbackItem, action: str) -> None:
    """Raise :class:`WorkflowViolation` if closing a review would hide unresolved threads."""
    offenders = unresolved_siblings(item)
    if not offenders:
        return

    lines = [
        f"Cannot {action} review #{item.id} - it would hide unresolved feedback.",
        f"This review has {len(item.sibling_threads)} threads, {len(offenders)} still unresolved:",
        *(f"  - {_describe(s)}" for s in offenders),
        "Handle each thread individually instead:",
        *(f"  gh-feedback <command> {s.comment_id}" for s in offenders),
    ]
    raise WorkflowViolation("\n".join(lines), offenders)


def block_if_done(item: FeedbackItem, status: WorkflowStatus, action: str) -> None:
    """Raise :class:`WorkflowViolation` if *item* already sits in a terminal status."""
    if not is_status_done(status):
        return
    msg = (
        f"Cannot {action} {item.kind} #{item.id}: it is already {status}.\n"
        f"Re-open it first with: gh-feedback start {item.id}"
    )
    raise WorkflowViolation(msg, [item])

"""Workflow actions: the composite start, agree, disagree, ask and ack, plus direct per-kind operations.

Each action runs locate -> derive status -> guard -> mutate, in that order,
and stops at the first error. Once a reply has been posted it is never rolled
back; later failures turn the outcome into a partial success instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghfeedback.config import Config
from ghfeedback.detail import fetch_item_detail
from ghfeedback.errors import FeedbackError
from ghfeedback.gh import parse_repo
from ghfeedback.guard import block_if_done, block_if_unresolved_siblings
from ghfeedback.locator import ItemLocator
from ghfeedback.models import ActionOutcome, ItemKind, OutcomeKind, WorkflowStatus
from ghfeedback.mutations import (
    add_reaction,
    post_reply,
    remove_reaction,
    remove_viewer_reactions,
    set_hidden,
    set_resolved,
    validate_message,
)
from ghfeedback.reactions import Reaction, normalize_classifier, normalize_reaction
from ghfeedback.status import fetch_item_status
from ghfeedback.summary import fetch_summary

if TYPE_CHECKING:
    from ghfeedback.models import FeedbackItem, FeedbackSummary, ItemDetail, ItemStatus, ReplyResult
    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

# Viewer reactions cleared by each action before its own reaction is added
_START_CLEARS = (Reaction.THUMBS_UP, Reaction.THUMBS_DOWN, Reaction.ROCKET, Reaction.CONFUSED)
_AGREE_CLEARS = (Reaction.EYES, Reaction.CONFUSED, Reaction.THUMBS_DOWN, Reaction.ROCKET)
_DISAGREE_CLEARS = (Reaction.EYES, Reaction.CONFUSED, Reaction.THUMBS_UP, Reaction.ROCKET)
_ACK_CLEARS = (Reaction.EYES, Reaction.CONFUSED, Reaction.THUMBS_UP, Reaction.THUMBS_DOWN)
_ASK_CLEARS = (Reaction.EYES,)


class FeedbackWorkflow:
    """Run triage actions against one repository."""

    def __init__(
        self,
        remote: RemoteAccess,
        repo: str,
        config: Config | None = None,
        current_pr: int | None = None,
    ) -> None:
        self.remote = remote
        self.owner, self.repo = parse_repo(repo)
        self.config = config or Config()
        self.locator = ItemLocator(
            remote,
            self.owner,
            self.repo,
            current_pr=current_pr,
            config=self.config.locator,
        )

    # -- reads ---------------------------------------------------------------

    def status(self, item_id: int) -> tuple[FeedbackItem, ItemStatus]:
        """Locate *item_id* and derive its current workflow status."""
        item = self.locator.locate(item_id)
        return item, fetch_item_status(self.remote, item)

    def summary(self, pr_number: int, *, hide_hidden: bool = False, hide_resolved: bool = False) -> FeedbackSummary:
        """List every thread, comment and review on *pr_number* with its status."""
        return fetch_summary(
            self.remote,
            self.owner,
            self.repo,
            pr_number,
            hide_hidden=hide_hidden,
            hide_resolved=hide_resolved,
            ignored_authors=self.config.summary.ignored_authors,
        )

    def detail(self, item_id: int) -> ItemDetail:
        """Locate *item_id* and fetch its full content."""
        item, current = self.status(item_id)
        return fetch_item_detail(self.remote, item, current.status)

    # -- direct operations ---------------------------------------------------
    #
    # Single mutations on an item of a known kind. Unlike the composite
    # actions they skip the guards, and a review is targeted as itself even
    # when it has no body. An empty step list means there was nothing to do.

    def react(
        self,
        kind: ItemKind,
        item_id: int,
        reaction: str,
        *,
        remove: bool = False,
        dry_run: bool = False,
    ) -> ActionOutcome:
        """Add (or with *remove*, take back) one of the viewer's reactions."""
        chosen = normalize_reaction(reaction)
        item, current = self._direct(kind, item_id)
        present = chosen in current.viewer_reactions
        needed = present if remove else not present
        outcome = self._direct_outcome(
            "unreact" if remove else "react",
            item,
            current,
            [f"{'remove' if remove else 'add'} {chosen}"] if needed else [],
            dry_run,
        )
        if dry_run or not needed:
            return outcome
        if remove:
            remove_reaction(self.remote, item.mutation_handle, chosen)
        else:
            add_reaction(self.remote, item.mutation_handle, chosen)
        return outcome

    def hide(self, kind: ItemKind, item_id: int, reason: str | None = None, *, dry_run: bool = False) -> ActionOutcome:
        """Minimize an item. Without *reason* the configured hide reason is used."""
        classifier = normalize_classifier(reason) if reason is not None else self.config.workflow.hide_reason
        item, current = self._direct(kind, item_id)
        steps = [] if current.is_minimized else [f"hide ({classifier})"]
        outcome = self._direct_outcome("hide", item, current, steps, dry_run)
        if steps and not dry_run:
            set_hidden(self.remote, item.mutation_handle, True, classifier)
        return outcome

    def show(self, kind: ItemKind, item_id: int, *, dry_run: bool = False) -> ActionOutcome:
        """Unminimize an item."""
        item, current = self._direct(kind, item_id)
        steps = ["unhide"] if current.is_minimized else []
        outcome = self._direct_outcome("unhide", item, current, steps, dry_run)
        if steps and not dry_run:
            set_hidden(self.remote, item.mutation_handle, False)
        return outcome

    def set_thread_resolved(
        self,
        item_id: int,
        resolved: bool,  # noqa: FBT001
        *,
        dry_run: bool = False,
    ) -> ActionOutcome:
        """Resolve or unresolve the thread started by comment *item_id*."""
        item, current = self._direct(ItemKind.THREAD, item_id)
        action = "resolve" if resolved else "unresolve"
        steps = [] if bool(item.is_resolved) == resolved else [f"{action} thread"]
        outcome = self._direct_outcome(action, item, current, steps, dry_run)
        if steps and not dry_run:
            set_resolved(self.remote, item.thread_id, resolved)
        return outcome

    def reply(self, kind: ItemKind, item_id: int, message: str, *, dry_run: bool = False) -> ActionOutcome:
        """Post *message* as a reply, leaving reactions and state alone."""
        validate_message(message)
        item, current = self._direct(kind, item_id)
        outcome = self._direct_outcome("reply", item, current, ["reply"], dry_run)
        if not dry_run:
            outcome.reply = post_reply(self.remote, item, message, self.owner, self.repo)
        return outcome

    def _direct(self, kind: ItemKind, item_id: int) -> tuple[FeedbackItem, ItemStatus]:
        item = self.locator.locate_as(kind, item_id)
        if item.kind == ItemKind.REVIEW and item.node_id and item.mutation_handle != item.node_id:
            item = item.model_copy(
                update={"mutation_handle": item.node_id, "thread_id": None, "is_resolved": None, "location": None},
            )
        return item, fetch_item_status(self.remote, item)

    @staticmethod
    def _direct_outcome(
        action: str,
        item: FeedbackItem,
        current: ItemStatus,
        steps: list[str],
        dry_run: bool,  # noqa: FBT001
    ) -> ActionOutcome:
        if not steps:
            logger.info("%s #%d: nothing to do", action, item.id)
        return ActionOutcome(action=action, item=item, status_before=current.status, steps=steps, dry_run=dry_run)

    # -- actions -------------------------------------------------------------

    def start(self, item_id: int, *, dry_run: bool = False) -> ActionOutcome:
        """Mark an item as in progress, re-opening it first if it is done."""
        item, current = self.status(item_id)

        reopen = bool(item.is_resolved) if item.targets_thread else current.is_minimized
        steps: list[str] = []
        if reopen:
            steps.append("unresolve thread" if item.targets_thread else "unhide")
        clears = [r for r in _START_CLEARS if r in current.viewer_reactions]
        steps.extend(f"remove {r}" for r in clears)
        steps.append(f"add {Reaction.EYES}")

        outcome = ActionOutcome(
            action="start",
            item=item,
            status_before=current.status,
            status_after=WorkflowStatus.IN_PROGRESS,
            steps=steps,
            dry_run=dry_run,
        )
        if dry_run:
            return outcome

        if reopen:
            self._reopen(item)
        remove_viewer_reactions(self.remote, item.mutation_handle, current.viewer_reactions, clears)
        add_reaction(self.remote, item.mutation_handle, Reaction.EYES)
        logger.info("Marked #%d as in-progress.", item_id)
        return outcome

    def agree(self, item_id: int, message: str, *, dry_run: bool = False) -> ActionOutcome:
        """Reply, thumbs-up and mark done."""
        return self._close(
            item_id,
            message,
            action="agree",
            verb="agree with",
            final=Reaction.THUMBS_UP,
            clears=_AGREE_CLEARS,
            status_after=WorkflowStatus.AGREED,
            dry_run=dry_run,
        )

    def disagree(self, item_id: int, message: str, *, dry_run: bool = False) -> ActionOutcome:
        """Reply, thumbs-down and mark done."""
        return self._close(
            item_id,
            message,
            action="disagree",
            verb="disagree with",
            final=Reaction.THUMBS_DOWN,
            clears=_DISAGREE_CLEARS,
            status_after=WorkflowStatus.DISAGREED,
            dry_run=dry_run,
        )

    def ack(self, item_id: int, message: str | None = None, *, dry_run: bool = False) -> ActionOutcome:
        """Acknowledge an informational item: optional reply, rocket and mark done."""
        return self._close(
            item_id,
            message,
            action="ack",
            verb="ACK",
            final=Reaction.ROCKET,
            clears=_ACK_CLEARS,
            status_after=WorkflowStatus.ACKNOWLEDGED,
            dry_run=dry_run,
        )

    def ask(self, item_id: int, message: str, *, dry_run: bool = False) -> ActionOutcome:
        """Reply with a question and flag the item as awaiting a reply. The item stays open."""
        validate_message(message)
        item, current = self.status(item_id)
        block_if_done(item, current.status, "ask about")

        clears = [r for r in _ASK_CLEARS if r in current.viewer_reactions]
        outcome = ActionOutcome(
            action="ask",
            item=item,
            status_before=current.status,
            status_after=WorkflowStatus.AWAITING_REPLY,
            steps=["reply", *(f"remove {r}" for r in clears), f"add {Reaction.CONFUSED}"],
            dry_run=dry_run,
        )
        if dry_run:
            return outcome

        reply = post_reply(self.remote, item, message, self.owner, self.repo)
        outcome.reply = reply
        try:
            remove_viewer_reactions(self.remote, item.mutation_handle, current.viewer_reactions, clears)
            add_reaction(self.remote, item.mutation_handle, Reaction.CONFUSED)
        except FeedbackError as exc:
            return self._partial(outcome, reply, exc)
        logger.info("Asked for clarification on #%d.", item_id)
        return outcome

    # -- internals -----------------------------------------------------------

    def _close(
        self,
        item_id: int,
        message: str | None,
        *,
        action: str,
        verb: str,
        final: Reaction,
        clears: tuple[Reaction, ...],
        status_after: WorkflowStatus,
        dry_run: bool,
    ) -> ActionOutcome:
        if message is not None:
            validate_message(message)
        item, current = self.status(item_id)
        block_if_done(item, current.status, verb)
        block_if_unresolved_siblings(item, verb)

        to_clear = [r for r in clears if r in current.viewer_reactions]
        steps = ["reply"] if message is not None else []
        steps.extend(f"remove {r}" for r in to_clear)
        steps.append(f"add {final}")
        done_step = self._done_step(item, current)
        if done_step:
            steps.append(done_step)

        outcome = ActionOutcome(
            action=action,
            item=item,
            status_before=current.status,
            status_after=status_after,
            steps=steps,
            dry_run=dry_run,
        )
        if dry_run:
            return outcome

        reply = post_reply(self.remote, item, message, self.owner, self.repo) if message is not None else None
        outcome.reply = reply
        try:
            remove_viewer_reactions(self.remote, item.mutation_handle, current.viewer_reactions, to_clear)
            add_reaction(self.remote, item.mutation_handle, final)
            self._mark_done(item, current)
        except FeedbackError as exc:
            if reply is None:
                raise
            return self._partial(outcome, reply, exc)

        logger.info("Marked #%d as %s.", item_id, status_after)
        return outcome

    def _done_step(self, item: FeedbackItem, current: ItemStatus) -> str | None:
        if item.targets_thread:
            return None if item.is_resolved else "resolve thread"
        if current.is_minimized:
            return None
        return f"hide ({self.config.workflow.hide_reason})"

    def _mark_done(self, item: FeedbackItem, current: ItemStatus) -> None:
        """Resolve the item's thread, or hide it when it has no thread."""
        if item.thread_id is not None:
            if item.is_resolved:
                logger.debug("Thread %s already resolved", item.thread_id)
                return
            set_resolved(self.remote, item.thread_id, True)
            return
        if current.is_minimized:
            logger.debug("%s already hidden", item.mutation_handle)
            return
        set_hidden(self.remote, item.mutation_handle, True, self.config.workflow.hide_reason)

    def _reopen(self, item: FeedbackItem) -> None:
        if item.thread_id is not None:
            set_resolved(self.remote, item.thread_id, False)
        else:
            set_hidden(self.remote, item.mutation_handle, False)

    @staticmethod
    def _partial(outcome: ActionOutcome, reply: ReplyResult, exc: FeedbackError) -> ActionOutcome:
        warning = f"Reply posted ({reply.url or f'#{reply.id}'}) but updating the status failed: {exc}"
        logger.warning("%s", warning)
        outcome.kind = OutcomeKind.PARTIAL
        outcome.warning = warning
        return outcome

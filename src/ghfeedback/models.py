"""Pydantic models for gh-feedback."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from ghfeedback.reactions import Reaction  # noqa: TC001 - Pydantic needs this at runtime


class ItemKind(StrEnum):
    """Which GitHub entity a feedback id refers to."""

    THREAD = "thread"
    COMMENT = "comment"
    REVIEW = "review"


class WorkflowStatus(StrEnum):
    """Semantic status derived from the viewer's reactions and the done bit."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    AWAITING_REPLY = "awaiting-reply"
    AGREED = "agreed"
    DISAGREED = "disagreed"
    ACKNOWLEDGED = "acknowledged"


class Location(BaseModel):
    """File position of a code-anchored thread."""

    path: str = Field(description="File path the thread is anchored to")
    line: int | None = Field(default=None, description="Line number, if the thread is still anchored to one")

    def __str__(self) -> str:
        return f"{self.path}:{self.line}" if self.line else self.path


class SiblingThread(BaseModel):
    """Another thread belonging to the same review as the item being acted upon."""

    thread_id: str = Field(description="GraphQL node ID (PRRT_...) of the thread")
    comment_id: int = Field(description="Database ID of the thread's first comment")
    is_resolved: bool = Field(default=False, description="Whether the thread is resolved")
    location: Location | None = Field(default=None, description="Where the thread is anchored")


class FeedbackItem(BaseModel):
    """A located thread, conversation comment, or review."""

    kind: ItemKind = Field(description="Entity kind the id resolved to")
    id: int = Field(description="Public database ID (unique within its kind only)")
    mutation_handle: str = Field(description="GraphQL node ID that reactions and hide/unhide target")
    node_id: str | None = Field(
        default=None,
        description="GraphQL node ID of the entity itself; differs from mutation_handle for body-less reviews",
    )
    owner: str = Field(default="ghost", description="Login of the author, 'ghost' for deleted accounts")
    pr_number: int = Field(description="Pull request the item belongs to")
    location: Location | None = Field(default=None, description="File position (threads only)")
    thread_id: str | None = Field(default=None, description="Thread to resolve/unresolve, when the item targets one")
    is_resolved: bool | None = Field(default=None, description="Thread resolved flag, when thread_id is set")
    sibling_threads: list[SiblingThread] = Field(
        default_factory=list,
        description="Other threads under the same review (reviews only)",
    )

    @property
    def targets_thread(self) -> bool:
        return self.thread_id is not None


class ItemStatus(BaseModel):
    """Current workflow status of an item, fetched fresh from GitHub."""

    status: WorkflowStatus = Field(description="Derived workflow status")
    viewer_reactions: list[Reaction] = Field(default_factory=list, description="Reactions the viewer applied")
    is_minimized: bool = Field(default=False, description="Whether the mutation handle is hidden")
    is_done: bool = Field(default=False, description="Resolved (threads) or hidden (comments/reviews)")


class ReplyResult(BaseModel):
    """A posted reply."""

    id: int = Field(description="Database ID of the new comment")
    url: str = Field(default="", description="HTML URL of the new comment")


class OutcomeKind(StrEnum):
    SUCCESS = "success"
    PARTIAL = "partial"


class ActionOutcome(BaseModel):
    """What a workflow action did. Failures are raised, never returned."""

    kind: OutcomeKind = Field(default=OutcomeKind.SUCCESS, description="Full or partial success")
    action: str = Field(description="Workflow action name (start, agree, ...)")
    item: FeedbackItem = Field(description="The item acted upon")
    status_before: WorkflowStatus = Field(description="Status when the command started")
    status_after: WorkflowStatus | None = Field(default=None, description="Expected status after the action")
    steps: list[str] = Field(default_factory=list, description="Applied steps, or planned steps for a dry run")
    reply: ReplyResult | None = Field(default=None, description="Posted reply, if the action posts one")
    warning: str | None = Field(default=None, description="Why a partial success is partial")
    dry_run: bool = Field(default=False, description="True when nothing was changed")


# ---------------------------------------------------------------------------
# Read-only views
# ---------------------------------------------------------------------------


class SummaryResponse(BaseModel):
    """A later comment in a thread, shown under the thread's first comment."""

    author: str = Field(description="Login of the author")
    timestamp: str = Field(description="ISO 8601 creation time")
    body: str = Field(description="Comment text")


class SummaryItem(BaseModel):
    """One entry of a PR summary: a thread, conversation comment or review."""

    kind: ItemKind = Field(description="Entity kind")
    id: int = Field(description="Public database ID, usable with every other command")
    timestamp: str = Field(description="ISO 8601 creation (or submission) time")
    status: WorkflowStatus = Field(description="Derived workflow status")
    author: str = Field(description="Login of the author, 'ghost' for deleted accounts")
    location: Location | None = Field(default=None, description="File position (threads only)")
    body: str = Field(description="Full text of the first comment or review body")
    responses: list[SummaryResponse] = Field(default_factory=list, description="Replies in the thread")


class FeedbackSummary(BaseModel):
    """Every piece of feedback on a pull request, oldest first."""

    pr_number: int
    pr_url: str
    pr_title: str
    items: list[SummaryItem] = Field(default_factory=list)


class DetailComment(BaseModel):
    """A comment within a thread, in full."""

    id: int = Field(description="Database ID of the comment")
    author: str = Field(description="Login of the author")
    body: str = Field(description="Comment text")
    created_at: str = Field(description="ISO 8601 creation time")
    reactions: dict[str, int] = Field(default_factory=dict, description="Reaction counts keyed by reaction")


class ItemDetail(BaseModel):
    """Full content of one feedback item, for when a summary preview is not enough."""

    item: FeedbackItem = Field(description="The located item")
    status: WorkflowStatus = Field(description="Derived workflow status")
    body: str = Field(default="", description="Comment or review body (threads carry theirs in comments)")
    url: str = Field(default="", description="HTML URL of the comment or review")
    created_at: str = Field(default="", description="ISO 8601 creation (or submission) time")
    review_state: str | None = Field(default=None, description="APPROVED, CHANGES_REQUESTED, ... (reviews only)")
    is_outdated: bool = Field(default=False, description="Thread anchored to code that has since changed")
    reactions: dict[str, int] = Field(default_factory=dict, description="Reaction counts keyed by reaction")
    comments: list[DetailComment] = Field(default_factory=list, description="Every comment of the thread")

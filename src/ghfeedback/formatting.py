"""Text renderings of summaries and item details."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ghfeedback.models import ItemKind

if TYPE_CHECKING:
    from ghfeedback.models import FeedbackSummary, ItemDetail, SummaryItem

TRUNCATION_MARKER = " [TRUNCATED] "
PREVIEW_LENGTH = 120


def truncate_middle(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Shorten *text* to at most *limit* characters, keeping its start and end."""
    if len(text) <= limit:
        return text
    keep = limit - len(TRUNCATION_MARKER)
    if keep <= 0:
        return text[:limit]
    head = (keep + 1) // 2
    tail = keep - head
    return text[:head] + TRUNCATION_MARKER + (text[-tail:] if tail else "")


def _one_line(text: str) -> str:
    return " ".join(text.split())


def format_summary_tsv(summary: FeedbackSummary) -> str:
    """One tab-separated row per item: id, kind, status, author, location, body preview.

    Meant for ``cut``/``awk``; the status is always column 3.
    """
    rows = [
        "\t".join([
            str(item.id),
            item.kind.value,
            item.status.value,
            item.author,
            str(item.location) if item.location else "",
            truncate_middle(_one_line(item.body)),
        ])
        for item in summary.items
    ]
    return "\n".join(rows)


def _summary_entry(item: SummaryItem) -> list[str]:
    header = f"[{item.status}] {item.kind} #{item.id} by @{item.author}"
    if item.location:
        header += f" at {item.location}"
    lines = [header, f"  {truncate_middle(_one_line(item.body))}"]
    lines.extend(f"  ↳ @{r.author}: {truncate_middle(_one_line(r.body))}" for r in item.responses)
    return lines


def format_summary_text(summary: FeedbackSummary) -> str:
    lines = [f"PR #{summary.pr_number}: {summary.pr_title}", summary.pr_url, ""]
    if not summary.items:
        lines.append("No feedback found on this pull request.")
        return "\n".join(lines)
    for item in summary.items:
        lines.extend(_summary_entry(item))
        lines.append("")
    return "\n".join(lines).rstrip()


def _reactions_line(reactions: dict[str, int]) -> str | None:
    if not reactions:
        return None
    return "Reactions: " + ", ".join(f"{name} x{count}" for name, count in reactions.items())


def format_item_detail(detail: ItemDetail) -> str:
    """Full, untruncated view of one item."""
    item = detail.item
    lines: list[str] = []

    if item.kind == ItemKind.THREAD:
        lines.append(f"Thread #{item.id} (PR #{item.pr_number}) [{detail.status}]")
        if item.location:
            outdated = " (outdated)" if detail.is_outdated else ""
            lines.append(f"Location: {item.location}{outdated}")
        lines.append(f"Resolved: {'yes' if item.is_resolved else 'no'}")
        for index, comment in enumerate(detail.comments):
            lines.append("")
            label = "Comment" if index == 0 else "Reply"
            lines.append(f"{label} from @{comment.author} ({comment.created_at}):")
            lines.append(comment.body)
            reactions = _reactions_line(comment.reactions)
            if reactions:
                lines.append(reactions)
        return "\n".join(lines)

    if item.kind == ItemKind.REVIEW:
        lines.append(f"Review #{item.id} (PR #{item.pr_number}) [{detail.status}]")
        if detail.review_state:
            lines.append(f"State: {detail.review_state}")
    else:
        lines.append(f"Issue comment #{item.id} (PR #{item.pr_number}) [{detail.status}]")
    lines.append(f"Author: @{item.owner}")
    if detail.url:
        lines.append(f"URL: {detail.url}")
    reactions = _reactions_line(detail.reactions)
    if reactions:
        lines.append(reactions)
    lines.extend(["", detail.body or "(no body)"])
    return "\n".join(lines)

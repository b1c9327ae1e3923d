"""CLI for gh-feedback, built on cyclopts."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import cyclopts
from cyclopts import Parameter

from ghfeedback import gh
from ghfeedback.config import Config, init_config, load_config
from ghfeedback.errors import FeedbackError, InvalidInputError
from ghfeedback.formatting import format_item_detail, format_summary_text, format_summary_tsv
from ghfeedback.github_api import HttpRemote
from ghfeedback.logging_config import configure_logging
from ghfeedback.models import ItemKind, OutcomeKind
from ghfeedback.workflow import FeedbackWorkflow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from ghfeedback.models import ActionOutcome
    from ghfeedback.remote import RemoteAccess

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130


def _get_version() -> str:
    try:
        return importlib.metadata.version("gh-feedback")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


app = cyclopts.App(
    name="gh-feedback",
    help="gh-feedback: triage pull request feedback with semantic actions.",
    version=_get_version,
)

# -- Shared parameters ---------------------------------------------------------

Message = Annotated[str | None, Parameter(name=["--message", "-m"], help="Reply message (e.g. a commit SHA)")]
MessageFile = Annotated[Path | None, Parameter(name=["--file", "-f"], help="Read the reply message from a file")]
Repo = Annotated[str | None, Parameter(help="Repository as owner/repo (default: the current repository)")]
PullRef = Annotated[
    str | None,
    Parameter(name="--pr", help="PR number or branch to search for reviews first (default: current branch)"),
]
DryRun = Annotated[bool, Parameter(name=["--dry-run", "-n"], negative="", help="Preview without changing anything")]
Verbose = Annotated[bool, Parameter(negative="", help="Print progress lines")]
Debug = Annotated[bool, Parameter(negative="", help="Print every GitHub call")]


# ---------------------------------------------------------------------------
# Plumbing
# ---------------------------------------------------------------------------


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn expected failures into a one-line message on stderr and exit 1."""
    try:
        yield
    except (FeedbackError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _validate_id(item_id: int) -> int:
    if item_id <= 0:
        msg = f'Invalid ID "{item_id}".'
        raise InvalidInputError(msg)
    return item_id


def _read_message(message: str | None, file: Path | None, *, required: bool = True) -> str | None:
    """Resolve the reply text from ``--file``, ``--message`` or piped stdin, in that order."""
    if file is not None:
        try:
            text = file.read_text(encoding="utf-8").strip()
        except OSError as exc:
            msg = f"Error reading file: {exc}"
            raise InvalidInputError(msg) from exc
    elif message is not None:
        text = message
    elif required:
        if sys.stdin.isatty():
            print("Enter your reply (press Ctrl+D when done):", file=sys.stderr)
            print("---", file=sys.stderr)
        text = sys.stdin.read().strip()
    else:
        return None

    if not text.strip():
        msg = "Empty reply message."
        raise InvalidInputError(msg)
    return text


def _make_remote(config: Config) -> RemoteAccess:
    if config.transport == "http":
        return HttpRemote()
    call_log = gh.CallLog() if config.diagnostics.call_log else None
    return gh.GhCliRemote(call_log=call_log)


def _current_pr(pr: str | None) -> int | None:
    """PR searched first for reviews. An explicit ``--pr`` must resolve; the branch PR is optional."""
    if pr is not None:
        return gh.get_pr_number(pr)
    try:
        return gh.get_pr_number()
    except FeedbackError:
        logger.debug("No PR for the current branch; reviews will only be searched in recent PRs")
        return None


@contextmanager
def _session(
    repo: str | None,
    pr: str | None,
    *,
    verbose: bool,
    debug: bool,
    need_pr: bool = True,
) -> Iterator[FeedbackWorkflow]:
    """Build a workflow for one command and close its transport afterwards.

    *need_pr* resolves the PR searched first for reviews; thread and comment
    lookups never need it.
    """
    configure_logging(verbose=verbose, debug=debug)
    config, _ = load_config()
    remote = _make_remote(config)
    try:
        if repo is None:
            owner, name = gh.get_repo_info()
            repo = f"{owner}/{name}"
        current_pr = _current_pr(pr) if need_pr else None
        yield FeedbackWorkflow(remote, repo, config, current_pr=current_pr)
    finally:
        remote.close()


def _report(outcome: ActionOutcome, done_message: str) -> None:
    item = outcome.item
    print(f"Found {item.kind} #{item.id} by @{item.owner} ({outcome.status_before})", file=sys.stderr)
    if item.location:
        print(f"Location: {item.location}", file=sys.stderr)
    if not outcome.steps:
        print(f"Nothing to do: {item.kind} #{item.id} is already in that state.", file=sys.stderr)
        return
    print(f"Actions: {' + '.join(outcome.steps)}", file=sys.stderr)

    if outcome.dry_run:
        print("Dry run: no changes made.", file=sys.stderr)
        return
    if outcome.kind == OutcomeKind.PARTIAL:
        print(f"Warning: {outcome.warning}", file=sys.stderr)
    else:
        print(f"✓ {done_message}", file=sys.stderr)
    if outcome.reply and outcome.reply.url:
        print(outcome.reply.url)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command
def start(
    item_id: int,
    /,
    *,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Mark a feedback item as work-in-progress (eyes), re-opening it if it was done."""
    with _handle_errors():
        _validate_id(item_id)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            outcome = workflow.start(item_id, dry_run=dry_run)
        _report(outcome, f"Marked #{item_id} as in-progress.")


@app.command
def agree(
    item_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Mark feedback as agreed/fixed (reply + thumbs_up + resolve)."""
    with _handle_errors():
        _validate_id(item_id)
        text = _read_message(message, file)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            outcome = workflow.agree(item_id, text, dry_run=dry_run)
        _report(outcome, f"Marked #{item_id} as agreed.")


@app.command
def disagree(
    item_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Decline feedback with an explanation (reply + thumbs_down + resolve)."""
    with _handle_errors():
        _validate_id(item_id)
        text = _read_message(message, file)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            outcome = workflow.disagree(item_id, text, dry_run=dry_run)
        _report(outcome, f"Marked #{item_id} as disagreed.")


@app.command
def ask(
    item_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Ask the reviewer a question (reply + confused); the item stays open."""
    with _handle_errors():
        _validate_id(item_id)
        text = _read_message(message, file)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            outcome = workflow.ask(item_id, text, dry_run=dry_run)
        _report(outcome, f"Marked #{item_id} as awaiting reply.")


@app.command
def ack(
    item_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Acknowledge an informational item (optional reply + rocket + resolve/hide)."""
    with _handle_errors():
        _validate_id(item_id)
        text = _read_message(message, file, required=False)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            outcome = workflow.ack(item_id, text, dry_run=dry_run)
        _report(outcome, f"Acknowledged #{item_id}.")


@app.command
def status(
    item_id: int,
    /,
    *,
    json_output: Annotated[bool, Parameter(name="--json", negative="", help="Print JSON")] = False,
    repo: Repo = None,
    pr: PullRef = None,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Show the workflow status of a feedback item."""
    with _handle_errors():
        _validate_id(item_id)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            item, item_status = workflow.status(item_id)

    if json_output:
        payload = {
            "id": item.id,
            "kind": item.kind.value,
            "pr": item.pr_number,
            "author": item.owner,
            "location": str(item.location) if item.location else None,
            "status": item_status.status.value,
            "done": item_status.is_done,
            "reactions": [r.value for r in item_status.viewer_reactions],
        }
        print(json.dumps(payload, indent=2))
        return

    print(f"{item.kind} #{item.id} (PR #{item.pr_number}) by @{item.owner}: {item_status.status}")
    if item.location:
        print(f"Location: {item.location}")
    if item_status.viewer_reactions:
        print(f"Your reactions: {', '.join(r.value for r in item_status.viewer_reactions)}")


@app.command
def summary(
    *,
    pr: Annotated[str | None, Parameter(name="--pr", help="PR number or branch (default: current branch)")] = None,
    hide_resolved: Annotated[bool, Parameter(negative="", help="Leave out resolved threads")] = False,
    hide_hidden: Annotated[bool, Parameter(negative="", help="Leave out hidden comments and reviews")] = False,
    porcelain: Annotated[
        bool,
        Parameter(name=["--porcelain", "-p"], negative="", help="Tab-separated output (default when piped)"),
    ] = False,
    json_output: Annotated[bool, Parameter(name="--json", negative="", help="Print JSON")] = False,
    repo: Repo = None,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """List every thread, comment and review on a PR with its workflow status."""
    with _handle_errors(), _session(repo, None, verbose=verbose, debug=debug, need_pr=False) as workflow:
        pr_number = gh.get_pr_number(pr)
        result = workflow.summary(pr_number, hide_hidden=hide_hidden, hide_resolved=hide_resolved)

    if json_output:
        print(result.model_dump_json(indent=2))
        return
    if porcelain or not sys.stdout.isatty():
        if result.items:
            print(format_summary_tsv(result))
        else:
            print("No feedback found on this pull request.", file=sys.stderr)
        return
    print(format_summary_text(result))


@app.command
def detail(
    item_id: int,
    /,
    *,
    json_output: Annotated[bool, Parameter(name="--json", negative="", help="Print JSON")] = False,
    repo: Repo = None,
    pr: PullRef = None,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Show the full content of a feedback item."""
    with _handle_errors():
        _validate_id(item_id)
        with _session(repo, pr, verbose=verbose, debug=debug) as workflow:
            result = workflow.detail(item_id)

    if json_output:
        print(result.model_dump_json(indent=2))
        return
    print(format_item_detail(result))


# ---------------------------------------------------------------------------
# Per-kind commands
# ---------------------------------------------------------------------------

thread_app = cyclopts.App(name="thread", help="Low-level operations on a review thread (by its first comment id).")
comment_app = cyclopts.App(name="comment", help="Low-level operations on a PR conversation comment.")
review_app = cyclopts.App(name="review", help="Low-level operations on a review.")
app.command(thread_app)
app.command(comment_app)
app.command(review_app)

Reason = Annotated[
    str | None,
    Parameter(
        name=["--reason", "-r"],
        help="spam, abuse, off-topic, outdated, duplicate or resolved (default: workflow.hide_reason)",
    ),
]


def _run_direct(
    kind: ItemKind,
    item_id: int,
    operation: Callable[[FeedbackWorkflow], ActionOutcome],
    done_message: str,
    *,
    repo: str | None,
    pr: str | None = None,
    verbose: bool,
    debug: bool,
) -> None:
    with _handle_errors():
        _validate_id(item_id)
        with _session(repo, pr, verbose=verbose, debug=debug, need_pr=kind == ItemKind.REVIEW) as workflow:
            outcome = operation(workflow)
        _report(outcome, done_message)


def _reply(kind: ItemKind, item_id: int, message: str | None, file: Path | None, **opts: Any) -> None:
    with _handle_errors():
        _validate_id(item_id)
        text = _read_message(message, file)
    dry_run = opts.pop("dry_run")
    _run_direct(
        kind,
        item_id,
        lambda w: w.reply(kind, item_id, text, dry_run=dry_run),
        f"Replied to {kind} #{item_id}.",
        **opts,
    )


def _react(kind: ItemKind, item_id: int, reaction: str, *, remove: bool, **opts: Any) -> None:
    dry_run = opts.pop("dry_run")
    verb = "Removed" if remove else "Added"
    _run_direct(
        kind,
        item_id,
        lambda w: w.react(kind, item_id, reaction, remove=remove, dry_run=dry_run),
        f"{verb} reaction on {kind} #{item_id}.",
        **opts,
    )


def _hide(kind: ItemKind, item_id: int, reason: str | None, **opts: Any) -> None:
    dry_run = opts.pop("dry_run")
    _run_direct(
        kind,
        item_id,
        lambda w: w.hide(kind, item_id, reason, dry_run=dry_run),
        f"Hid {kind} #{item_id}.",
        **opts,
    )


def _show(kind: ItemKind, item_id: int, **opts: Any) -> None:
    dry_run = opts.pop("dry_run")
    _run_direct(kind, item_id, lambda w: w.show(kind, item_id, dry_run=dry_run), f"Unhid {kind} #{item_id}.", **opts)


def _resolve(item_id: int, resolved: bool, **opts: Any) -> None:  # noqa: FBT001
    dry_run = opts.pop("dry_run")
    _run_direct(
        ItemKind.THREAD,
        item_id,
        lambda w: w.set_thread_resolved(item_id, resolved, dry_run=dry_run),
        f"{'Resolved' if resolved else 'Unresolved'} thread #{item_id}.",
        **opts,
    )


# -- thread --------------------------------------------------------------------


@thread_app.command(name="reply")
def thread_reply(
    comment_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Reply in a thread."""
    _reply(ItemKind.THREAD, comment_id, message, file, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@thread_app.command(name="resolve")
def thread_resolve(
    comment_id: int,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Resolve a thread without touching reactions."""
    _resolve(comment_id, True, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@thread_app.command(name="unresolve")
def thread_unresolve(
    comment_id: int,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Re-open a resolved thread."""
    _resolve(comment_id, False, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@thread_app.command(name="react")
def thread_react(
    comment_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Add a reaction to a thread's first comment."""
    _react(
        ItemKind.THREAD,
        comment_id,
        reaction,
        remove=False,
        repo=repo,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@thread_app.command(name="unreact")
def thread_unreact(
    comment_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Remove your reaction from a thread's first comment."""
    _react(
        ItemKind.THREAD,
        comment_id,
        reaction,
        remove=True,
        repo=repo,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@thread_app.command(name="hide")
def thread_hide(
    comment_id: int,
    /,
    *,
    reason: Reason = None,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Hide a thread's first comment."""
    _hide(ItemKind.THREAD, comment_id, reason, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@thread_app.command(name="show")
def thread_show(
    comment_id: int,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Unhide a thread's first comment."""
    _show(ItemKind.THREAD, comment_id, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


# -- comment -------------------------------------------------------------------


@comment_app.command(name="reply")
def comment_reply(
    comment_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Reply to a conversation comment (posted as a quoted PR comment)."""
    _reply(ItemKind.COMMENT, comment_id, message, file, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@comment_app.command(name="react")
def comment_react(
    comment_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Add a reaction to a conversation comment."""
    _react(
        ItemKind.COMMENT,
        comment_id,
        reaction,
        remove=False,
        repo=repo,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@comment_app.command(name="unreact")
def comment_unreact(
    comment_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Remove your reaction from a conversation comment."""
    _react(
        ItemKind.COMMENT,
        comment_id,
        reaction,
        remove=True,
        repo=repo,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@comment_app.command(name="hide")
def comment_hide(
    comment_id: int,
    /,
    *,
    reason: Reason = None,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Hide a conversation comment."""
    _hide(ItemKind.COMMENT, comment_id, reason, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


@comment_app.command(name="show")
def comment_show(
    comment_id: int,
    /,
    *,
    repo: Repo = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Unhide a conversation comment."""
    _show(ItemKind.COMMENT, comment_id, repo=repo, dry_run=dry_run, verbose=verbose, debug=debug)


# -- review --------------------------------------------------------------------


@review_app.command(name="reply")
def review_reply(
    review_id: int,
    /,
    *,
    message: Message = None,
    file: MessageFile = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Reply to a review (posted as a quoted PR comment)."""
    _reply(ItemKind.REVIEW, review_id, message, file, repo=repo, pr=pr, dry_run=dry_run, verbose=verbose, debug=debug)


@review_app.command(name="react")
def review_react(
    review_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Add a reaction to a review."""
    _react(
        ItemKind.REVIEW,
        review_id,
        reaction,
        remove=False,
        repo=repo,
        pr=pr,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@review_app.command(name="unreact")
def review_unreact(
    review_id: int,
    reaction: str,
    /,
    *,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Remove your reaction from a review."""
    _react(
        ItemKind.REVIEW,
        review_id,
        reaction,
        remove=True,
        repo=repo,
        pr=pr,
        dry_run=dry_run,
        verbose=verbose,
        debug=debug,
    )


@review_app.command(name="hide")
def review_hide(
    review_id: int,
    /,
    *,
    reason: Reason = None,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Hide a review."""
    _hide(ItemKind.REVIEW, review_id, reason, repo=repo, pr=pr, dry_run=dry_run, verbose=verbose, debug=debug)


@review_app.command(name="show")
def review_show(
    review_id: int,
    /,
    *,
    repo: Repo = None,
    pr: PullRef = None,
    dry_run: DryRun = False,
    verbose: Verbose = False,
    debug: Debug = False,
) -> None:
    """Unhide a review."""
    _show(ItemKind.REVIEW, review_id, repo=repo, pr=pr, dry_run=dry_run, verbose=verbose, debug=debug)


@app.command(name="check-env")
def check_env() -> None:
    """Check gh CLI, token and configuration, and print a diagnostic summary."""
    print("gh-feedback check-env")
    print("=" * 40)

    token_vars = {k: os.environ[k] for k in _TOKEN_ENV_VARS if os.environ.get(k)}
    if token_vars:
        print(f"\nFound {len(token_vars)} token variable(s):\n")
        for key, value in token_vars.items():
            print(f"  {key} = {_mask_value(key, value)}")
    else:
        print("\nNo GH_TOKEN / GITHUB_TOKEN set (fine for the gh transport).")

    print("\n" + "-" * 40)
    print("Validating configuration...\n")
    try:
        config, config_path = load_config()
    except ValueError as exc:
        print(f"❌ Configuration error: {exc}")
        sys.exit(1)
    _print_config_summary(config, config_path)

    print("-" * 40)
    print("Checking gh CLI...\n")
    ok = True
    try:
        username = gh.check_auth()
        print(f"  ✅ gh CLI authenticated as: {username}")
        owner, name = gh.get_repo_info()
        print(f"  ✅ Repository: {owner}/{name}")
    except FeedbackError as exc:
        print(f"  ❌ gh CLI error: {exc}")
        ok = False

    print()
    if not ok:
        sys.exit(1)


@app.command
def config(*, init: Annotated[bool, Parameter(negative="", help="Create a .gh-feedback.toml template")] = False) -> None:
    """Show the active configuration, or create a template with --init."""
    if init:
        init_config()
        return
    try:
        loaded, path = load_config()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    _print_config_summary(loaded, path)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MASK_MIN_LENGTH = 4
_TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")


def _mask_value(key: str, value: str) -> str:
    """Mask sensitive values."""
    sensitive_keywords = ("token", "secret", "key", "password")
    if any(kw in key.lower() for kw in sensitive_keywords):
        if len(value) > _MASK_MIN_LENGTH:
            return value[:2] + "*" * (len(value) - _MASK_MIN_LENGTH) + value[-2:]
        return "****"
    return value


def _print_config_summary(config: Config, path: Path | None) -> None:
    """Print a human-readable config summary."""
    print(f"  Config file: {path or 'none (defaults)'}")
    print(f"  Transport: {config.transport}")
    print(f"  Review search limit: {config.locator.review_search_limit} PRs")
    print(f"  Review comment limit: {config.locator.review_comment_limit}")
    print(f"  Hide reason: {config.workflow.hide_reason}")
    print(f"  Summary ignores: {', '.join(config.summary.ignored_authors) or 'nobody'}")
    print(f"  Call log: {'on' if config.diagnostics.call_log else 'off'}")
    print()


def main() -> None:
    """Console entry point."""
    try:
        app()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)

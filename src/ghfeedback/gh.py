"""GitHub CLI (gh) transport for gh-feedback.

All GitHub API calls go through the `gh` CLI by default, which handles
authentication transparently. No PAT tokens or .env files needed.
"""

from __future__ import annotations

import json
import logging
import subprocess  # noqa: S404
import time
from pathlib import Path
from typing import Any

from ghfeedback.errors import FeedbackError, RemoteError, classify_failure
from ghfeedback.remote import RemoteAccess, raise_for_graphql_errors

logger = logging.getLogger(__name__)

DEFAULT_CALL_LOG = Path.home() / ".gh-feedback" / "gh_calls.jsonl"
_MAX_CALL_LOG_LINES = 10_000
_ROTATE_EVERY_WRITES = 100


class GhError(RemoteError):
    """Raised when a gh CLI command fails for a reason other than 404/403."""


class GhNotInstalledError(FeedbackError):
    """Raised when gh CLI is not installed."""

    def __init__(self) -> None:
        super().__init__("gh CLI not found. Install it: https://cli.github.com/ then run: gh auth login")


class GhNotAuthenticatedError(FeedbackError):
    """Raised when gh CLI is not authenticated."""

    def __init__(self, stderr: str = "") -> None:
        super().__init__("GitHub CLI not authenticated. Run: gh auth login")
        self.stderr = stderr


class CallLog:
    """Append-only JSON-lines record of gh invocations, trimmed to the last N entries."""

    def __init__(self, path: Path = DEFAULT_CALL_LOG, max_lines: int = _MAX_CALL_LOG_LINES) -> None:
        self.path = path
        self.max_lines = max_lines
        self.write_count = 0

    def record(self, entry: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
            self.write_count += 1
            if self.write_count % _ROTATE_EVERY_WRITES == 0:
                self._truncate()
        except OSError:
            logger.debug("Could not write gh call log %s", self.path, exc_info=True)

    def _truncate(self) -> None:
        if not self.path.exists():
            return
        lines = self.path.read_text(encoding="utf-8").splitlines()
        if len(lines) <= self.max_lines:
            return
        self.path.write_text("\n".join(lines[-self.max_lines :]) + "\n", encoding="utf-8")


def _summarize_cmd(args: tuple[str, ...]) -> str:
    """Build a short summary of the gh command for logging."""
    # e.g. ("api", "graphql", "-f", "query=...") -> "api graphql"
    # e.g. ("api", "repos/o/r/issues/comments/1") -> "api repos/o/r/issues/comments/1"
    summary_parts: list[str] = []
    for arg in args:
        if arg.startswith("-") or "=" in arg:
            break
        summary_parts.append(arg)
    return " ".join(summary_parts) or "unknown"


def run_gh(*args: str, cwd: str | None = None, call_log: CallLog | None = None) -> str:
    """Run a gh CLI command and return stdout.

    Args:
        *args: Arguments to pass to gh (e.g. "api", "graphql", "-f", "query=...").
        cwd: Working directory for the command.
        call_log: Where to record the invocation, if anywhere.

    Returns:
        stdout as a string.

    Raises:
        GhNotInstalledError: If gh is not installed.
        NotFoundError: If gh reports HTTP 404.
        PermissionDeniedError: If gh reports missing write access.
        GhError: For any other failure.
    """
    cmd = ["gh", *args]
    cmd_summary = _summarize_cmd(args)
    logger.debug("Running: %s", cmd_summary)
    start = time.perf_counter()
    start_ts = time.strftime("%Y-%m-%dT%H:%M:%S%z")
    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
        )
    except FileNotFoundError:
        raise GhNotInstalledError from None

    stderr_text = result.stderr.strip()
    if call_log is not None:
        call_log.record({
            "ts": start_ts,
            "cmd": cmd_summary,
            "duration_ms": round((time.perf_counter() - start) * 1000),
            "exit_code": result.returncode,
            "stdout_bytes": len(result.stdout),
            "stderr": stderr_text[:500] if stderr_text else None,
        })

    if result.returncode != 0:
        logger.debug("gh stderr: %s", stderr_text)
        error = classify_failure(stderr_text or f"gh {cmd_summary} failed", stderr=result.stderr)
        if type(error) is RemoteError:
            raise GhError(str(error), stderr=result.stderr) from None
        raise error
    return result.stdout


class GhCliRemote(RemoteAccess):
    """Remote access through ``gh api``."""

    def __init__(self, cwd: str | None = None, call_log: CallLog | None = None) -> None:
        self.cwd = cwd
        self.call_log = call_log

    def _run(self, *args: str) -> str:
        return run_gh(*args, cwd=self.cwd, call_log=self.call_log)

    def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        args = ["api", "graphql", "-f", f"query={document}"]
        for key, value in (variables or {}).items():
            if isinstance(value, int | bool):
                args.extend(["-F", f"{key}={str(value).lower() if isinstance(value, bool) else value}"])
            else:
                args.extend(["-f", f"{key}={value}"])

        result = json.loads(self._run(*args))
        raise_for_graphql_errors(result)
        return result

    def fetch_resource(self, path: str) -> Any:
        raw = self._run("api", path.lstrip("/"))
        return None if not raw.strip() else json.loads(raw)

    def post_resource(self, path: str, **fields: str) -> Any:
        args = ["api", path.lstrip("/"), "--method", "POST", "-H", "Accept: application/vnd.github+json"]
        for key, value in fields.items():
            args.extend(["-f", f"{key}={value}"])
        raw = self._run(*args)
        return None if not raw.strip() else json.loads(raw)


# ---------------------------------------------------------------------------
# Repository / PR context
# ---------------------------------------------------------------------------


def parse_repo(repo: str) -> tuple[str, str]:
    """Parse an ``owner/repo`` string into a ``(owner, repo_name)`` tuple."""
    owner, _, repo_name = repo.partition("/")
    if not owner or not repo_name or "/" in repo_name:
        msg = f"Invalid repo format {repo!r}. Expected 'owner/repo'."
        raise FeedbackError(msg)
    return owner, repo_name


def check_auth(cwd: str | None = None) -> str:
    """Verify gh CLI is installed and authenticated.

    Returns:
        The authenticated GitHub username.

    Raises:
        GhNotInstalledError: If gh is not installed.
        GhNotAuthenticatedError: If not authenticated.
    """
    try:
        result = run_gh("auth", "status", "-h", "github.com", cwd=cwd)
    except RemoteError as e:
        raise GhNotAuthenticatedError(stderr=e.stderr) from e

    # Extract username from output like "Logged in to github.com account username"
    for line in result.splitlines():
        if "account" in line.lower():
            parts = line.split()
            for i, part in enumerate(parts):
                if part.lower() == "account" and i + 1 < len(parts):
                    return parts[i + 1].strip("()")
    return "authenticated"


def get_repo_info(cwd: str | None = None) -> tuple[str, str]:
    """Get the owner and repo name for the current repository."""
    raw = run_gh("repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner", cwd=cwd)
    return parse_repo(raw.strip())


def get_pr_number(ref: str | None = None, cwd: str | None = None) -> int:
    """Resolve a PR number, branch name, or the current branch to a PR number.

    Raises:
        FeedbackError: If no pull request matches.
    """
    args = ["pr", "view"]
    if ref:
        args.append(ref)
    args.extend(["--json", "number", "-q", ".number"])
    try:
        raw = run_gh(*args, cwd=cwd)
        return int(raw.strip())
    except (RemoteError, ValueError) as exc:
        msg = f"No pull request found for {ref or 'current branch'}."
        raise FeedbackError(msg) from exc

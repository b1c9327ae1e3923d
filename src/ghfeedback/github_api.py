"""Direct GitHub API transport using httpx with PAT authentication.

Authentication priority (resolved once per transport, then cached):
1. ``GH_TOKEN`` env var
2. ``GITHUB_TOKEN`` env var
3. ``gh auth token`` subprocess, reads local ``~/.config/gh/hosts.yml``, no network
4. Raises :exc:`GitHubAuthError` with setup URL

New users: https://github.com/settings/tokens/new?scopes=repo&description=gh-feedback
"""

from __future__ import annotations

import logging
import os
import subprocess  # noqa: S404
from typing import Any

import httpx

from ghfeedback.errors import FeedbackError, classify_failure
from ghfeedback.remote import RemoteAccess, raise_for_graphql_errors

logger = logging.getLogger(__name__)

_GITHUB_API_URL = "https://api.github.com"
_GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
TOKEN_CREATE_URL = "https://github.com/settings/tokens/new?scopes=repo&description=gh-feedback"  # noqa: S105

_HTTP_UNAUTHORIZED = 401


class GitHubAuthError(FeedbackError):
    """Raised when GitHub authentication fails or no token is available."""

    def __init__(self, detail: str = "") -> None:
        msg = (
            "GitHub token not found. "
            "Set GH_TOKEN or GITHUB_TOKEN env var, or run 'gh auth login'.\n"
            f"Create a token (permissions pre-filled): {TOKEN_CREATE_URL}"
        )
        if detail:
            msg = f"{detail}\n{msg}"
        super().__init__(msg)
        self.status_code = _HTTP_UNAUTHORIZED


def resolve_token() -> str | None:
    """Resolve a GitHub token from the environment or the gh CLI.

    Tries (in order):
    1. ``GH_TOKEN`` env var
    2. ``GITHUB_TOKEN`` env var
    3. ``gh auth token``, reads local ``~/.config/gh/hosts.yml``, no network
    """
    token = os.environ.get("GH_TOKEN") or os.environ.get("GITHUB_TOKEN")
    if token:
        logger.debug("GitHub token resolved from env var")
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        return None
    if result.returncode == 0 and result.stdout.strip():
        logger.debug("GitHub token resolved from gh auth token")
        return result.stdout.strip()
    return None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the matching :mod:`ghfeedback.errors` class for non-2xx responses."""
    if response.is_success:
        return

    if response.status_code == _HTTP_UNAUTHORIZED:
        raise GitHubAuthError

    try:
        msg = response.json().get("message", response.text)
    except ValueError:
        msg = response.text

    raise classify_failure(f"GitHub API error {response.status_code}: {msg}", status_code=response.status_code)


class HttpRemote(RemoteAccess):
    """Remote access over HTTPS with a personal access token."""

    def __init__(self, token: str | None = None, client: httpx.Client | None = None) -> None:
        self._token = token
        self._client = client or httpx.Client(base_url=_GITHUB_API_URL, timeout=30.0)

    @property
    def token(self) -> str:
        if self._token is None:
            self._token = resolve_token()
        if self._token is None:
            raise GitHubAuthError
        return self._token

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def close(self) -> None:
        self._client.close()

    def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        logger.debug("GraphQL %s", "mutation" if document.strip().lower().startswith("mutation") else "query")
        response = self._client.post(_GITHUB_GRAPHQL_URL, headers=self._headers(), json=payload)
        _raise_for_status(response)
        result: dict[str, Any] = response.json()
        raise_for_graphql_errors(result)
        return result

    def fetch_resource(self, path: str) -> Any:
        response = self._client.get(f"/{path.lstrip('/')}", headers=self._headers())
        _raise_for_status(response)
        if not response.content:
            return None
        return response.json()

    def post_resource(self, path: str, **fields: str) -> Any:
        response = self._client.post(f"/{path.lstrip('/')}", headers=self._headers(), json=fields)
        _raise_for_status(response)
        if not response.content:
            return None
        return response.json()

"""Remote access port shared by the gh CLI and direct HTTP transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ghfeedback.errors import RemoteError, classify_failure

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    # (response) -> (pageInfo, nodes)
    PageExtractor = Callable[[dict[str, Any]], tuple[dict[str, Any], list[dict[str, Any]]]]


class RemoteAccess(ABC):
    """Run GraphQL documents and REST resource calls against GitHub.

    Subclasses supply the three primitives; pagination is built on
    :meth:`query` and is identical for every transport.
    """

    @abstractmethod
    def query(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query or mutation and return the full response envelope."""

    @abstractmethod
    def fetch_resource(self, path: str) -> Any:
        """GET a REST resource (e.g. ``/repos/o/r/pulls/comments/1``) and return parsed JSON."""

    @abstractmethod
    def post_resource(self, path: str, **fields: str) -> Any:
        """POST to a REST resource with string body fields and return parsed JSON."""

    def close(self) -> None:  # noqa: B027
        """Release transport resources. Transports without any keep this no-op."""

    def iter_pages(
        self,
        document: str,
        variables: dict[str, Any],
        extract: PageExtractor,
    ) -> Iterator[list[dict[str, Any]]]:
        """Yield one page of nodes at a time, following ``endCursor``.

        The document must declare a ``$cursor: String`` variable. Stopping
        iteration early means no further pages are requested.
        """
        base = {k: v for k, v in variables.items() if k != "cursor"}
        cursor = variables.get("cursor")
        while True:
            page_vars = dict(base)
            if cursor:
                page_vars["cursor"] = cursor
            response = self.query(document, page_vars)
            page_info, nodes = extract(response)
            yield nodes
            cursor = page_info.get("endCursor")
            if not (page_info.get("hasNextPage") and cursor):
                return

    def paginate(
        self,
        document: str,
        variables: dict[str, Any],
        extract: PageExtractor,
    ) -> list[dict[str, Any]]:
        """Collect every node across all pages into one list."""
        nodes: list[dict[str, Any]] = []
        for page in self.iter_pages(document, variables, extract):
            nodes.extend(page)
        return nodes


def dig(data: Any, *keys: str, context: str = "response") -> Any:
    """Walk nested dict keys, raising :class:`RemoteError` on an unexpected shape."""
    current = data
    for key in keys:
        if not isinstance(current, dict) or current.get(key) is None:
            msg = f"Unexpected GitHub {context}: missing '{key}'"
            raise RemoteError(msg)
        current = current[key]
    return current


def raise_for_graphql_errors(result: dict[str, Any]) -> None:
    """Raise a classified :class:`RemoteError` if a GraphQL envelope carries ``errors``."""
    errors = result.get("errors")
    if not errors:
        return
    messages = "; ".join(e.get("message", str(e)) for e in errors)
    types = {e.get("type") for e in errors}
    if "NOT_FOUND" in types:
        raise classify_failure(messages, status_code=404)
    if "FORBIDDEN" in types:
        raise classify_failure(messages, status_code=403)
    raise classify_failure(f"GraphQL error: {messages}")

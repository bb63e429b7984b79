"""ArangoDB driver and query execution.

This module connects the query builder to ArangoDB's HTTP cursor API: it
provides the ``QueryExecutor`` and ``QueryCursor`` implementations the
builder runs its rendered AQL through, and a factory for HTTP clients built
from settings.
"""

from collections import deque
from collections.abc import Mapping
from types import TracebackType
from typing import Any, Self

import httpx

from slate.core import ErrorLevel
from slate.core.base import DatabaseErrorDetails
from slate.core.config import Settings, settings
from slate.core.decorators import with_error_handling
from slate.core.errors import QueryBuilderError, QueryExecutionError
from slate.core.logging import get_logger

logger = get_logger(__name__)

CURSOR_ENDPOINT = "/_api/cursor"

# Request attributes the builder owns; a context may set any other
RESERVED_REQUEST_KEYS = frozenset({"query", "bindVars", "count"})


def create_arango_client(config: Settings | None = None) -> httpx.Client:
    """Create an HTTP client bound to the configured database.

    Args:
        config: Settings to read the connection from, defaults to the global settings

    Returns:
        httpx.Client: Client whose base URL is ``<arango_url>/_db/<database>``
    """
    config = config or settings

    logger.info(
        "Creating ArangoDB client",
        extra={"url": config.arango_url, "database": config.arango_database},
    )

    return httpx.Client(
        base_url=f"{config.arango_url.rstrip('/')}/_db/{config.arango_database}",
        auth=(config.arango_username, config.arango_password.get_secret_value()),
        timeout=config.arango_timeout,
        verify=config.arango_verify_tls,
    )


def _send(
    client: httpx.Client,
    method: str,
    url: str,
    operation: str,
    json: Mapping[str, Any] | None = None,
    query: str | None = None,
    bind_vars: Mapping[str, Any] | None = None,
) -> httpx.Response:
    """Send one request to the cursor API, translating failures.

    Raises:
        QueryExecutionError: On transport failures and non-2xx responses
    """

    def details(status_code: int | None = None) -> DatabaseErrorDetails:
        return DatabaseErrorDetails(
            source=__name__,
            operation=operation,
            service_name="ArangoDB",
            endpoint=f"{method} {url}",
            status_code=status_code,
            query=query,
            bind_vars=sorted(bind_vars or {}),
        )

    try:
        response = client.request(method, url, json=json)
    except httpx.HTTPError as e:
        raise QueryExecutionError(f"ArangoDB request failed: {e!s}", details=details()) from e

    if response.is_error:
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errorMessage"):
            message = f"{body['errorMessage']} (error {body.get('errorNum')})"
        raise QueryExecutionError(
            f"ArangoDB {operation} failed: {message}",
            details=details(response.status_code),
        )

    return response


class ArangoCursor:
    """QueryCursor over an ArangoDB server-side cursor.

    Documents arrive in batches; ``read_next`` fetches the next batch once
    the buffered one is drained.
    """

    def __init__(self, client: httpx.Client, payload: Mapping[str, Any]) -> None:
        self._client = client
        self._buffer: deque[Any] = deque(payload.get("result") or [])
        self._id: str | None = payload.get("id")
        self._has_more_batches = bool(payload.get("hasMore"))
        self._count: int | None = payload.get("count")
        self._closed = False

    def has_more(self) -> bool:
        return bool(self._buffer) or self._has_more_batches

    def _fetch_batch(self) -> None:
        response = _send(self._client, "POST", f"{CURSOR_ENDPOINT}/{self._id}", "cursor.next")
        payload = response.json()
        self._buffer.extend(payload.get("result") or [])
        self._has_more_batches = bool(payload.get("hasMore"))

    def read_next(self) -> Any:
        if not self._buffer and self._has_more_batches:
            self._fetch_batch()
        if not self._buffer:
            raise LookupError("Cursor is exhausted")
        return self._buffer.popleft()

    def count(self) -> int | None:
        return self._count

    def close(self) -> None:
        """Release the server-side cursor; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()

        # The server drops cursors on its own once the last batch is delivered
        if self._id is None or not self._has_more_batches:
            return

        try:
            _send(self._client, "DELETE", f"{CURSOR_ENDPOINT}/{self._id}", "cursor.close")
        except QueryExecutionError as e:
            if getattr(e.details, "status_code", None) != httpx.codes.NOT_FOUND:
                raise
            logger.debug("Cursor already released by the server", extra={"cursor_id": self._id})


class ArangoExecutor:
    """QueryExecutor running AQL through the ``/_api/cursor`` endpoint.

    The execution context is a mapping of extra cursor request attributes
    such as ``ttl``, ``memoryLimit`` or ``options`` (``{"maxRuntime": 5}``).
    It can override ``batchSize`` but not the rendered statement.
    """

    def __init__(self, client: httpx.Client, batch_size: int | None = None) -> None:
        """Initialize the executor.

        Args:
            client: HTTP client whose base URL points at the database
            batch_size: Documents per cursor round trip, server default when None
        """
        self.client = client
        self.batch_size = batch_size

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> Self:
        """Create an executor for the configured database."""
        config = config or settings
        return cls(create_arango_client(config), batch_size=config.arango_batch_size)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @with_error_handling(error_level=ErrorLevel.ERROR)
    def execute(
        self,
        query: str,
        bind_vars: Mapping[str, Any],
        context: Mapping[str, Any] | None = None,
    ) -> ArangoCursor:
        """Execute an AQL query.

        Args:
            query: Rendered AQL text
            bind_vars: Values for the query's bind variables
            context: Extra cursor request attributes

        Returns:
            Cursor over the result documents

        Raises:
            QueryBuilderError: If ``context`` sets query, bindVars or count
            QueryExecutionError: If the server rejects or fails the query
        """
        context = context or {}
        overridden = sorted(RESERVED_REQUEST_KEYS.intersection(context))
        if overridden:
            raise QueryBuilderError(
                f"Execution context cannot override {', '.join(overridden)}",
                details={"source": __name__, "operation": "aql.execute"},
            )

        body: dict[str, Any] = {}
        if self.batch_size is not None:
            body["batchSize"] = self.batch_size
        body.update(context)
        body.update(query=query, bindVars=dict(bind_vars), count=True)

        response = _send(
            self.client,
            "POST",
            CURSOR_ENDPOINT,
            "aql.execute",
            json=body,
            query=query,
            bind_vars=bind_vars,
        )
        return ArangoCursor(self.client, response.json())

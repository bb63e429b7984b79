"""Query builder interfaces for dependency injection.

The builder never talks to a database driver directly. It renders AQL and
hands it to a ``QueryExecutor``; rows come back through a ``QueryCursor`` and
are materialized by a ``DocumentDecoder``. Tests and alternative transports
only need to satisfy these protocols.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, Self, TypeVar

# Generic type variable for query results
T = TypeVar("T")


class QueryCursor(Protocol):
    """Server-side cursor over result documents."""

    def has_more(self) -> bool:
        """Check whether another document can be read."""
        ...

    def read_next(self) -> Any:
        """Read the next document in its loosely-typed form."""
        ...

    def count(self) -> int | None:
        """Total number of documents, when the server reported it."""
        ...

    def close(self) -> None:
        """Release the server-side cursor. Called exactly once per cursor."""
        ...


class QueryExecutor(Protocol):
    """Capability that runs rendered AQL against a datastore."""

    def execute(
        self,
        query: str,
        bind_vars: Mapping[str, Any],
        context: Any = None,
    ) -> QueryCursor:
        """Execute ``query`` with ``bind_vars``.

        Args:
            query: Rendered AQL text
            bind_vars: Values for every ``@name`` in ``query``
            context: Caller-supplied execution options, passed through untouched

        Returns:
            Cursor over the result documents
        """
        ...


class DocumentDecoder(Protocol):
    """Capability that materializes raw documents into caller-defined shapes."""

    def decode_one(self, document: Any, result_type: type[T]) -> T:
        """Decode a single document."""
        ...

    def decode_many(self, documents: Sequence[Any], result_type: type[T]) -> list[T]:
        """Decode a sequence of documents as a whole."""
        ...


class QueryBuilder(ABC):
    """Base abstract class for query builders."""

    @abstractmethod
    def add_argument(self, column: str, value: Any) -> str:
        """Register a bind variable for ``column``.

        Returns:
            Bind variable name to reference as ``@name`` in the query
        """

    @abstractmethod
    def append_query_part(self, part: str) -> Self:
        """Append a literal fragment to the filter section."""

    @abstractmethod
    def to_query(self) -> tuple[str, dict[str, Any]]:
        """Render the query and its bind variables."""

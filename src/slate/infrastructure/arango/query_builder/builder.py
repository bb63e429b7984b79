"""Main AQL query builder implementation.

This module provides the AQLQueryBuilder class with a fluent interface for
composing filters, joins, sub-queries and graph traversals, and for running
the rendered statement through a ``QueryExecutor``.
"""

from collections.abc import Callable
from contextlib import closing
from typing import Any, Literal, Self, TypeVar, overload

from slate.core.base import DatabaseErrorDetails
from slate.core.errors import NotFoundError, QueryBuilderError
from slate.core.logging import get_logger, log_context
from slate.infrastructure.arango.query_builder.arguments import (
    bind_name,
    is_qualified,
    merge_arguments,
    qualify,
)
from slate.infrastructure.arango.query_builder.decoding import PydanticDecoder
from slate.infrastructure.arango.query_builder.helpers import QueryHelpers
from slate.infrastructure.arango.query_builder.interfaces import (
    DocumentDecoder,
    QueryBuilder,
    QueryCursor,
    QueryExecutor,
)
from slate.infrastructure.arango.query_builder.pagination import PaginationMixin
from slate.infrastructure.arango.query_builder.render import (
    compose_returns,
    render_count,
    render_join,
    render_query,
    render_sub_query,
)
from slate.infrastructure.arango.query_builder.state import (
    ClauseSet,
    Operator,
    SortOrder,
    SubQueryBinding,
    TraversalDirection,
    TraversalSpec,
)

logger = get_logger(name=__name__)

T = TypeVar("T")
R = TypeVar("R")


class AQLQueryBuilder(QueryBuilder, PaginationMixin, QueryHelpers):
    """Fluent AQL query builder bound to one collection.

    Every clause method mutates the builder and returns it, so calls chain.
    A builder is a single-writer accumulator: it must not be shared between
    threads without external locking. Executing it (``get``, ``count``)
    consumes the accumulated clauses and leaves the builder empty, bound to
    the same collection and alias, ready for the next statement.

    Builders passed to ``join``/``with_one``/``with_many`` are rendered on the
    spot and owned by the parent from then on: nesting them a second time,
    under the same or another parent, raises ``QueryBuilderError``.

    Example:
        ```python
        profiles = sub_query("profiles").where_column("user_id", "==", "users._key")
        users = (
            new_query("users", executor)
            .where("age", ">", 30)
            .with_one(profiles, "profile")
            .sort("name", "ASC")
            .limit(10)
        )
        query, bind_vars = users.to_query()
        ```
    """

    def __init__(
        self,
        collection: str,
        alias: str | None = None,
        executor: QueryExecutor | None = None,
        decoder: DocumentDecoder | None = None,
    ) -> None:
        """Initialize a builder.

        Args:
            collection: Collection iterated, or edge collection when traversing
            alias: Loop variable name, defaults to the collection name
            executor: Capability used by ``get`` and ``count``
            decoder: Capability turning documents into result types
        """
        self.collection = collection
        self.alias = alias or collection
        self.outer_alias = collection
        self.executor = executor
        self.decoder: DocumentDecoder = decoder or PydanticDecoder()
        self.is_first = False
        self.is_raw = False
        self._raw_query = ""
        self._raw_arguments: dict[str, Any] = {}
        self._clauses = ClauseSet()
        self._owner: AQLQueryBuilder | None = None

    @classmethod
    def from_raw(
        cls,
        query: str,
        bind_vars: dict[str, Any] | None = None,
        executor: QueryExecutor | None = None,
    ) -> Self:
        """Create a builder emitting ``query`` verbatim.

        Args:
            query: Complete AQL statement
            bind_vars: Values for the bind variables ``query`` references
            executor: Capability used by ``get``

        Returns:
            A raw builder, which accepts no clause methods
        """
        builder = cls("", executor=executor)
        builder.alias = ""
        builder.outer_alias = ""
        builder.is_raw = True
        builder._raw_query = query
        builder._raw_arguments = dict(bind_vars or {})
        return builder

    def __repr__(self) -> str:
        if self.is_raw:
            return f"<{type(self).__name__} raw {self._raw_query!r}>"
        return f"<{type(self).__name__} {self.collection} as {self.alias}>"

    # Clause state

    def _editable(self) -> ClauseSet:
        if self.is_raw:
            raise QueryBuilderError(
                "Raw queries are emitted verbatim and accept no clauses",
                details={"source": __name__, "operation": "edit_raw_query"},
            )
        return self._clauses

    @property
    def arguments(self) -> dict[str, Any]:
        """Bind variables registered so far."""
        if self.is_raw:
            return dict(self._raw_arguments)
        return dict(self._clauses.arguments)

    def is_empty(self) -> bool:
        """Check whether no clause has been added since the last reset."""
        return self._clauses.is_empty()

    def clear(self) -> None:
        """Drop every accumulated clause, keeping the collection and alias."""
        self._clauses.clear()

    def add_argument(self, column: str, value: Any) -> str:
        """Register a bind variable for ``column``.

        Args:
            column: Column the value is compared against
            value: Value sent out-of-band

        Returns:
            Bind variable name, unique within this builder
        """
        clauses = self._editable()
        name = bind_name(self.alias, column, clauses.arguments)
        clauses.arguments[name] = value
        return name

    def append_query_part(self, part: str) -> Self:
        """Append a literal fragment after the clauses added so far."""
        self._editable().parts.append(part)
        return self

    # Filters

    def _filter(self, keyword: str, column: str, operator: Operator | str, value: Any) -> Self:
        op = Operator.parse(operator)
        self._editable()

        if op.wraps_value:
            if not isinstance(value, str):
                raise TypeError(f"{op.value} needs a string value, got {type(value).__name__}")
            value = f"%{value}%"

        name = self.add_argument(column, value)
        return self.append_query_part(f"{keyword} {qualify(self.alias, column)} {op.value} @{name}")

    @overload
    def where(self, column: str, value: Any, /) -> Self: ...

    @overload
    def where(self, column: str, operator: Operator | str, value: Any, /) -> Self: ...

    def where(self, column: str, *args: Any) -> Self:
        """Add a ``FILTER`` comparing ``column`` with a bound value.

        ``where(column, value)`` compares for equality,
        ``where(column, operator, value)`` uses ``operator``. Unqualified
        columns are prefixed with the builder alias; columns containing a dot
        and aggregate expressions (``COUNT``, ``SUM``) are used as given.
        ``LIKE`` values are bound as ``%value%``.

        Aggregates are recognized by substring, so plain columns whose name
        contains ``count`` or ``sum`` (``account_id``, ``summary``) are left
        unqualified too. Pass them qualified, as ``users.account_id``.

        Example:
            ```python
            query.where("age", 30).where("name", "LIKE", "ann")
            ```
        """
        if len(args) == 1:
            return self._filter("FILTER", column, Operator.EQ, args[0])
        if len(args) == 2:
            return self._filter("FILTER", column, args[0], args[1])
        raise TypeError(f"where() takes a column and 1 or 2 more arguments, got {len(args)}")

    def where_or(self, column: str, operator: Operator | str, value: Any) -> Self:
        """Append an ``OR`` alternative to the preceding filter.

        No parentheses are added, so callers order ``where``/``where_or``
        calls to get the grouping they want.
        """
        return self._filter("OR", column, operator, value)

    def _column_filter(self, keyword: str, column: str, operator: Operator | str, value: str) -> Self:
        op = Operator.parse(operator)
        if not ("." in column or "'" in column):
            column = f"{self.alias}.{column}"
        return self.append_query_part(f"{keyword} {column} {op.value} {value}")

    def where_column(self, column: str, operator: Operator | str, value: str) -> Self:
        """Add a ``FILTER`` comparing ``column`` with another column or literal.

        ``value`` is trusted AQL text and is not bound.

        Example:
            ```python
            posts.where_column("author_id", "==", "users._key")
            ```
        """
        return self._column_filter("FILTER", column, operator, value)

    def where_or_column(self, column: str, operator: Operator | str, value: str) -> Self:
        """``OR`` counterpart of ``where_column``."""
        return self._column_filter("OR", column, operator, value)

    def where_raw(self, fragment: str) -> Self:
        """Append trusted AQL text as is."""
        return self.append_query_part(fragment)

    # Nesting

    def _check_child(self, query: "AQLQueryBuilder") -> None:
        self._editable()
        if query is self:
            raise QueryBuilderError(
                "A query cannot be nested inside itself",
                details={"source": __name__, "operation": "nest_query"},
            )
        if query._owner is not None:
            raise QueryBuilderError(
                f"{query!r} is already nested in {query._owner!r}",
                details={"source": __name__, "operation": "nest_query"},
            )

    def _adopt(self, query: "AQLQueryBuilder", text: str, arguments: dict[str, Any]) -> None:
        clauses = self._clauses
        clauses.arguments = merge_arguments(clauses.arguments, arguments)
        clauses.parts.append(text)
        query._owner = self

    def join(self, query: "AQLQueryBuilder") -> Self:
        """Inline ``query`` as a nested loop in this query's scope.

        The joined loop keeps its filters, sort and limit but has no
        ``RETURN``; its document is merged into the default return shape.
        """
        self._check_child(query)

        if query.is_raw:
            text, arguments = query.to_query()
        else:
            text = render_join(query.collection, query.alias, query._clauses)
            arguments = query._clauses.arguments

        self._adopt(query, text, arguments)
        self._clauses.joins.append(query.alias)
        return self

    def _with(self, query: "AQLQueryBuilder", alias: str, is_first: bool) -> Self:
        self._check_child(query)
        if any(binding.name == alias for binding in self._clauses.withs):
            raise QueryBuilderError(
                f"A sub-query is already bound to {alias!r}",
                details={"source": __name__, "operation": "nest_query"},
            )

        text, arguments = query.to_query()
        self._adopt(query, render_sub_query(alias, text), arguments)
        query.outer_alias = alias
        query.is_first = is_first
        self._clauses.withs.append(SubQueryBinding(alias, is_first))
        return self

    def with_one(self, query: "AQLQueryBuilder", alias: str) -> Self:
        """Bind the first result of ``query`` to ``alias`` for every document.

        The default return shape exposes it as ``alias: FIRST(alias)``.
        """
        return self._with(query, alias, is_first=True)

    def with_many(self, query: "AQLQueryBuilder", alias: str) -> Self:
        """Bind every result of ``query`` to ``alias`` for every document."""
        return self._with(query, alias, is_first=False)

    # Sorting, traversal, return shape

    def sort(self, field: str, order: SortOrder | str = SortOrder.ASC) -> Self:
        """Sort by ``field``, prefixed with the alias unless qualified."""
        sort_order = SortOrder.parse(order)
        clauses = self._editable()
        clauses.sort_field = field if is_qualified(field) else f"{self.alias}.{field}"
        clauses.sort_order = sort_order
        return self

    def sort_raw(self, expression: str, order: SortOrder | str = SortOrder.ASC) -> Self:
        """Sort by a trusted AQL expression used as is."""
        sort_order = SortOrder.parse(order)
        clauses = self._editable()
        clauses.sort_field = expression
        clauses.sort_order = sort_order
        return self

    def traversal(
        self,
        source: str,
        direction: TraversalDirection | str,
        with_edge: bool = False,
        *,
        min_depth: int | None = None,
        max_depth: int | None = None,
        edge_alias: str = "edge",
    ) -> Self:
        """Iterate the vertices reachable from ``source`` instead of the collection.

        The builder collection is the edge collection walked. With
        ``with_edge`` the loop also binds each edge and the default return
        shape becomes ``{document: ..., edge: edge}``.

        Args:
            source: AQL expression for the start vertex (``users._id``, ``@start``)
            direction: ``INBOUND``, ``OUTBOUND`` or ``ANY``
            with_edge: Whether edge documents are returned too
            min_depth: Minimum walk depth
            max_depth: Maximum walk depth
            edge_alias: Loop variable bound to each edge

        Returns:
            Self for method chaining
        """
        walk_direction = TraversalDirection.parse(direction)
        for depth in (min_depth, max_depth):
            if depth is not None and depth < 0:
                raise ValueError("Traversal depth must be greater than or equal to 0")
        if min_depth is not None and max_depth is not None and min_depth > max_depth:
            raise ValueError("Minimum traversal depth cannot exceed the maximum depth")

        self._editable().traversal = TraversalSpec(
            direction=walk_direction,
            source=source,
            with_edge=with_edge,
            min_depth=min_depth,
            max_depth=max_depth,
            edge_alias=edge_alias,
        )
        return self

    def returns(self, *expressions: str) -> Self:
        """Replace the default return shape.

        Expressions containing a colon are object fields (``"age: users.age"``).
        Several expressions or any object field are combined with ``MERGE``.
        """
        self._editable().returns = compose_returns(*expressions)
        return self

    # Rendering

    def to_query(self) -> tuple[str, dict[str, Any]]:
        """Render the statement.

        Returns:
            Tuple of (query, bind_vars)
        """
        if self.is_raw:
            return self._raw_query, dict(self._raw_arguments)
        return (
            render_query(self.collection, self.alias, self._clauses),
            dict(self._clauses.arguments),
        )

    def to_count_query(self) -> tuple[str, dict[str, Any]]:
        """Render the filters of the statement under a count aggregation."""
        if self.is_raw:
            raise QueryBuilderError(
                "Raw queries cannot be turned into counts",
                details={"source": __name__, "operation": "count"},
            )
        return (
            render_count(self.collection, self.alias, self._clauses),
            dict(self._clauses.arguments),
        )

    # Execution

    def _require_executor(self) -> QueryExecutor:
        if self.executor is None:
            raise QueryBuilderError(
                f"No executor bound to the query on {self.collection or 'raw AQL'}",
                details={"source": __name__, "operation": "execute"},
            )
        return self.executor

    def _not_found(self, query: str, bind_vars: dict[str, Any], operation: str) -> NotFoundError:
        return NotFoundError(
            "not found",
            details=DatabaseErrorDetails(
                source=__name__,
                operation=operation,
                service_name="ArangoDB",
                query_type=operation,
                collection=self.collection or None,
                query=query,
                bind_vars=sorted(bind_vars),
            ),
        )

    def _is_exhausted(self, cursor: QueryCursor) -> bool:
        count = cursor.count()
        if count is not None:
            return count == 0
        return not cursor.has_more()

    def _read_one(self, cursor: QueryCursor, result_type: type[T], query: str, bind_vars: dict[str, Any]) -> T:
        if self._is_exhausted(cursor):
            raise self._not_found(query, bind_vars, "get")
        return self.decoder.decode_one(cursor.read_next(), result_type)

    def _read_many(
        self,
        cursor: QueryCursor,
        result_type: type[T],
        query: str,
        bind_vars: dict[str, Any],
    ) -> list[T]:
        documents: list[Any] = []
        while cursor.has_more():
            documents.append(cursor.read_next())

        if not documents:
            raise self._not_found(query, bind_vars, "get")
        return self.decoder.decode_many(documents, result_type)

    def _run(self, query: str, bind_vars: dict[str, Any], context: Any, reader: Callable[[QueryCursor], R]) -> R:
        try:
            executor = self._require_executor()
            with log_context(collection=self.collection or "raw"):
                logger.debug(
                    "Executing AQL query",
                    extra={"query": query, "bind_vars": sorted(bind_vars)},
                )
                with closing(executor.execute(query, bind_vars, context)) as cursor:
                    return reader(cursor)
        finally:
            self.clear()

    @overload
    def get_with_context(self, context: Any, *, many: Literal[False] = False) -> dict[str, Any]: ...

    @overload
    def get_with_context(self, context: Any, *, many: Literal[True]) -> list[dict[str, Any]]: ...

    @overload
    def get_with_context(self, context: Any, result_type: type[T], *, many: Literal[False] = False) -> T: ...

    @overload
    def get_with_context(self, context: Any, result_type: type[T], *, many: Literal[True]) -> list[T]: ...

    def get_with_context(self, context: Any, result_type: type[Any] = dict, *, many: bool = False) -> Any:
        """Execute the statement and decode its result.

        Clause state is cleared afterwards whatever the outcome, including
        when no executor is bound.

        Args:
            context: Execution options handed to the executor untouched
            result_type: Type each document is decoded into
            many: Decode every row into ``list[result_type]`` instead of the first row

        Returns:
            The decoded document, or the list of decoded documents

        Raises:
            NotFoundError: If the cursor produced no rows
            DecodingError: If a document does not fit ``result_type``
            QueryBuilderError: If no executor is bound
        """
        query, bind_vars = self.to_query()

        def reader(cursor: QueryCursor) -> Any:
            if many:
                return self._read_many(cursor, result_type, query, bind_vars)
            return self._read_one(cursor, result_type, query, bind_vars)

        return self._run(query, bind_vars, context, reader)

    @overload
    def get(self, *, many: Literal[False] = False, context: Any = None) -> dict[str, Any]: ...

    @overload
    def get(self, *, many: Literal[True], context: Any = None) -> list[dict[str, Any]]: ...

    @overload
    def get(self, result_type: type[T], *, many: Literal[False] = False, context: Any = None) -> T: ...

    @overload
    def get(self, result_type: type[T], *, many: Literal[True], context: Any = None) -> list[T]: ...

    def get(self, result_type: type[Any] = dict, *, many: bool = False, context: Any = None) -> Any:
        """Execute the statement, see ``get_with_context``."""
        return self.get_with_context(context, result_type, many=many)

    def count(self, context: Any = None) -> int:
        """Count the documents matching the filters, ignoring sort and limit.

        Raises:
            NotFoundError: If the server returned no count row
        """
        query, bind_vars = self.to_count_query()
        return self._run(
            query,
            bind_vars,
            context,
            lambda cursor: self._read_one(cursor, int, query, bind_vars),
        )


def new_query(
    collection: str,
    executor: QueryExecutor,
    decoder: DocumentDecoder | None = None,
) -> AQLQueryBuilder:
    """Create a top-level query on ``collection`` able to execute itself."""
    return AQLQueryBuilder(collection, executor=executor, decoder=decoder)


def sub_query(collection: str) -> AQLQueryBuilder:
    """Create a query meant to be nested with ``join``/``with_one``/``with_many``."""
    return AQLQueryBuilder(collection)


def sub_query_with_alias(collection: str, alias: str) -> AQLQueryBuilder:
    """Create a nested query whose loop variable differs from the collection name."""
    return AQLQueryBuilder(collection, alias=alias)


def raw(
    query: str,
    bind_vars: dict[str, Any] | None = None,
    executor: QueryExecutor | None = None,
) -> AQLQueryBuilder:
    """Create a builder emitting ``query`` verbatim."""
    return AQLQueryBuilder.from_raw(query, bind_vars, executor)

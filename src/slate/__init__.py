"""Fluent AQL query builder for ArangoDB."""

from slate.core.errors import (
    BindVariableCollisionError,
    DecodingError,
    NotFoundError,
    QueryBuilderError,
    QueryExecutionError,
)
from slate.infrastructure.arango.query_builder import (
    AQLQueryBuilder,
    Operator,
    SortOrder,
    TraversalDirection,
    new_query,
    raw,
    sub_query,
    sub_query_with_alias,
)

__all__ = [
    "AQLQueryBuilder",
    "BindVariableCollisionError",
    "DecodingError",
    "NotFoundError",
    "Operator",
    "QueryBuilderError",
    "QueryExecutionError",
    "SortOrder",
    "TraversalDirection",
    "new_query",
    "raw",
    "sub_query",
    "sub_query_with_alias",
]

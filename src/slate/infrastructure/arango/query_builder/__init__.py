"""AQL query builder framework.

This package provides a fluent interface for building AQL queries with bind
variables, nested sub-queries, joins and graph traversals.
"""

from .builder import AQLQueryBuilder, new_query, raw, sub_query, sub_query_with_alias
from .decoding import PydanticDecoder
from .interfaces import DocumentDecoder, QueryCursor, QueryExecutor
from .state import ClauseSet, Operator, SortOrder, TraversalDirection, TraversalSpec

__all__ = [
    # Base query builder
    "AQLQueryBuilder",
    "ClauseSet",
    # Capabilities
    "DocumentDecoder",
    "Operator",
    "PydanticDecoder",
    "QueryCursor",
    "QueryExecutor",
    "SortOrder",
    "TraversalDirection",
    "TraversalSpec",
    # Constructors
    "new_query",
    "raw",
    "sub_query",
    "sub_query_with_alias",
]

"""Rendering of accumulated clauses into AQL text.

A statement is always assembled in the same order:

    FOR <alias>[, <edge>] IN <collection | [depth] DIRECTION source edges>
      <filters, inlined joins and LET sub-queries, in call order>
      SORT <field> <order>
      LIMIT <offset>,<count>
      RETURN <expression>

Joins render the same way minus the ``RETURN``; counts replace the tail with
a ``COLLECT WITH COUNT``.
"""

from collections.abc import Sequence

from slate.infrastructure.arango.query_builder.state import ClauseSet, SubQueryBinding, TraversalSpec

MERGE = "MERGE"
FIRST = "FIRST"
COUNT_TAIL = "COLLECT WITH COUNT INTO total RETURN total"


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def render_header(collection: str, alias: str, traversal: TraversalSpec | None) -> str:
    """Render the ``FOR`` line.

    Args:
        collection: Collection iterated, or edge collection walked when traversing
        alias: Loop variable bound to each document or vertex
        traversal: Graph walk replacing the plain iteration, if any

    Returns:
        ``FOR alias IN collection`` or the traversal form
    """
    if traversal is None:
        return f"FOR {alias} IN {collection}"

    variables = alias
    if traversal.with_edge:
        variables = f"{alias}, {traversal.edge_alias}"
    return _join(
        f"FOR {variables} IN",
        traversal.depth,
        traversal.direction.value,
        traversal.source,
        collection,
    )


def render_body(clauses: ClauseSet) -> str:
    """Render the filter fragment followed by ``SORT`` and ``LIMIT``."""
    sort = ""
    if clauses.sort_field:
        sort = f"SORT {clauses.sort_field} {clauses.sort_order.value}"

    limit = ""
    if clauses.limit > 0:
        limit = f"LIMIT {clauses.offset},{clauses.limit}"

    return _join(clauses.fragment, sort, limit)


def default_return(alias: str, withs: Sequence[SubQueryBinding], joins: Sequence[str]) -> str:
    """Build the return shape used when no explicit ``returns`` was given.

    The primary document is merged with one object holding every sub-query
    binding, then with every joined loop variable.

    Example:
        ``MERGE(users, {profile: FIRST(profile), posts: posts}, teams)``
    """
    arguments = [alias]

    if withs:
        fields = []
        for binding in withs:
            value = f"{FIRST}({binding.name})" if binding.is_first else binding.name
            fields.append(f"{binding.name}: {value}")
        arguments.append("{" + ", ".join(fields) + "}")

    arguments.extend(join for join in joins if join)

    return f"{MERGE}({', '.join(arguments)})"


def compose_returns(*expressions: str) -> str:
    """Combine explicit return expressions.

    Expressions containing a colon are object fields and are wrapped in
    braces. Several expressions, or any object field, are combined with
    ``MERGE``; a single plain expression is returned as is.

    Example:
        >>> compose_returns("users", "age: users.age")
        'MERGE(users, {age: users.age})'
        >>> compose_returns("users.name")
        'users.name'
    """
    if not expressions:
        raise ValueError("At least one return expression is required")

    rendered: list[str] = []
    has_object_field = False
    for expression in expressions:
        if ":" in expression:
            has_object_field = True
            rendered.append("{" + expression + "}")
        else:
            rendered.append(expression)

    if len(rendered) > 1 or has_object_field:
        return f"{MERGE}({', '.join(rendered)})"
    return rendered[0]


def render_return(
    alias: str,
    clauses: ClauseSet,
) -> str:
    """Render the ``RETURN`` expression, wrapping it with the edge when traversing."""
    expression = clauses.returns or default_return(alias, clauses.withs, clauses.joins)

    traversal = clauses.traversal
    if traversal is not None and traversal.with_edge:
        expression = f"{{document: {expression}, edge: {traversal.edge_alias}}}"

    return f"RETURN {expression}"


def render_query(collection: str, alias: str, clauses: ClauseSet) -> str:
    """Render a complete statement."""
    return _join(
        render_header(collection, alias, clauses.traversal),
        render_body(clauses),
        render_return(alias, clauses),
    )


def render_join(collection: str, alias: str, clauses: ClauseSet) -> str:
    """Render a nested loop to be inlined in a parent statement."""
    return _join(render_header(collection, alias, clauses.traversal), render_body(clauses))


def render_sub_query(name: str, query: str) -> str:
    """Bind an independently rendered statement to ``name``."""
    return f"LET {name} = ({query})"


def render_count(collection: str, alias: str, clauses: ClauseSet) -> str:
    """Render the filters of a statement under a fixed count aggregation."""
    return _join(
        render_header(collection, alias, clauses.traversal),
        clauses.fragment,
        COUNT_TAIL,
    )

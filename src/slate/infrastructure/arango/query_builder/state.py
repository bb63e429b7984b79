"""State management for the AQL query builder.

This module holds the closed vocabularies a builder accepts (operators, sort
orders, traversal directions) and the mutable clause state one builder
accumulates between two executions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self


class _ParsableEnum(str, Enum):
    """String enum that parses its members case-insensitively."""

    @classmethod
    def parse(cls, value: "str | Self") -> Self:
        """Return the member matching ``value``.

        Raises:
            ValueError: If ``value`` is not one of the members
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = " ".join(value.split()).upper()
            for member in cls:
                if member.value == normalized:
                    return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown {cls.__name__} {value!r}, expected one of: {valid}")

    def __str__(self) -> str:
        return self.value


class Operator(_ParsableEnum):
    """Comparison operators accepted by filter clauses."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    IN = "IN"
    NOT_IN = "NOT IN"
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    REGEX = "=~"
    NOT_REGEX = "!~"

    @property
    def wraps_value(self) -> bool:
        """LIKE operators match a substring, so their value is bound as ``%value%``."""
        return self in (Operator.LIKE, Operator.NOT_LIKE)


class SortOrder(_ParsableEnum):
    ASC = "ASC"
    DESC = "DESC"


class TraversalDirection(_ParsableEnum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    ANY = "ANY"


@dataclass
class TraversalSpec:
    """Graph walk replacing the plain collection iteration.

    ``collection`` of the owning builder is the edge collection walked.
    """

    direction: TraversalDirection
    source: str
    with_edge: bool = False
    min_depth: int | None = None
    max_depth: int | None = None
    edge_alias: str = "edge"

    @property
    def depth(self) -> str:
        """Depth range prefix (``1..3``), empty when the server default applies."""
        if self.min_depth is None and self.max_depth is None:
            return ""
        low = self.min_depth if self.min_depth is not None else 1
        high = self.max_depth if self.max_depth is not None else low
        return f"{low}..{high}"


@dataclass(frozen=True)
class SubQueryBinding:
    """Name a ``LET`` sub-query is bound to, captured when it is attached."""

    name: str
    is_first: bool = False


@dataclass
class ClauseSet:
    """Clauses accumulated by one builder.

    ``parts`` keeps filters, inlined joins and ``LET`` sub-queries in the
    order they were added; they are emitted verbatim between the iteration
    header and the ``SORT``/``LIMIT``/``RETURN`` tail. ``joins`` and ``withs``
    record what nested queries contribute to the default return shape: the
    joined loop variables and the sub-query bindings.
    """

    parts: list[str] = field(default_factory=list)
    arguments: dict[str, Any] = field(default_factory=dict)
    sort_field: str = ""
    sort_order: SortOrder = SortOrder.ASC
    offset: int = 0
    limit: int = 0
    joins: list[str] = field(default_factory=list)
    withs: list[SubQueryBinding] = field(default_factory=list)
    traversal: TraversalSpec | None = None
    returns: str = ""

    @property
    def fragment(self) -> str:
        return " ".join(part for part in self.parts if part)

    def is_empty(self) -> bool:
        return self == ClauseSet()

    def clear(self) -> None:
        """Reset every clause so the owning builder can start a new statement."""
        self.parts = []
        self.arguments = {}
        self.sort_field = ""
        self.sort_order = SortOrder.ASC
        self.offset = 0
        self.limit = 0
        self.joins = []
        self.withs = []
        self.traversal = None
        self.returns = ""

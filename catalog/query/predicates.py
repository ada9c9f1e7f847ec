"""
Typed query building blocks.

A ``Filter`` is a conjunction of clauses. Each clause kind describes one way a
product document can be constrained; stores translate the clauses into their
native query form (see ``catalog.query.mongo`` and ``catalog.store.memory``).
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

ASCENDING = 1
DESCENDING = -1

# Sort key understood by every store as "order by text relevance"
RELEVANCE = "relevance"


@dataclass(frozen=True)
class Equals:
    """Case-insensitive exact match, anchored at both ends."""
    field: str
    value: str


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""
    field: str
    value: str


@dataclass(frozen=True)
class Range:
    """Numeric bounds; unset bounds are not applied."""
    field: str
    gt: Optional[float] = None
    gte: Optional[float] = None
    lt: Optional[float] = None
    lte: Optional[float] = None

    def bounds(self) -> Tuple[Tuple[str, float], ...]:
        return tuple(
            (op, value)
            for op, value in (("gt", self.gt), ("gte", self.gte), ("lt", self.lt), ("lte", self.lte))
            if value is not None
        )


@dataclass(frozen=True)
class Membership:
    """Satisfied when any element of a list field contains any of ``values``."""
    field: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class TextSearch:
    """Delegated to the store's full-text index."""
    terms: str


@dataclass(frozen=True)
class AnyFieldContains:
    """Substring match (case-insensitive) on at least one of ``fields``."""
    fields: Tuple[str, ...]
    value: str


Clause = Union[Equals, Contains, Range, Membership, TextSearch, AnyFieldContains]


@dataclass(frozen=True)
class Filter:
    """Conjunction of clauses. An empty filter matches every document."""
    clauses: Tuple[Clause, ...] = ()

    def __and__(self, other: "Filter") -> "Filter":
        return Filter(self.clauses + other.clauses)

    def __bool__(self) -> bool:
        return bool(self.clauses)

    def has_text_search(self) -> bool:
        return any(isinstance(clause, TextSearch) for clause in self.clauses)


MATCH_ALL = Filter()


@dataclass(frozen=True)
class Sort:
    """Primary sort key; stores break ties on ``_id`` in the same direction."""
    field: str = "createdAt"
    direction: int = DESCENDING

    @property
    def by_relevance(self) -> bool:
        return self.field == RELEVANCE

    @property
    def label(self) -> str:
        return "asc" if self.direction == ASCENDING else "desc"


@dataclass
class FilterBuilder:
    """Accumulates clauses; ``build()`` freezes them into a ``Filter``."""
    clauses: list = field(default_factory=list)

    def add(self, clause: Clause) -> "FilterBuilder":
        self.clauses.append(clause)
        return self

    def build(self) -> Filter:
        return Filter(tuple(self.clauses))

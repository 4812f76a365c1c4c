"""Pipeline stage variants and the helpers used to declare them.

A pipeline is an ordered tuple of these frozen dataclasses. Nothing here touches
the store; ``executor.PipelineExecutor`` interprets them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from services.views.predicates import And, Eq, Predicate


Record = Dict[str, Any]
DeriveFn = Callable[[Record, Optional[str]], Any]


@dataclass(frozen=True)
class Filter:
    predicate: Predicate


@dataclass(frozen=True)
class Guard:
    """Visibility guard for ``entity`` (a key of ``visibility.GUARDS``), resolved per viewer."""

    entity: str


@dataclass(frozen=True)
class JoinMany:
    """Attach every ``collection`` record whose ``foreign_key`` equals (or is in) ``local_key``."""

    local_key: str
    collection: str
    foreign_key: str
    as_field: str
    pipeline: Tuple["Stage", ...] = ()
    keep_local_order: bool = False


@dataclass(frozen=True)
class JoinOne:
    """Like ``JoinMany`` but unwrapped to a single value.

    With ``required`` set, records without a match are dropped.
    """

    local_key: str
    collection: str
    foreign_key: str
    as_field: str
    pipeline: Tuple["Stage", ...] = ()
    required: bool = True


@dataclass(frozen=True)
class Derive:
    fields: Tuple[Tuple[str, DeriveFn], ...]


@dataclass(frozen=True)
class Project:
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Sort:
    keys: Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class Paginate:
    skip: int
    limit: int


Stage = Union[Filter, Guard, JoinMany, JoinOne, Derive, Project, Sort, Paginate]


def filter_equals(field: str, value: Any) -> Filter:
    return Filter(Eq(field, value))


def filter_and(*predicates: Predicate) -> Filter:
    return Filter(And(*predicates))


def derive(**fields: DeriveFn) -> Derive:
    return Derive(tuple(fields.items()))


def sort_by(*keys: Tuple[str, int]) -> Sort:
    return Sort(tuple(keys))


def count_of(field: str) -> DeriveFn:
    def _count(record: Record, viewer_id: Optional[str]) -> int:
        return len(record.get(field) or [])

    return _count


def viewer_present_in(field: str, key: str) -> DeriveFn:
    """True when the viewer's id appears as ``key`` in the ``field`` sequence."""

    def _present(record: Record, viewer_id: Optional[str]) -> bool:
        if viewer_id is None:
            return False
        return any(item.get(key) == viewer_id for item in record.get(field) or [])

    return _present


def contains_value(field: str, value: Any) -> DeriveFn:
    def _contains(record: Record, viewer_id: Optional[str]) -> bool:
        return value in (record.get(field) or [])

    return _contains

"""Filter predicates that evaluate in memory or compile to SQLAlchemy clauses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import and_, false, or_, true
from sqlalchemy.future import select


Record = Dict[str, Any]


class Predicate:
    def matches(self, record: Record) -> bool:
        raise NotImplementedError

    def to_clause(self, model: Any) -> Any:
        raise NotImplementedError


def _column(model: Any, field: str) -> Any:
    column = getattr(model, field, None)
    if column is None:
        raise ValueError(f"Unknown field {field!r} on {model.__tablename__}")
    return column


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def matches(self, record: Record) -> bool:
        return record.get(self.field) == self.value

    def to_clause(self, model: Any) -> Any:
        column = _column(model, self.field)
        if self.value is None:
            return column.is_(None)
        return column == self.value


@dataclass(frozen=True)
class Ne(Predicate):
    field: str
    value: Any

    def matches(self, record: Record) -> bool:
        return record.get(self.field) != self.value

    def to_clause(self, model: Any) -> Any:
        column = _column(model, self.field)
        if self.value is None:
            return column.is_not(None)
        return or_(column != self.value, column.is_(None))


@dataclass(frozen=True)
class In(Predicate):
    field: str
    values: Tuple[Any, ...]

    def matches(self, record: Record) -> bool:
        return record.get(self.field) in self.values

    def to_clause(self, model: Any) -> Any:
        if not self.values:
            return false()
        return _column(model, self.field).in_(list(self.values))


@dataclass(frozen=True, init=False)
class And(Predicate):
    predicates: Tuple[Predicate, ...]

    def __init__(self, *predicates: Predicate):
        object.__setattr__(self, "predicates", tuple(predicates))

    def matches(self, record: Record) -> bool:
        return all(predicate.matches(record) for predicate in self.predicates)

    def to_clause(self, model: Any) -> Any:
        if not self.predicates:
            return true()
        return and_(*(predicate.to_clause(model) for predicate in self.predicates))


@dataclass(frozen=True, init=False)
class Or(Predicate):
    predicates: Tuple[Predicate, ...]

    def __init__(self, *predicates: Predicate):
        object.__setattr__(self, "predicates", tuple(predicates))

    def matches(self, record: Record) -> bool:
        return any(predicate.matches(record) for predicate in self.predicates)

    def to_clause(self, model: Any) -> Any:
        if not self.predicates:
            return false()
        return or_(*(predicate.to_clause(model) for predicate in self.predicates))


@dataclass(frozen=True)
class Related(Predicate):
    """``field`` refers to a row of ``target`` that satisfies ``predicate``.

    Compiles to ``field IN (SELECT id FROM target WHERE ...)``; it can only be
    evaluated by the store, so it belongs in leading match stages.
    """

    field: str
    target: Any
    predicate: Optional[Predicate] = None

    def matches(self, record: Record) -> bool:
        raise TypeError(f"Related({self.field!r}) can only be evaluated by the entity store.")

    def to_clause(self, model: Any) -> Any:
        subquery = select(self.target.id)
        if self.predicate is not None:
            subquery = subquery.where(self.predicate.to_clause(self.target))
        return _column(model, self.field).in_(subquery)

"""Pipeline executor.

The leading Filter/Guard stages of a pipeline (plus an immediately following
Sort and Paginate) are pushed down to the entity store as one query. Every
later stage runs in memory over the fetched page, and nested join pipelines are
batched: one store query per join regardless of how many parent records there
are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from services.views.pagination import Page, PageRequest, build_page
from services.views.predicates import And, In, Predicate
from services.views.stages import (
    Derive,
    Filter,
    Guard,
    JoinMany,
    JoinOne,
    Paginate,
    Project,
    Sort,
    Stage,
)
from services.views.visibility import guard_predicate

if TYPE_CHECKING:
    from services.store import EntityStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

SENSITIVE_USER_FIELDS = (
    "password_hash",
    "refresh_token_hash",
    "reset_token_hash",
    "reset_token_expires_at",
    "email",
    "watch_history",
)

# Carries the join key through nested pipelines so projections cannot drop it.
_JOIN_KEY = "__join_key__"


@dataclass(frozen=True)
class CompiledView:
    """A view pipeline plus the match fragment its total count is taken from."""

    collection: str
    match: Tuple[Stage, ...]
    stages: Tuple[Stage, ...]

    def __post_init__(self) -> None:
        if tuple(self.stages[:len(self.match)]) != tuple(self.match):
            raise ValueError("View stages must start with the view's match fragment.")
        for stage in self.match:
            if not isinstance(stage, (Filter, Guard)):
                raise ValueError("Match fragments may only contain Filter and Guard stages.")


@dataclass(frozen=True)
class _Plan:
    predicate: Optional[Predicate]
    sort: Tuple[Tuple[str, int], ...]
    window: Optional[Paginate]
    rest: Tuple[Stage, ...]


def redact(collection: str, records: List[Record]) -> List[Record]:
    if collection != "users":
        return records
    return [
        {key: value for key, value in record.items() if key not in SENSITIVE_USER_FIELDS}
        for record in records
    ]


def _combine(predicates: Sequence[Predicate]) -> Optional[Predicate]:
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return And(*predicates)


def _stage_predicate(stage: Stage, viewer_id: Optional[str]) -> Predicate:
    if isinstance(stage, Guard):
        return guard_predicate(stage.entity, viewer_id)
    return stage.predicate


def _plan(stages: Sequence[Stage], viewer_id: Optional[str], allow_window: bool = True) -> _Plan:
    index = 0
    predicates: List[Predicate] = []
    while index < len(stages) and isinstance(stages[index], (Filter, Guard)):
        predicates.append(_stage_predicate(stages[index], viewer_id))
        index += 1

    sort: Tuple[Tuple[str, int], ...] = ()
    window: Optional[Paginate] = None
    if allow_window:
        if index < len(stages) and isinstance(stages[index], Sort):
            sort = stages[index].keys
            index += 1
        if index < len(stages) and isinstance(stages[index], Paginate):
            window = stages[index]
            index += 1

    return _Plan(_combine(predicates), sort, window, tuple(stages[index:]))


def _sort_records(records: List[Record], keys: Sequence[Tuple[str, int]]) -> List[Record]:
    ordered = list(records)
    for field, direction in reversed(keys):
        present = [record for record in ordered if record.get(field) is not None]
        missing = [record for record in ordered if record.get(field) is None]
        present.sort(key=lambda record: record[field], reverse=direction < 0)
        ordered = present + missing
    return ordered


def _project(records: List[Record], stage: Project) -> List[Record]:
    projected = []
    for record in records:
        if stage.include:
            keep = set(stage.include) | {_JOIN_KEY}
            projected.append({key: value for key, value in record.items() if key in keep})
        else:
            drop = set(stage.exclude)
            projected.append({key: value for key, value in record.items() if key not in drop})
    return projected


def _local_keys(records: List[Record], local_key: str) -> Tuple[Any, ...]:
    values: List[Any] = []
    for record in records:
        value = record.get(local_key)
        if isinstance(value, list):
            values.extend(value)
        elif value is not None:
            values.append(value)
    return tuple(dict.fromkeys(values))


class PipelineExecutor:
    def __init__(self, store: EntityStore):
        self.store = store

    async def run(self, collection: str, stages: Sequence[Stage], viewer_id: Optional[str]) -> List[Record]:
        plan = _plan(stages, viewer_id)
        records = await self.store.find(
            collection,
            plan.predicate,
            sort=plan.sort,
            skip=plan.window.skip if plan.window else 0,
            limit=plan.window.limit if plan.window else None,
        )
        return await self.apply(redact(collection, records), plan.rest, viewer_id)

    async def count(self, collection: str, match: Sequence[Stage], viewer_id: Optional[str]) -> int:
        plan = _plan(match, viewer_id, allow_window=False)
        if plan.rest:
            raise ValueError("Count fragments may only contain Filter and Guard stages.")
        return await self.store.count(collection, plan.predicate)

    async def paginate(self, view: CompiledView, request: PageRequest, viewer_id: Optional[str]) -> Page:
        """Joined-collection pagination: count the match fragment, fetch the page separately."""
        total = await self.count(view.collection, view.match, viewer_id)
        docs = await self.run(view.collection, view.stages, viewer_id)
        logger.debug(
            "view_page collection=%s page=%s limit=%s total=%s returned=%s",
            view.collection,
            request.page,
            request.limit,
            total,
            len(docs),
        )
        return build_page(docs, total, request)

    async def first(self, view: CompiledView, viewer_id: Optional[str]) -> Optional[Record]:
        docs = await self.run(view.collection, view.stages, viewer_id)
        return docs[0] if docs else None

    async def apply(self, records: List[Record], stages: Sequence[Stage], viewer_id: Optional[str]) -> List[Record]:
        for stage in stages:
            if not records:
                break
            records = await self._apply_stage(records, stage, viewer_id)
        return records

    async def _apply_stage(self, records: List[Record], stage: Stage, viewer_id: Optional[str]) -> List[Record]:
        if isinstance(stage, (Filter, Guard)):
            predicate = _stage_predicate(stage, viewer_id)
            return [record for record in records if predicate.matches(record)]
        if isinstance(stage, (JoinMany, JoinOne)):
            return await self._join(records, stage, viewer_id)
        if isinstance(stage, Derive):
            derived = []
            for record in records:
                current = dict(record)
                for name, fn in stage.fields:
                    current[name] = fn(current, viewer_id)
                derived.append(current)
            return derived
        if isinstance(stage, Project):
            return _project(records, stage)
        if isinstance(stage, Sort):
            return _sort_records(records, stage.keys)
        if isinstance(stage, Paginate):
            return records[stage.skip:stage.skip + stage.limit]
        raise TypeError(f"Unsupported stage {stage!r}")

    async def _join(self, records: List[Record], stage: Any, viewer_id: Optional[str]) -> List[Record]:
        keys = _local_keys(records, stage.local_key)
        nested = _plan(stage.pipeline, viewer_id, allow_window=False)

        foreign: List[Record] = []
        if keys:
            predicate = _combine([In(stage.foreign_key, keys)] + ([nested.predicate] if nested.predicate else []))
            foreign = redact(stage.collection, await self.store.find(stage.collection, predicate))
        for item in foreign:
            item[_JOIN_KEY] = item.get(stage.foreign_key)

        groups = await self._run_nested(foreign, nested.rest, viewer_id)

        joined: List[Record] = []
        for record in records:
            local_value = record.get(stage.local_key)
            if isinstance(local_value, list):
                matched = self._match_list(groups, local_value, getattr(stage, "keep_local_order", False))
            elif local_value is not None:
                matched = list(groups.get(local_value, []))
            else:
                matched = []
            matched = [{key: value for key, value in item.items() if key != _JOIN_KEY} for item in matched]

            current = dict(record)
            if isinstance(stage, JoinOne):
                if not matched and stage.required:
                    continue
                current[stage.as_field] = matched[0] if matched else None
            else:
                current[stage.as_field] = matched
            joined.append(current)
        return joined

    async def _run_nested(
        self,
        foreign: List[Record],
        stages: Tuple[Stage, ...],
        viewer_id: Optional[str],
    ) -> Dict[Any, List[Record]]:
        """Run a nested pipeline and group its output by join key.

        Per-record stages and sorts run once over every joined record; a nested
        Paginate has to be applied group by group.
        """
        groups: Dict[Any, List[Record]] = {}
        if any(isinstance(stage, Paginate) for stage in stages):
            for item in foreign:
                groups.setdefault(item[_JOIN_KEY], []).append(item)
            for key, items in groups.items():
                groups[key] = await self.apply(items, stages, viewer_id)
            return groups

        for item in await self.apply(foreign, stages, viewer_id):
            groups.setdefault(item[_JOIN_KEY], []).append(item)
        return groups

    @staticmethod
    def _match_list(groups: Dict[Any, List[Record]], local_values: List[Any], keep_local_order: bool) -> List[Record]:
        wanted = list(dict.fromkeys(local_values))
        if keep_local_order:
            return [item for key in wanted for item in groups.get(key, [])]
        wanted_set = set(wanted)
        return [item for key, items in groups.items() if key in wanted_set for item in items]

"""Derived-view composition engine."""

from services.views.executor import CompiledView, PipelineExecutor, SENSITIVE_USER_FIELDS
from services.views.pagination import Page, PageRequest, build_page
from services.views.predicates import And, Eq, In, Ne, Or, Predicate
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
from services.views.visibility import (
    assert_playlist_access,
    assert_video_access,
    guard_predicate,
    is_visible,
)

__all__ = [
    "And",
    "CompiledView",
    "Derive",
    "Eq",
    "Filter",
    "Guard",
    "In",
    "JoinMany",
    "JoinOne",
    "Ne",
    "Or",
    "Page",
    "PageRequest",
    "Paginate",
    "PipelineExecutor",
    "Predicate",
    "Project",
    "SENSITIVE_USER_FIELDS",
    "Sort",
    "Stage",
    "assert_playlist_access",
    "assert_video_access",
    "build_page",
    "guard_predicate",
    "is_visible",
]

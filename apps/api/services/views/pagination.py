"""Page requests and page metadata shared by both pagination strategies."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from services.errors import InvalidArgumentError
from services.views.stages import Paginate


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"{name} must be an integer.") from exc


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def build(cls, page: Any = None, limit: Any = None, default_limit: Optional[int] = None) -> "PageRequest":
        resolved_page = 1 if page is None else _as_int(page, "page")
        fallback_limit = default_limit if default_limit is not None else settings.DEFAULT_PAGE_LIMIT
        resolved_limit = fallback_limit if limit is None else _as_int(limit, "limit")
        if resolved_page < 1:
            raise InvalidArgumentError("page must be greater than or equal to 1.")
        max_limit = max(int(settings.MAX_PAGE_LIMIT), 1)
        if resolved_limit < 1 or resolved_limit > max_limit:
            raise InvalidArgumentError(f"limit must be between 1 and {max_limit}.")
        return cls(page=resolved_page, limit=resolved_limit)

    def as_stage(self) -> Paginate:
        return Paginate(skip=self.skip, limit=self.limit)

    def window(self, entries: Sequence[Any]) -> List[Any]:
        """Slice an embedded list before it is expanded."""
        return list(entries[self.skip:self.skip + self.limit])


@dataclass(frozen=True)
class Page:
    docs: List[Dict[str, Any]]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    paging_counter: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int]
    next_page: Optional[int]

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_page(docs: List[Dict[str, Any]], total_docs: int, request: PageRequest) -> Page:
    has_prev = request.page > 1
    has_next = request.page * request.limit < total_docs
    return Page(
        docs=docs,
        total_docs=total_docs,
        limit=request.limit,
        page=request.page,
        total_pages=math.ceil(total_docs / request.limit),
        paging_counter=request.skip + 1,
        has_prev_page=has_prev,
        has_next_page=has_next,
        prev_page=request.page - 1 if has_prev else None,
        next_page=request.page + 1 if has_next else None,
    )

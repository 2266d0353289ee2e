"""
Filtered, sorted, page-at-a-time queries shared by every entity.

Each model declares FILTERABLE and SORTABLE maps from public field names
(as clients send them) to mapped attribute names.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.teamforms.constants import DEFAULT_PAGE_LIMIT
from app.teamforms.utils import parse_positive_int


@dataclass(frozen=True)
class PageOptions:
    sort_by: str | None = None
    limit: int = DEFAULT_PAGE_LIMIT
    page: int = 1

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "PageOptions":
        """Build from query-string style options; bad limit/page values fall back to defaults."""
        options = options or {}
        sort_by = (options.get("sortBy") or "").strip() or None
        return cls(
            sort_by=sort_by,
            limit=parse_positive_int(options.get("limit"), DEFAULT_PAGE_LIMIT),
            page=parse_positive_int(options.get("page"), 1),
        )


def parse_sort(sort_by: str | None, sortable: Mapping[str, str]) -> list[tuple[str, bool]]:
    """
    Parse "field:desc,other:asc" into [(attribute, descending), ...].
    Unknown fields are dropped; a missing or unknown direction means ascending.
    """
    criteria: list[tuple[str, bool]] = []
    if not sort_by:
        return criteria
    for part in sort_by.split(","):
        field, _, order = part.strip().partition(":")
        attr = sortable.get(field.strip())
        if not attr:
            continue
        criteria.append((attr, order.strip().lower() == "desc"))
    return criteria


def paginate(
    s: Session,
    model: type,
    filters: Mapping[str, Any] | None,
    options: PageOptions | Mapping[str, Any] | None = None,
    *,
    serialize: Callable[[Any], Any] | None = None,
) -> dict[str, Any]:
    """
    One page of `model` rows matching `filters` (exact match on FILTERABLE fields).

    Results are ordered by the requested sort criteria, then by creation time and
    id, so a page never shifts for an unchanged dataset.
    """
    if not isinstance(options, PageOptions):
        options = PageOptions.from_mapping(options)
    filterable: Mapping[str, str] = getattr(model, "FILTERABLE", {})
    sortable: Mapping[str, str] = getattr(model, "SORTABLE", {})

    where = []
    for field, value in (filters or {}).items():
        attr = filterable.get(field)
        if attr is None or value is None:
            continue
        where.append(getattr(model, attr) == value)

    total = s.scalar(select(func.count()).select_from(model).where(*where)) or 0

    order_by = []
    for attr, descending in parse_sort(options.sort_by, sortable):
        col = getattr(model, attr)
        order_by.append(col.desc() if descending else col.asc())
    order_by.extend([model.created_at.asc(), model.id.asc()])

    rows = s.scalars(
        select(model)
        .where(*where)
        .order_by(*order_by)
        .offset((options.page - 1) * options.limit)
        .limit(options.limit)
    ).all()

    to_json = serialize or (lambda row: row.to_dict())
    return {
        "results": [to_json(row) for row in rows],
        "page": options.page,
        "limit": options.limit,
        "totalPages": math.ceil(total / options.limit),
        "totalResults": total,
    }

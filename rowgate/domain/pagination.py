"""
Pagination metadata.

`build_page_meta` is pure arithmetic over (page, per_page, total, count) so
it can be checked without a database; `Table.paginate` feeds it the COUNT
result and the size of the fetched page.
"""
from __future__ import annotations

import math
from typing import Optional, Tuple

from pydantic import BaseModel, Field

DEFAULT_PER_PAGE = 15


class PageMeta(BaseModel):
    """
    Metadata returned alongside one page of records.
    """

    current_page: int = Field(..., ge=1, description="Requested page after clamping.")
    per_page: int = Field(..., ge=1, description="Page size after clamping.")
    total: int = Field(..., ge=0, description="Rows matching the conditions.")
    last_page: int = Field(..., ge=0, description="ceil(total / per_page), 0 when empty.")
    from_: int = Field(..., ge=0, alias="from", description="1-based index of the first row.")
    to: int = Field(..., ge=0, description="1-based index of the last row.")
    count: int = Field(..., ge=0, description="Rows on this page.")
    has_more_pages: bool = Field(..., description="Whether a later page exists.")
    next_page: Optional[int] = Field(None, description="Next page number, if any.")
    prev_page: Optional[int] = Field(None, description="Previous page number, if any.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def as_dict(self) -> dict:
        """Plain dict keyed the way API consumers expect (``from`` not ``from_``)."""
        return self.model_dump(by_alias=True)


def clamp_page(page: int, per_page: int) -> Tuple[int, int, int]:
    """Clamp to >= 1 and return ``(page, per_page, offset)``."""
    page = max(1, int(page))
    per_page = max(1, int(per_page))
    return page, per_page, (page - 1) * per_page


def build_page_meta(page: int, per_page: int, total: int, count: int) -> PageMeta:
    """
    Compute page metadata.

    Parameters
    ----------
    page, per_page : int
        Requested values; clamped to at least 1.
    total : int
        Total matching rows.
    count : int
        Rows actually returned for this page.
    """
    page, per_page, offset = clamp_page(page, per_page)
    last_page = math.ceil(total / per_page) if total > 0 else 0

    if count > 0:
        first, last = offset + 1, offset + count
    else:
        first, last = 0, 0

    has_more_pages = page < last_page
    next_page = page + 1 if has_more_pages else None

    if total == 0:
        prev_page = None
    elif page > last_page:
        prev_page = last_page
    else:
        prev_page = page - 1 if page > 1 else None

    return PageMeta(
        current_page=page,
        per_page=per_page,
        total=total,
        last_page=last_page,
        from_=first,
        to=last,
        count=count,
        has_more_pages=has_more_pages,
        next_page=next_page,
        prev_page=prev_page,
    )


__all__ = ["DEFAULT_PER_PAGE", "PageMeta", "build_page_meta", "clamp_page"]

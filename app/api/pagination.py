"""Query-parameter handling shared by the paginated routes."""

import re
from typing import Callable

from fastapi import HTTPException, Query, status

from app.domain.entities import PageRequest

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

MAX_PAGE_SIZE = 100


def page_params(
    allowed_sorts: tuple[str, ...], default_size: int, default_sort: str
) -> Callable[..., PageRequest]:
    """Build a dependency parsing ``page``, ``size``, ``sortBy`` and ``sortDir``.

    ``sortBy`` accepts camelCase or snake_case names; anything outside
    ``allowed_sorts`` is a 400.
    """

    def dependency(
        page: int = Query(0, ge=0),
        size: int = Query(default_size, ge=1, le=MAX_PAGE_SIZE),
        sort_by: str = Query(default_sort, alias="sortBy"),
        sort_dir: str = Query("desc", alias="sortDir"),
    ) -> PageRequest:
        field = _CAMEL_BOUNDARY.sub("_", sort_by).lower()
        if field not in allowed_sorts:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot sort by '{sort_by}'",
            )
        direction = sort_dir.lower()
        if direction not in ("asc", "desc"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="sortDir must be 'asc' or 'desc'",
            )
        return PageRequest(page=page, size=size, sort_by=field, sort_dir=direction)

    return dependency

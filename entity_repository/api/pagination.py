"""
Pagination query parameters for list endpoints.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from entity_repository.core.config import settings


class PaginationParams(BaseModel):
    """Validated page/page_size pair passed straight to Repository.list()."""

    page: int = Field(..., ge=0, description="1-based page number (0 behaves like 1)")
    page_size: int = Field(..., ge=1, description="Rows per page")


def get_pagination(
    page: Annotated[int, Query(ge=0)] = 1,
    page_size: Annotated[Optional[int], Query(ge=1)] = None,
) -> PaginationParams:
    """
    Dependency reading ?page=&page_size= from the query string.

    Falls back to settings.default_page_size and rejects sizes above
    settings.max_page_size.
    """
    size = page_size if page_size is not None else settings.default_page_size
    if size > settings.max_page_size:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size cannot exceed {settings.max_page_size}",
        )
    return PaginationParams(page=page, page_size=size)


Pagination = Annotated[PaginationParams, Depends(get_pagination)]

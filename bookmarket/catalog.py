# bookmarket/catalog.py
"""Paginated, filterable, sortable catalog listing."""

import math
from typing import Optional

from loguru import logger

from .errors import StorageError
from .schemas import BookPage, CatalogQuery, ScanCriteria
from .store import BookStore

ALL_CATEGORIES = "all"


def _category_filter(category: Optional[str]) -> Optional[str]:
    if not category or category == ALL_CATEGORIES:
        return None
    return category


class CatalogQueryService:
    """Turns query parameters into one page of books.

    Filtering and sorting run over the whole matching set before the page is
    sliced, so a page is reproducible for the same parameters and an unchanged
    collection.

    Read failures are lenient by default: a ``StorageError`` from the store is
    logged and answered with an empty page so listing screens keep rendering.
    With ``strict_reads`` the error propagates instead.
    """

    def __init__(self, store: BookStore, strict_reads: bool = False):
        self.store = store
        self.strict_reads = strict_reads

    async def query(self, params: CatalogQuery) -> BookPage:
        criteria = ScanCriteria(
            owner_id=params.owner_id,
            category=_category_filter(params.category),
            search=params.search,
        )
        try:
            books = await self.store.scan(criteria, params.sort)
        except StorageError:
            if self.strict_reads:
                raise
            logger.bind(params=params.model_dump()).exception("catalog.read_failed")
            books = []

        total = len(books)
        start = (params.page - 1) * params.page_size
        return BookPage(
            page=params.page,
            page_size=params.page_size,
            total=total,
            total_pages=math.ceil(total / params.page_size),
            items=books[start : start + params.page_size],
        )

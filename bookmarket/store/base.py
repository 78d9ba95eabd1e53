# bookmarket/store/base.py
"""Store interfaces.

Callers depend on :class:`BookStore` and :class:`UserStore` only, so the
flat-file and relational implementations can be swapped by configuration.
"""

import abc
import unicodedata
from typing import Iterable, List, Optional

from ..schemas import Book, BookDraft, BookPatch, ScanCriteria, SortOrder, User, UserCreate


def title_sort_key(title: str) -> str:
    """Collation key for title ordering, shared by every store."""
    return unicodedata.normalize("NFKD", title).casefold()


def sort_books(books: Iterable[Book], order: SortOrder = "none") -> List[Book]:
    # sorted() is stable, so equal titles keep their insertion order.
    if order == "none":
        return list(books)
    return sorted(books, key=lambda book: title_sort_key(book.title), reverse=order == "desc")


def matches(book: Book, criteria: Optional[ScanCriteria]) -> bool:
    if criteria is None:
        return True
    if criteria.owner_id is not None and book.owner_id != criteria.owner_id:
        return False
    if criteria.category and book.category != criteria.category:
        return False
    if criteria.search and criteria.search.casefold() not in book.title.casefold():
        return False
    return True


class BookStore(abc.ABC):
    @abc.abstractmethod
    async def create(self, draft: BookDraft) -> Book:
        """Persist a new book with id ``max(existing) + 1`` (1 when empty)."""

    @abc.abstractmethod
    async def get(self, book_id: int) -> Optional[Book]:
        """Exact lookup; ``None`` when absent."""

    @abc.abstractmethod
    async def update(self, book_id: int, patch: BookPatch) -> Book:
        """Overlay the fields supplied in ``patch`` and persist."""

    @abc.abstractmethod
    async def delete(self, book_id: int) -> None:
        ...

    @abc.abstractmethod
    async def scan(
        self, criteria: Optional[ScanCriteria] = None, order: SortOrder = "none"
    ) -> List[Book]:
        """Every book matching ``criteria``, unpaginated."""


class UserStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, user_id: int) -> Optional[User]:
        ...

    @abc.abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abc.abstractmethod
    async def create(self, user: UserCreate) -> User:
        """Persist ``user``; the password must already be hashed."""

    @abc.abstractmethod
    async def update_profile(
        self, user_id: int, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        ...

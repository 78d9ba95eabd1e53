# bookmarket/store/sql.py
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import NotFoundError, StorageError, ValidationError
from ..models import BookRow, UserRow
from ..schemas import Book, BookDraft, BookPatch, ScanCriteria, SortOrder, User, UserCreate
from ..validation import check_id, ensure_draft, ensure_patch
from .base import BookStore, UserStore, matches, sort_books


@asynccontextmanager
async def _session(sessions: async_sessionmaker[AsyncSession], action: str) -> AsyncIterator[AsyncSession]:
    async with sessions() as db:
        try:
            yield db
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.bind(action=action).exception("sql.failed")
            raise StorageError(f"Database error while trying to {action}.") from exc


class SqlBookStore(BookStore):
    """Books in a relational table; one statement per mutation."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def create(self, draft: BookDraft) -> Book:
        draft = ensure_draft(draft)
        async with _session(self.sessions, "create book") as db:
            row = BookRow(**draft.model_dump(mode="json"))
            db.add(row)
            await db.commit()
            await db.refresh(row)
            book = Book.model_validate(row)
        logger.bind(book_id=book.id, owner_id=book.owner_id).info("book.created")
        return book

    async def get(self, book_id: int) -> Optional[Book]:
        book_id = check_id(book_id)
        async with _session(self.sessions, "read book") as db:
            row = await db.get(BookRow, book_id)
            return Book.model_validate(row) if row is not None else None

    async def update(self, book_id: int, patch: BookPatch) -> Book:
        book_id = check_id(book_id)
        patch = ensure_patch(patch)
        async with _session(self.sessions, "update book") as db:
            row = await db.get(BookRow, book_id)
            if row is None:
                raise NotFoundError(f"Book with ID {book_id} not found.")
            for key, value in patch.changes().items():
                setattr(row, key, value)
            await db.commit()
            await db.refresh(row)
            book = Book.model_validate(row)
        logger.bind(book_id=book_id, fields=sorted(patch.model_fields_set)).info("book.updated")
        return book

    async def delete(self, book_id: int) -> None:
        book_id = check_id(book_id)
        async with _session(self.sessions, "delete book") as db:
            row = await db.get(BookRow, book_id)
            if row is None:
                raise NotFoundError(f"Book with ID {book_id} not found.")
            await db.delete(row)
            await db.commit()
        logger.bind(book_id=book_id).info("book.deleted")

    async def scan(
        self, criteria: Optional[ScanCriteria] = None, order: SortOrder = "none"
    ) -> List[Book]:
        query = select(BookRow)
        if criteria is not None:
            if criteria.owner_id is not None:
                query = query.where(BookRow.owner_id == criteria.owner_id)
            if criteria.category:
                query = query.where(BookRow.category == criteria.category)
        async with _session(self.sessions, "list books") as db:
            result = await db.execute(query.order_by(BookRow.id))
            books = [Book.model_validate(row) for row in result.scalars().all()]
        # Title search and ordering stay in Python so both stores fold case identically.
        return sort_books((book for book in books if matches(book, criteria)), order)


class SqlUserStore(UserStore):
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self.sessions = sessions

    async def get(self, user_id: int) -> Optional[User]:
        user_id = check_id(user_id)
        async with _session(self.sessions, "read user") as db:
            row = await db.get(UserRow, user_id)
            return User.model_validate(row) if row is not None else None

    async def get_by_email(self, email: str) -> Optional[User]:
        async with _session(self.sessions, "read user") as db:
            result = await db.execute(select(UserRow).where(UserRow.email == email))
            row = result.scalar_one_or_none()
            return User.model_validate(row) if row is not None else None

    async def create(self, user: UserCreate) -> User:
        async with _session(self.sessions, "create user") as db:
            await _ensure_email_free(db, user.email)
            row = UserRow(**user.model_dump())
            db.add(row)
            await db.commit()
            await db.refresh(row)
            created = User.model_validate(row)
        logger.bind(user_id=created.id).info("user.created")
        return created

    async def update_profile(
        self, user_id: int, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        user_id = check_id(user_id)
        async with _session(self.sessions, "update user") as db:
            row = await db.get(UserRow, user_id)
            if row is None:
                raise NotFoundError(f"User with ID {user_id} not found.")
            if email is not None and email != row.email:
                await _ensure_email_free(db, email)
                row.email = email
            if name is not None:
                row.name = name
            await db.commit()
            await db.refresh(row)
            return User.model_validate(row)


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(UserRow.id).where(UserRow.email == email))
    if result.first() is not None:
        raise ValidationError("Email is already registered.", {"email": ["Email is already registered."]})

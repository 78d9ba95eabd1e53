# bookmarket/store/json_file.py
"""Flat-file stores.

Each collection is one JSON array, pretty-printed with two-space indent and
rewritten wholesale on every mutation. Writes go to a temporary file in the
same directory that then replaces the target, so a failed write leaves the
previous file in place.

There is no locking: two concurrent read-modify-write calls on the same file
are last-writer-wins.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Generic, List, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ..errors import NotFoundError, StorageError, ValidationError
from ..schemas import Book, BookDraft, BookPatch, ScanCriteria, SortOrder, User, UserCreate
from ..validation import check_id, ensure_draft, ensure_patch
from .base import BookStore, UserStore, matches, sort_books

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_json(path: Path) -> List[Any]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data


def write_json(path: Path, data: List[Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonCollection(Generic[ModelT]):
    """A JSON array file holding records of one pydantic model.

    Mutations edit the raw list and write it back, so records an operation
    does not touch keep their keys exactly as they were on disk.
    """

    def __init__(self, path: Path, model: Type[ModelT]):
        self.path = Path(path)
        self.model = model

    async def load_raw(self) -> List[Any]:
        try:
            return await asyncio.to_thread(read_json, self.path)
        except (OSError, ValueError) as exc:
            logger.bind(path=str(self.path)).exception("json.read_failed")
            raise StorageError(f"Failed to read {self.path.name}.") from exc

    def parse(self, raw: List[Any]) -> List[ModelT]:
        try:
            return [self.model.model_validate(item) for item in raw]
        except SchemaError as exc:
            logger.bind(path=str(self.path)).exception("json.read_failed")
            raise StorageError(f"Failed to read {self.path.name}.") from exc

    async def load(self) -> List[ModelT]:
        return self.parse(await self.load_raw())

    async def save(self, raw: List[Any]) -> None:
        try:
            await asyncio.to_thread(write_json, self.path, raw)
        except (OSError, TypeError, ValueError) as exc:
            logger.bind(path=str(self.path)).exception("json.write_failed")
            raise StorageError("Failed to save data to the file system.") from exc


def _next_id(records: List[Any]) -> int:
    return max((record.id for record in records), default=0) + 1


def _index_of(records: List[Any], record_id: int) -> int:
    for index, record in enumerate(records):
        if record.id == record_id:
            return index
    return -1


class JsonBookStore(BookStore):
    def __init__(self, path: Path):
        self.books = JsonCollection(path, Book)

    async def create(self, draft: BookDraft) -> Book:
        draft = ensure_draft(draft)
        raw = await self.books.load_raw()
        books = self.books.parse(raw)
        book = Book(id=_next_id(books), **draft.model_dump(mode="json"))
        raw.append(book.model_dump(mode="json"))
        await self.books.save(raw)
        logger.bind(book_id=book.id, owner_id=book.owner_id).info("book.created")
        return book

    async def get(self, book_id: int) -> Optional[Book]:
        book_id = check_id(book_id)
        books = await self.books.load()
        index = _index_of(books, book_id)
        return books[index] if index >= 0 else None

    async def update(self, book_id: int, patch: BookPatch) -> Book:
        book_id = check_id(book_id)
        patch = ensure_patch(patch)
        raw = await self.books.load_raw()
        books = self.books.parse(raw)
        index = _index_of(books, book_id)
        if index < 0:
            raise NotFoundError(f"Book with ID {book_id} not found.")
        updated = Book.model_validate({**books[index].model_dump(), **patch.changes()})
        raw[index] = updated.model_dump(mode="json")
        await self.books.save(raw)
        logger.bind(book_id=book_id, fields=sorted(patch.model_fields_set)).info("book.updated")
        return updated

    async def delete(self, book_id: int) -> None:
        book_id = check_id(book_id)
        raw = await self.books.load_raw()
        books = self.books.parse(raw)
        remaining = [item for item, book in zip(raw, books) if book.id != book_id]
        if len(remaining) == len(raw):
            raise NotFoundError(f"Book with ID {book_id} not found.")
        await self.books.save(remaining)
        logger.bind(book_id=book_id).info("book.deleted")

    async def scan(
        self, criteria: Optional[ScanCriteria] = None, order: SortOrder = "none"
    ) -> List[Book]:
        books = await self.books.load()
        return sort_books((book for book in books if matches(book, criteria)), order)


class JsonUserStore(UserStore):
    def __init__(self, path: Path):
        self.users = JsonCollection(path, User)

    async def get(self, user_id: int) -> Optional[User]:
        user_id = check_id(user_id)
        users = await self.users.load()
        index = _index_of(users, user_id)
        return users[index] if index >= 0 else None

    async def get_by_email(self, email: str) -> Optional[User]:
        users = await self.users.load()
        return next((user for user in users if user.email == email), None)

    async def create(self, user: UserCreate) -> User:
        raw = await self.users.load_raw()
        users = self.users.parse(raw)
        if any(existing.email == user.email for existing in users):
            raise ValidationError("Email is already registered.", {"email": ["Email is already registered."]})
        created = User(id=_next_id(users), **user.model_dump())
        raw.append(created.model_dump(mode="json"))
        await self.users.save(raw)
        logger.bind(user_id=created.id).info("user.created")
        return created

    async def update_profile(
        self, user_id: int, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        user_id = check_id(user_id)
        raw = await self.users.load_raw()
        users = self.users.parse(raw)
        index = _index_of(users, user_id)
        if index < 0:
            raise NotFoundError(f"User with ID {user_id} not found.")
        if email is not None and any(u.email == email and u.id != user_id for u in users):
            raise ValidationError("Email is already registered.", {"email": ["Email is already registered."]})
        existing = users[index]
        updated = existing.model_copy(
            update={
                "name": existing.name if name is None else name,
                "email": existing.email if email is None else email,
            }
        )
        raw[index] = updated.model_dump(mode="json")
        await self.users.save(raw)
        return updated

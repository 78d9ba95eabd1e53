# bookmarket/actions.py
"""Listing and profile actions.

Mutations never raise across this boundary: every failure comes back as an
``ActionResult`` with ``success=False``, a user-facing message and the HTTP
status the caller should answer with. Single-book lookups are the exception;
storage failures there propagate to the caller.
"""

from typing import Any, Mapping, Optional

from fastapi import UploadFile
from loguru import logger

from .auth import authenticate_user
from .catalog import CatalogQueryService
from .errors import BookMarketError, NotFoundError, StorageError, ValidationError
from .schemas import ActionResult, Book, BookPage, CatalogQuery, SafeUser, sanitize_user
from .store import BookStore, UserStore
from .uploads import ImageUploader
from .validation import check_id, parse_draft, parse_login, parse_patch, parse_profile


def failure(exc: BookMarketError, message: Optional[str] = None) -> ActionResult:
    return ActionResult(
        success=False,
        message=message or exc.message,
        field_errors=getattr(exc, "field_errors", None) or None,
        status_code=exc.status_code,
    )


async def read_upload(uploader: ImageUploader, file: Optional[UploadFile]) -> Optional[str]:
    """Store an uploaded thumbnail; ``None`` when no file was sent."""
    if file is None or not file.filename:
        return None
    data = await file.read()
    if not data:
        return None
    return await uploader.save(file.filename, file.content_type, data)


async def _owned_book(store: BookStore, book_id: int, owner: SafeUser) -> Book:
    book = await store.get(book_id)
    if book is None or book.owner_id != owner.id:
        raise NotFoundError(f"Book with ID {book_id} not found.")
    return book


async def get_books(catalog: CatalogQueryService, params: CatalogQuery) -> BookPage:
    return await catalog.query(params)


async def get_book_details(store: BookStore, book_id: Any) -> Optional[Book]:
    try:
        book_id = check_id(book_id)
    except ValidationError:
        logger.bind(book_id=book_id).warning("book.invalid_id")
        return None
    return await store.get(book_id)


async def add_book(
    store: BookStore,
    uploader: ImageUploader,
    owner: SafeUser,
    form: Mapping[str, Any],
    thumbnail: Optional[UploadFile] = None,
) -> ActionResult:
    try:
        draft = parse_draft(form, owner_id=owner.id)
        url = await read_upload(uploader, thumbnail)
        if url is not None:
            draft = draft.model_copy(update={"thumbnail": url})
        book = await store.create(draft)
    except StorageError as exc:
        return failure(exc, "An unexpected error occurred while saving the book.")
    except BookMarketError as exc:
        return failure(exc)
    return ActionResult(success=True, message="Book added successfully!", book=book, status_code=201)


async def update_book(
    store: BookStore,
    uploader: ImageUploader,
    owner: SafeUser,
    book_id: Any,
    form: Mapping[str, Any],
    thumbnail: Optional[UploadFile] = None,
) -> ActionResult:
    try:
        book_id = check_id(book_id)
        patch = parse_patch(form)
        await _owned_book(store, book_id, owner)
        url = await read_upload(uploader, thumbnail)
        if url is not None:
            patch = patch.model_copy(update={"thumbnail": url})
        book = await store.update(book_id, patch)
    except StorageError as exc:
        return failure(exc, "Failed to save updated book data.")
    except BookMarketError as exc:
        return failure(exc)
    return ActionResult(success=True, message="Book updated successfully!", book=book)


async def delete_book(store: BookStore, owner: SafeUser, book_id: Any) -> ActionResult:
    try:
        book_id = check_id(book_id)
        await _owned_book(store, book_id, owner)
        await store.delete(book_id)
    except StorageError as exc:
        return failure(exc, "A storage error occurred during deletion.")
    except BookMarketError as exc:
        return failure(exc)
    return ActionResult(success=True, message=f"Book with ID {book_id} deleted successfully.")


async def login(users: UserStore, form: Mapping[str, Any]) -> ActionResult:
    try:
        credentials = parse_login(form)
        user = await authenticate_user(users, credentials.email, credentials.password)
    except ValidationError as exc:
        return failure(exc, "Validation Failed")
    except BookMarketError as exc:
        return failure(exc)
    if user is None:
        return ActionResult(success=False, message="Invalid credentials", status_code=401)
    logger.bind(user_id=user.id).info("session.login")
    return ActionResult(success=True, message="Logged in.", user=user)


async def update_profile(users: UserStore, user: SafeUser, form: Mapping[str, Any]) -> ActionResult:
    try:
        changes = parse_profile(form)
        updated = await users.update_profile(user.id, name=changes.name, email=changes.email)
    except StorageError as exc:
        return failure(exc, "Failed to save updated user data.")
    except BookMarketError as exc:
        return failure(exc)
    return ActionResult(success=True, message="Profile updated.", user=sanitize_user(updated))

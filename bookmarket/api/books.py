# bookmarket/api/books.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from .. import actions
from ..auth import get_current_user
from ..catalog import CatalogQueryService
from ..config import Settings
from ..deps import get_app_settings, get_book_store, get_catalog, get_uploader
from ..schemas import ActionResult, Book, BookPage, CatalogQuery, SafeUser, SortOrder
from ..store import BookStore
from ..uploads import ImageUploader

router = APIRouter(prefix="/books", tags=["📚 Books"])


def result_response(result: ActionResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))


@router.get(
    "/",
    response_model=BookPage,
    summary="Browse the catalog",
    description="""
    Returns one page of the whole catalog.

    **Optional:**
    - `search`: case-insensitive substring of the title
    - `sort`: `asc`, `desc` or `none` (title order)
    - `category`: one category, or `all`

    **Access:** authenticated users only.
    """,
)
async def list_books(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    search: str = Query("", description="Title search"),
    sort: SortOrder = Query("none"),
    category: Optional[str] = Query(None),
    catalog: CatalogQueryService = Depends(get_catalog),
    settings: Settings = Depends(get_app_settings),
    current_user: SafeUser = Depends(get_current_user),
):
    params = CatalogQuery(
        page=page,
        page_size=page_size or settings.catalog_page_size,
        search=search,
        sort=sort,
        category=category,
    )
    return await actions.get_books(catalog, params)


@router.get(
    "/mine",
    response_model=BookPage,
    summary="List my books",
    description="Same as the catalog listing, restricted to the current user's listings.",
)
async def list_my_books(
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    search: str = Query(""),
    sort: SortOrder = Query("none"),
    category: Optional[str] = Query(None),
    catalog: CatalogQueryService = Depends(get_catalog),
    settings: Settings = Depends(get_app_settings),
    current_user: SafeUser = Depends(get_current_user),
):
    params = CatalogQuery(
        page=page,
        page_size=page_size or settings.my_books_page_size,
        search=search,
        sort=sort,
        owner_id=current_user.id,
        category=category,
    )
    return await actions.get_books(catalog, params)


@router.get("/{book_id}", response_model=Book, summary="Get one book")
async def get_book(
    book_id: int,
    store: BookStore = Depends(get_book_store),
    current_user: SafeUser = Depends(get_current_user),
):
    book = await actions.get_book_details(store, book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.post(
    "/",
    summary="Add a new book",
    description="""
    Creates a listing owned by the current user from a multipart form.

    **Required:** `title`, `description`, `author`, `category`, `price`.
    **Optional:** `thumbnail` (JPEG, PNG or WebP, up to 5MB).
    """,
)
async def create_book(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    store: BookStore = Depends(get_book_store),
    uploader: ImageUploader = Depends(get_uploader),
    current_user: SafeUser = Depends(get_current_user),
):
    form = {"title": title, "description": description, "author": author, "category": category, "price": price}
    result = await actions.add_book(store, uploader, current_user, form, thumbnail)
    return result_response(result)


@router.put(
    "/{book_id}",
    summary="Update a book",
    description="""
    Updates a listing owned by the current user. Fields left out of the form
    keep their current value; the thumbnail changes only when a new image is sent.
    """,
)
async def update_book(
    book_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    store: BookStore = Depends(get_book_store),
    uploader: ImageUploader = Depends(get_uploader),
    current_user: SafeUser = Depends(get_current_user),
):
    form = {"title": title, "description": description, "author": author, "category": category, "price": price}
    result = await actions.update_book(store, uploader, current_user, book_id, form, thumbnail)
    return result_response(result)


@router.delete("/{book_id}", summary="Delete a book")
async def delete_book(
    book_id: int,
    store: BookStore = Depends(get_book_store),
    current_user: SafeUser = Depends(get_current_user),
):
    result = await actions.delete_book(store, current_user, book_id)
    return result_response(result)

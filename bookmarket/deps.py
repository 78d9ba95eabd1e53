# bookmarket/deps.py
"""FastAPI dependencies resolving the per-application collaborators."""

from fastapi import Request

from .catalog import CatalogQueryService
from .config import Settings
from .store import BookStore, UserStore
from .uploads import ImageUploader


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_book_store(request: Request) -> BookStore:
    return request.app.state.stores.books


def get_user_store(request: Request) -> UserStore:
    return request.app.state.stores.users


def get_catalog(request: Request) -> CatalogQueryService:
    return request.app.state.catalog


def get_uploader(request: Request) -> ImageUploader:
    return request.app.state.uploader

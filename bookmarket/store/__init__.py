# bookmarket/store/__init__.py
from typing import NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..config import Settings
from ..database import create_engine, create_sessionmaker
from .base import BookStore, UserStore, sort_books, title_sort_key
from .json_file import JsonBookStore, JsonUserStore
from .sql import SqlBookStore, SqlUserStore


class Stores(NamedTuple):
    books: BookStore
    users: UserStore
    engine: Optional[AsyncEngine] = None


def build_stores(settings: Settings) -> Stores:
    """Pick the store implementations named by ``settings.backend``."""
    if settings.backend == "sql":
        engine = create_engine(settings.database_url)
        sessions = create_sessionmaker(engine)
        return Stores(SqlBookStore(sessions), SqlUserStore(sessions), engine)
    return Stores(JsonBookStore(settings.books_file), JsonUserStore(settings.users_file))


__all__ = [
    "BookStore",
    "UserStore",
    "JsonBookStore",
    "JsonUserStore",
    "SqlBookStore",
    "SqlUserStore",
    "Stores",
    "build_stores",
    "sort_books",
    "title_sort_key",
]

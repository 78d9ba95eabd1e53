from pathlib import Path
from typing import Any

import pytest

from bookmarket.database import create_engine, create_sessionmaker, init_models
from bookmarket.schemas import BookDraft
from bookmarket.store import JsonBookStore, JsonUserStore, SqlBookStore, SqlUserStore


def make_draft(**overrides: Any) -> BookDraft:
    data = {
        "title": "Dune",
        "description": "Desert planet epic",
        "author": "Frank Herbert",
        "category": "Fantasy",
        "price": "20.00",
        "owner_id": 1,
    }
    data.update(overrides)
    return BookDraft.model_validate(data)


async def _sql_stores(tmp_path: Path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookmarket.db'}")
    await init_models(engine)
    return engine, create_sessionmaker(engine)


@pytest.fixture(params=["json", "sql"])
async def book_store(request, tmp_path):
    if request.param == "json":
        yield JsonBookStore(tmp_path / "books.json")
        return
    engine, sessions = await _sql_stores(tmp_path)
    yield SqlBookStore(sessions)
    await engine.dispose()


@pytest.fixture(params=["json", "sql"])
async def user_store(request, tmp_path):
    if request.param == "json":
        yield JsonUserStore(tmp_path / "users.json")
        return
    engine, sessions = await _sql_stores(tmp_path)
    yield SqlUserStore(sessions)
    await engine.dispose()


@pytest.fixture
def json_books(tmp_path) -> JsonBookStore:
    return JsonBookStore(tmp_path / "books.json")

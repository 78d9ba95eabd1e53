"""HTTP surface, exercised end to end over the JSON-file backend."""

import pytest
from fastapi.testclient import TestClient

from bookmarket.auth import hash_password
from bookmarket.config import Settings
from bookmarket.main import create_app
from bookmarket.store.json_file import write_json

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

BOOK_FORM = {
    "title": "Dune",
    "description": "Desert planet epic",
    "author": "Frank Herbert",
    "category": "Fantasy",
    "price": "20.00",
}


@pytest.fixture
def settings(tmp_path):
    settings = Settings(
        backend="json",
        data_dir=tmp_path / "db",
        uploads_dir=tmp_path / "uploads",
        secret_key="test-secret",
        log_level="WARNING",
    )
    write_json(settings.users_file, [
        {"id": 1, "name": "Ann", "email": "ann@example.com", "password": hash_password("secret1")},
        {"id": 2, "name": "Bob", "email": "bob@example.com", "password": hash_password("secret2")},
    ])
    return settings


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


def login(client, email="ann@example.com", password="secret1"):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


class TestAuthRoutes:
    def test_login_sets_cookie(self, client):
        response = login(client)

        assert response.json()["user"] == {"id": 1, "name": "Ann", "email": "ann@example.com", "image": None}
        assert "auth" in response.cookies

    def test_bad_credentials(self, client):
        response = client.post("/api/auth/login", json={"email": "ann@example.com", "password": "wrong!!"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid credentials",
                                   "book": None, "user": None, "field_errors": None}

    def test_malformed_login(self, client):
        response = client.post("/api/auth/login", json={"email": "nope", "password": "1"})

        body = response.json()
        assert response.status_code == 400
        assert body["message"] == "Validation Failed"
        assert set(body["field_errors"]) == {"email", "password"}

    def test_me_requires_session(self, client):
        assert client.get("/api/auth/me").status_code == 401

        login(client)
        assert client.get("/api/auth/me").json()["email"] == "ann@example.com"

    def test_logout_clears_session(self, client):
        login(client)
        client.post("/api/auth/logout")

        assert client.get("/api/auth/me").status_code == 401

    def test_cookie_for_deleted_user_is_rejected(self, client, settings):
        login(client)
        write_json(settings.users_file, [])

        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert "auth=" in response.headers.get("set-cookie", "")


class TestBookRoutes:
    def test_listing_requires_session(self, client):
        assert client.get("/api/books/").status_code == 401

    def test_create_and_fetch(self, client):
        login(client)

        response = client.post(
            "/api/books/",
            data=BOOK_FORM,
            files={"thumbnail": ("cover.png", PNG, "image/png")},
        )

        assert response.status_code == 201, response.text
        book = response.json()["book"]
        assert book["id"] == 1
        assert book["owner_id"] == 1
        assert book["thumbnail"].startswith("/uploads/")
        assert client.get("/api/books/1").json() == book
        assert client.get(book["thumbnail"]).content == PNG

    def test_create_with_invalid_form(self, client):
        login(client)

        response = client.post("/api/books/", data={**BOOK_FORM, "category": "Poetry"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "category" in body["field_errors"]
        assert client.get("/api/books/").json()["total"] == 0

    def test_rejected_upload_writes_nothing(self, client):
        login(client)

        response = client.post(
            "/api/books/",
            data=BOOK_FORM,
            files={"thumbnail": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert client.get("/api/books/").json()["total"] == 0

    def test_catalog_query_parameters(self, client):
        login(client)
        for title in ["Zebra", "Apple", "Mango", "Banana", "Cherry"]:
            client.post("/api/books/", data={**BOOK_FORM, "title": title})

        page = client.get("/api/books/", params={"page": 1, "page_size": 2, "sort": "asc"}).json()

        assert [b["title"] for b in page["items"]] == ["Apple", "Banana"]
        assert (page["total"], page["total_pages"]) == (5, 3)
        assert client.get("/api/books/", params={"search": "zEb"}).json()["total"] == 1
        assert client.get("/api/books/").json()["page_size"] == 12

    def test_large_page_sizes_are_served(self, settings):
        settings = settings.model_copy(update={"catalog_page_size": 150})
        with TestClient(create_app(settings)) as client:
            login(client)
            client.post("/api/books/", data=BOOK_FORM)

            default = client.get("/api/books/")
            explicit = client.get("/api/books/", params={"page_size": 500})

        assert default.status_code == 200
        assert default.json()["page_size"] == 150
        assert explicit.json()["page_size"] == 500
        assert explicit.json()["total_pages"] == 1

    def test_partial_update(self, client):
        login(client)
        client.post("/api/books/", data=BOOK_FORM)

        response = client.put("/api/books/1", data={"title": "Dune Messiah"})

        book = response.json()["book"]
        assert response.status_code == 200
        assert book["title"] == "Dune Messiah"
        assert book["author"] == "Frank Herbert"
        assert book["price"] == 20.0

    def test_only_owner_can_modify(self, client):
        login(client)
        client.post("/api/books/", data=BOOK_FORM)
        client.post("/api/auth/logout")
        login(client, "bob@example.com", "secret2")

        assert client.put("/api/books/1", data={"title": "Mine now"}).status_code == 404
        assert client.delete("/api/books/1").status_code == 404
        assert client.get("/api/books/1").json()["title"] == "Dune"

    def test_my_books_only_lists_own(self, client):
        login(client)
        client.post("/api/books/", data=BOOK_FORM)
        client.post("/api/auth/logout")
        login(client, "bob@example.com", "secret2")
        client.post("/api/books/", data={**BOOK_FORM, "title": "Bob's book"})

        mine = client.get("/api/books/mine").json()

        assert [b["title"] for b in mine["items"]] == ["Bob's book"]
        assert mine["page_size"] == 10
        assert client.get("/api/books/").json()["total"] == 2

    def test_delete(self, client):
        login(client)
        client.post("/api/books/", data=BOOK_FORM)

        response = client.delete("/api/books/1")

        assert response.json() == {"success": True, "message": "Book with ID 1 deleted successfully.",
                                   "book": None, "user": None, "field_errors": None}
        assert client.get("/api/books/1").status_code == 404
        assert client.delete("/api/books/1").status_code == 404

    def test_unknown_api_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"detail": "API endpoint not found"}


class TestProfileRoutes:
    def test_update_profile(self, client):
        login(client)

        response = client.put("/api/profile/", json={"name": "Annie"})

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Annie"
        assert client.get("/api/profile/").json()["email"] == "ann@example.com"

    def test_email_taken(self, client):
        login(client)

        response = client.put("/api/profile/", json={"email": "bob@example.com"})

        assert response.status_code == 400
        assert response.json()["success"] is False

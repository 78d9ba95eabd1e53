"""Book store behaviour shared by the JSON-file and SQL implementations."""

import pytest

from bookmarket.errors import NotFoundError, ValidationError
from bookmarket.schemas import BookDraft, BookPatch, Category, ScanCriteria

from .conftest import make_draft


class TestCreate:
    """Id assignment and draft checks."""

    @pytest.mark.asyncio
    async def test_first_book_gets_id_one(self, book_store):
        book = await book_store.create(make_draft())

        assert book.id == 1
        assert book.title == "Dune"
        assert book.category == "Fantasy"
        assert book.price == 20.0
        assert book.owner_id == 1
        assert book.thumbnail == ""

    @pytest.mark.asyncio
    async def test_ids_are_greater_than_every_existing_id(self, book_store):
        ids = []
        for title in ("A", "B", "C"):
            book = await book_store.create(make_draft(title=title))
            assert all(book.id > existing for existing in ids)
            ids.append(book.id)

        assert ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_price_is_rounded_to_cents(self, book_store):
        book = await book_store.create(make_draft(price=12.345))

        assert book.price == 12.35

    @pytest.mark.asyncio
    async def test_invalid_draft_is_rejected_without_writing(self, book_store):
        await book_store.create(make_draft(title="Existing"))
        before = await book_store.scan()

        bad = BookDraft.model_construct(
            title="", description="d", author="a", category=Category.FANTASY, price=10.0, owner_id=1, thumbnail=""
        )
        with pytest.raises(ValidationError) as exc_info:
            await book_store.create(bad)

        assert "title" in exc_info.value.field_errors
        assert await book_store.scan() == before

    @pytest.mark.asyncio
    async def test_non_positive_owner_is_rejected(self, book_store):
        bad = make_draft().model_copy(update={"owner_id": 0})

        with pytest.raises(ValidationError):
            await book_store.create(bad)

        assert await book_store.scan() == []


class TestGet:
    @pytest.mark.asyncio
    async def test_get_existing(self, book_store):
        created = await book_store.create(make_draft())

        assert await book_store.get(created.id) == created

    @pytest.mark.asyncio
    async def test_missing_book_is_none(self, book_store):
        await book_store.create(make_draft())

        assert await book_store.get(99) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", [0, -3, True, "abc", 1.5])
    async def test_invalid_id_raises(self, book_store, bad_id):
        with pytest.raises(ValidationError):
            await book_store.get(bad_id)


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, book_store):
        created = await book_store.create(make_draft(title="Old", author="A", price="20"))

        updated = await book_store.update(created.id, BookPatch(title="New"))

        assert updated.title == "New"
        assert updated.author == "A"
        assert updated.price == 20.0
        assert updated.description == created.description
        assert await book_store.get(created.id) == updated

    @pytest.mark.asyncio
    async def test_thumbnail_kept_unless_supplied(self, book_store):
        created = await book_store.create(make_draft(thumbnail="/uploads/old.png"))

        kept = await book_store.update(created.id, BookPatch(price="9.99"))
        assert kept.thumbnail == "/uploads/old.png"
        assert kept.price == 9.99

        replaced = await book_store.update(created.id, BookPatch(thumbnail="/uploads/new.png"))
        assert replaced.thumbnail == "/uploads/new.png"

    @pytest.mark.asyncio
    async def test_update_missing_book(self, book_store):
        with pytest.raises(NotFoundError):
            await book_store.update(42, BookPatch(title="Nope"))

    @pytest.mark.asyncio
    async def test_invalid_patch_leaves_record_untouched(self, book_store):
        created = await book_store.create(make_draft())
        bad = BookPatch.model_construct(_fields_set={"title"}, title="")

        with pytest.raises(ValidationError):
            await book_store.update(created.id, bad)

        assert await book_store.get(created.id) == created


class TestDelete:
    @pytest.mark.asyncio
    async def test_create_then_delete_removes_exactly_one(self, book_store):
        first = await book_store.create(make_draft(title="First"))
        doomed = await book_store.create(make_draft(title="Doomed"))
        last = await book_store.create(make_draft(title="Last"))

        await book_store.delete(doomed.id)

        assert await book_store.get(doomed.id) is None
        assert await book_store.scan() == [first, last]

    @pytest.mark.asyncio
    async def test_delete_missing_book(self, book_store):
        with pytest.raises(NotFoundError):
            await book_store.delete(7)

    @pytest.mark.asyncio
    async def test_new_id_follows_highest_remaining(self, book_store):
        await book_store.create(make_draft(title="One"))
        second = await book_store.create(make_draft(title="Two"))
        await book_store.delete(1)

        third = await book_store.create(make_draft(title="Three"))

        assert third.id == second.id + 1


class TestScan:
    @pytest.fixture
    async def shelf(self, book_store):
        for title, owner, category in [
            ("Zebra Crossing", 1, "Science"),
            ("apple pie", 2, "History"),
            ("Mango", 1, "Fantasy"),
            ("Banana", 2, "Science"),
        ]:
            await book_store.create(make_draft(title=title, owner_id=owner, category=category))
        return book_store

    @pytest.mark.asyncio
    async def test_insertion_order_by_default(self, shelf):
        titles = [b.title for b in await shelf.scan()]

        assert titles == ["Zebra Crossing", "apple pie", "Mango", "Banana"]

    @pytest.mark.asyncio
    async def test_title_order_ignores_case(self, shelf):
        asc = [b.title for b in await shelf.scan(order="asc")]
        desc = [b.title for b in await shelf.scan(order="desc")]

        assert asc == ["apple pie", "Banana", "Mango", "Zebra Crossing"]
        assert desc == list(reversed(asc))

    @pytest.mark.asyncio
    async def test_owner_filter(self, shelf):
        books = await shelf.scan(ScanCriteria(owner_id=2))

        assert {b.title for b in books} == {"apple pie", "Banana"}

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, shelf):
        books = await shelf.scan(ScanCriteria(search="ZEBRA"))

        assert [b.title for b in books] == ["Zebra Crossing"]

    @pytest.mark.asyncio
    async def test_combined_filters(self, shelf):
        books = await shelf.scan(ScanCriteria(owner_id=2, category="Science", search="an"))

        assert [b.title for b in books] == ["Banana"]

    @pytest.mark.asyncio
    async def test_search_folds_non_ascii_case(self, book_store):
        await book_store.create(make_draft(title="Über Zebra"))
        await book_store.create(make_draft(title="Plain"))

        books = await book_store.scan(ScanCriteria(search="über"))

        assert [b.title for b in books] == ["Über Zebra"]

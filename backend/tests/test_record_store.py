import time

import pytest
from sqlalchemy.exc import OperationalError

from doc_organizer.errors import PersistenceError
from doc_organizer.models.category import Category, FileType
from doc_organizer.services.record_store import DocumentFilter, NewDocument


def _new(name="file.pdf", category=Category.OTHERS, size=100, description=None, document_number=None):
    filename = f"{int(time.time() * 1000)}_{name}"
    return NewDocument(
        filename=filename,
        original_filename=name,
        category=category,
        file_type=FileType.PDF,
        file_size=size,
        file_path=f"uploads/{category.value}/{filename}",
        description=description,
        document_number=document_number,
    )


class TestRecordStoreCRUD:
    def test_create_returns_persisted_record(self, record_store):
        doc = record_store.create(_new("bill.pdf", Category.INVOICES, 2048, "March electricity bill"))
        assert doc.id is not None
        assert doc.category == "invoices"
        assert doc.file_type == "pdf"
        assert doc.file_size == 2048
        assert doc.description == "March electricity bill"
        assert doc.upload_date == doc.created_at == doc.updated_at

    def test_find_by_id_missing(self, record_store):
        assert record_store.find_by_id(9999) is None

    def test_update_only_description(self, record_store):
        doc = record_store.create(_new("a.pdf", Category.RESUMES, document_number="R-1"))
        before = (doc.category, doc.document_number, doc.file_path, doc.updated_at)
        time.sleep(0.01)

        updated = record_store.update(doc.id, {"description": "new text"})
        assert updated.description == "new text"
        assert (updated.category, updated.document_number, updated.file_path) == before[:3]
        assert updated.updated_at > before[3]

    def test_empty_string_clears_field(self, record_store):
        doc = record_store.create(_new(description="to clear"))
        updated = record_store.update(doc.id, {"description": ""})
        assert updated.description is None

    def test_empty_changes_returns_unchanged(self, record_store):
        doc = record_store.create(_new())
        stamp = doc.updated_at
        same = record_store.update(doc.id, {})
        assert same.updated_at == stamp

    def test_update_missing_id(self, record_store):
        assert record_store.update(4242, {"description": "x"}) is None

    def test_delete(self, record_store):
        doc = record_store.create(_new())
        assert record_store.delete(doc.id) is True
        assert record_store.delete(doc.id) is False
        assert record_store.find_by_id(doc.id) is None

    def test_create_failure_raises_persistence_error(self, record_store, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(record_store.db, "commit", broken_commit)
        with pytest.raises(PersistenceError):
            record_store.create(_new())

    def test_create_read_back_failure_raises_persistence_error(self, record_store, monkeypatch):
        def broken_find(document_id):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(record_store, "find_by_id", broken_find)
        with pytest.raises(PersistenceError) as exc_info:
            record_store.create(_new())
        assert isinstance(exc_info.value.cause, OperationalError)
        assert record_store.count() == 0

    def test_update_read_back_failure_raises_persistence_error(self, record_store, monkeypatch):
        doc = record_store.create(_new())

        def broken_refresh(instance):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(record_store.db, "refresh", broken_refresh)
        with pytest.raises(PersistenceError):
            record_store.update(doc.id, {"description": "changed"})


class TestRecordStoreQueries:
    @pytest.fixture
    def populated(self, record_store):
        docs = [
            record_store.create(_new("Passport.pdf", Category.PERSONAL_IDS, 10, document_number="P123456")),
            record_store.create(_new("degree.pdf", Category.EDUCATIONAL_DOCS, 20, description="Bachelor degree")),
            record_store.create(_new("cv_2024.pdf", Category.RESUMES, 30)),
            record_store.create(_new("amazon.pdf", Category.INVOICES, 40, description="Laptop PASSPORT cover")),
            record_store.create(_new("electricity.pdf", Category.INVOICES, 50, description="March bill")),
        ]
        return docs

    def test_find_all_newest_first(self, record_store, populated):
        ids = [d.id for d in record_store.find_all()]
        assert ids == sorted(ids, reverse=True)

    @pytest.mark.parametrize("category", list(Category))
    def test_category_filter(self, record_store, populated, category):
        docs = record_store.find_all(DocumentFilter(category=category))
        assert all(d.category == category.value for d in docs)
        expected = sum(1 for d in populated if d.category == category.value)
        assert len(docs) == expected
        assert record_store.count(DocumentFilter(category=category)) == expected

    def test_search_matches_any_field_case_insensitive(self, record_store, populated):
        docs = record_store.find_all(DocumentFilter(search="passport"))
        names = {d.original_filename for d in docs}
        assert names == {"Passport.pdf", "amazon.pdf"}

        docs = record_store.find_all(DocumentFilter(search="p1234"))
        assert [d.original_filename for d in docs] == ["Passport.pdf"]

    def test_search_and_category_compose(self, record_store, populated):
        docs = record_store.find_all(DocumentFilter(category=Category.INVOICES, search="passport"))
        assert [d.original_filename for d in docs] == ["amazon.pdf"]

    def test_search_wildcards_are_literal(self, record_store, populated):
        assert record_store.find_all(DocumentFilter(search="%")) == []
        assert [d.original_filename for d in record_store.find_all(DocumentFilter(search="cv_"))] == ["cv_2024.pdf"]

    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 7])
    def test_pagination_reproduces_full_list(self, record_store, populated, limit):
        full = [d.id for d in record_store.find_all()]
        paged = []
        offset = 0
        while True:
            page = record_store.find_all(DocumentFilter(limit=limit, offset=offset))
            if not page:
                break
            paged.extend(d.id for d in page)
            offset += limit
        assert paged == full

    def test_count_ignores_pagination(self, record_store, populated):
        assert record_store.count(DocumentFilter(limit=1, offset=3)) == 5

    def test_category_stats_descending(self, record_store, populated):
        stats = record_store.category_stats()
        assert stats[0].category == "invoices"
        assert stats[0].count == 2
        counts = [s.count for s in stats]
        assert counts == sorted(counts, reverse=True)

    def test_overview_stats(self, record_store, populated):
        overview = record_store.overview_stats()
        assert overview.total_documents == 5
        assert overview.total_size_bytes == 150

    def test_overview_stats_empty(self, record_store):
        overview = record_store.overview_stats()
        assert overview.total_documents == 0
        assert overview.total_size_bytes == 0
        assert overview.by_category == []

    def test_recent(self, record_store, populated):
        recent = record_store.recent(2)
        assert [d.original_filename for d in recent] == ["electricity.pdf", "amazon.pdf"]

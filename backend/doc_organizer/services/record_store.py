import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import desc, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from doc_organizer.errors import PersistenceError, report_inconsistency
from doc_organizer.models.category import Category, FileType
from doc_organizer.models.document import Document
from doc_organizer.schemas.document import CategoryCount, OverviewStats

logger = logging.getLogger("doc_organizer.records")

UPDATABLE_FIELDS = ("description", "document_number", "category", "file_path")
CLEARABLE_FIELDS = ("description", "document_number")


def utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class NewDocument:
    filename: str
    original_filename: str
    category: Category
    file_type: FileType
    file_size: int
    file_path: str
    description: str | None = None
    document_number: str | None = None


@dataclass
class DocumentFilter:
    category: Category | None = None
    search: str | None = None
    limit: int | None = None
    offset: int | None = None


class DocumentRecordStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, message: str):
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("%s: %s", message, exc)
            raise PersistenceError(message, cause=exc) from exc

    def create(self, data: NewDocument) -> Document:
        now = utcnow()
        doc = Document(
            filename=data.filename,
            original_filename=data.original_filename,
            category=Category(data.category).value,
            file_type=FileType(data.file_type).value,
            file_size=data.file_size,
            file_path=data.file_path,
            description=data.description or None,
            document_number=data.document_number or None,
            upload_date=now,
            created_at=now,
            updated_at=now,
        )
        self.db.add(doc)
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to create document: %s", exc)
            raise PersistenceError("Failed to create document", cause=exc) from exc
        document_id = doc.id
        self._commit("Failed to create document")

        try:
            created = self.find_by_id(document_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to read back document %s: %s", document_id, exc)
            self._drop_unreadable(document_id)
            raise PersistenceError("Failed to create document", cause=exc) from exc
        if created is None:
            raise PersistenceError("Failed to create document")
        return created

    def _drop_unreadable(self, document_id: int):
        # A create that raised leaves no row behind.
        self.db.rollback()
        try:
            self.delete(document_id)
        except PersistenceError as exc:
            report_inconsistency("unreadable_record", document_id, f"row committed but could not be read or removed: {exc}")

    def find_by_id(self, document_id: int) -> Document | None:
        return self.db.query(Document).filter(Document.id == document_id).first()

    def _filtered(self, flt: DocumentFilter | None) -> Query:
        query = self.db.query(Document)
        if flt is None:
            return query
        if flt.category:
            query = query.filter(Document.category == Category(flt.category).value)
        if flt.search:
            pattern = f"%{_escape_like(flt.search)}%"
            query = query.filter(
                or_(
                    Document.original_filename.ilike(pattern, escape="\\"),
                    Document.description.ilike(pattern, escape="\\"),
                    Document.document_number.ilike(pattern, escape="\\"),
                )
            )
        return query

    def find_all(self, flt: DocumentFilter | None = None) -> list[Document]:
        query = self._filtered(flt).order_by(Document.upload_date.desc(), Document.id.desc())
        if flt is not None and flt.limit:
            query = query.limit(flt.limit).offset(flt.offset or 0)
        return query.all()

    def count(self, flt: DocumentFilter | None = None) -> int:
        return self._filtered(flt).count()

    def search(self, term: str, category: Category | None = None) -> list[Document]:
        return self.find_all(DocumentFilter(category=category, search=term))

    def recent(self, limit: int = 10) -> list[Document]:
        return self.find_all(DocumentFilter(limit=limit))

    def update(self, document_id: int, changes: dict) -> Document | None:
        """Apply the keys present in ``changes``.

        Empty strings (or None) clear description and document_number. An
        empty change set returns the stored record untouched.
        """
        doc = self.find_by_id(document_id)
        if doc is None:
            return None

        applied = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if not applied:
            return doc

        for key, value in applied.items():
            if key in CLEARABLE_FIELDS and not value:
                value = None
            elif key == "category":
                value = Category(value).value
            setattr(doc, key, value)
        doc.updated_at = utcnow()

        self._commit("Failed to update document")
        try:
            self.db.refresh(doc)
        except SQLAlchemyError as exc:
            logger.error("Failed to read back document %s: %s", document_id, exc)
            raise PersistenceError("Failed to update document", cause=exc) from exc
        return doc

    def delete(self, document_id: int) -> bool:
        try:
            deleted = self.db.query(Document).filter(Document.id == document_id).delete()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("Failed to delete document", cause=exc) from exc
        self._commit("Failed to delete document")
        return deleted > 0

    def category_stats(self) -> list[CategoryCount]:
        rows = (
            self.db.query(Document.category, func.count(Document.id).label("count"))
            .group_by(Document.category)
            .order_by(desc("count"), Document.category)
            .all()
        )
        return [CategoryCount(category=row.category, count=row.count) for row in rows]

    def overview_stats(self) -> OverviewStats:
        total = self.db.query(func.count(Document.id)).scalar() or 0
        total_size = self.db.query(func.coalesce(func.sum(Document.file_size), 0)).scalar() or 0
        return OverviewStats(
            total_documents=total,
            total_size_bytes=total_size,
            by_category=self.category_stats(),
        )

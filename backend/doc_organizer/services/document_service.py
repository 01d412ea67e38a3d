import logging
from pathlib import Path
from typing import BinaryIO

from doc_organizer.errors import (
    FileMoveError,
    FileOperationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    report_inconsistency,
)
from doc_organizer.models.category import Category, FileType, mime_type_for
from doc_organizer.models.document import Document
from doc_organizer.schemas.document import IntegrityEntry
from doc_organizer.services.record_store import DocumentFilter, DocumentRecordStore, NewDocument
from doc_organizer.services.validation import (
    MAX_UPLOAD_BYTES,
    FieldError,
    UploadedFileInfo,
    normalize_text,
    validate_update,
    validate_upload_form,
)
from doc_organizer.utils.filesystem import CategoryFileStore

logger = logging.getLogger("doc_organizer")

EDITABLE_FIELDS = ("description", "document_number", "category")


def _raise_if_invalid(errors: list[FieldError]):
    if errors:
        raise ValidationError([e.to_dict() for e in errors])


class DocumentService:
    """Sequences the file store and the record store.

    The filesystem and SQLite share no transaction, so each operation orders
    its steps to keep "one record, one file" true and compensates (or
    reports) when a later step fails.
    """

    def __init__(
        self,
        records: DocumentRecordStore,
        files: CategoryFileStore,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.records = records
        self.files = files
        self.max_upload_bytes = max_upload_bytes

    # -- reads -----------------------------------------------------------

    def get(self, document_id: int) -> Document:
        doc = self.records.find_by_id(document_id)
        if doc is None:
            raise NotFoundError("Document not found")
        return doc

    def list_documents(self, flt: DocumentFilter) -> tuple[list[Document], int]:
        return self.records.find_all(flt), self.records.count(flt)

    def open_download(self, document_id: int) -> tuple[Path, str, str]:
        doc = self.get(document_id)
        if not self.files.exists(doc.file_path):
            logger.warning("File for document %s missing at %s", doc.id, doc.file_path)
            raise NotFoundError("File not found on server")
        return self.files.full_path(doc.file_path), mime_type_for(doc.file_type), doc.original_filename

    def integrity_report(self) -> list[IntegrityEntry]:
        return [
            IntegrityEntry(
                id=doc.id,
                original_filename=doc.original_filename,
                category=doc.category,
                file_path=doc.file_path,
                file_exists=self.files.exists(doc.file_path),
            )
            for doc in self.records.find_all()
        ]

    # -- upload ----------------------------------------------------------

    def upload(
        self,
        source: BinaryIO | None,
        original_filename: str | None,
        content_type: str | None,
        category: str | None,
        description: str | None = None,
        document_number: str | None = None,
    ) -> Document:
        staged = None
        info = None
        if source is not None and original_filename:
            staged = self.files.stage(source, original_filename, self.max_upload_bytes)
            info = UploadedFileInfo(original_filename, content_type, staged.size, staged.truncated)

        errors = validate_upload_form(info, category, description, document_number, self.max_upload_bytes)
        if errors:
            if staged is not None:
                self.files.discard(staged)
            _raise_if_invalid(errors)

        target = Category(normalize_text(category))
        try:
            file_path = self.files.place(staged.path, target, staged.filename)
        except FileMoveError:
            self.files.discard(staged)
            raise

        file_type = FileType.from_filename(original_filename) or FileType.from_mime_type(content_type)
        try:
            doc = self.records.create(
                NewDocument(
                    filename=staged.filename,
                    original_filename=original_filename,
                    category=target,
                    file_type=file_type,
                    file_size=staged.size,
                    file_path=file_path,
                    description=normalize_text(description),
                    document_number=normalize_text(document_number),
                )
            )
        except PersistenceError as exc:
            self._remove_orphan(file_path, exc)
            raise

        logger.info("Uploaded document %s (%s, %d bytes) to %s", doc.id, doc.original_filename, doc.file_size, doc.category)
        return doc

    def _remove_orphan(self, file_path: str, error: PersistenceError):
        try:
            self.files.delete(file_path)
        except FileOperationError as cleanup_exc:
            report_inconsistency("orphaned_file", None, f"{file_path} was placed but has no record")
            raise PersistenceError(
                "Failed to save document record",
                cause=error.cause or error,
                cleanup_error=cleanup_exc,
            ) from error

    # -- update ----------------------------------------------------------

    def update(self, document_id: int, changes: dict) -> Document:
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        _raise_if_invalid(validate_update(changes))
        changes = {k: normalize_text(v) for k, v in changes.items()}

        doc = self.get(document_id)
        old_category = doc.category
        filename = doc.filename

        moved = False
        new_category = changes.get("category")
        if new_category and new_category != old_category:
            target = Category(new_category)
            if not self.files.move(Category(old_category), target, filename):
                raise FileMoveError("Failed to move file to new category")
            changes["file_path"] = self.files.relative_path(target, filename)
            moved = True

        try:
            updated = self.records.update(document_id, changes)
        except PersistenceError:
            if moved:
                report_inconsistency(
                    "category_move_not_persisted",
                    document_id,
                    f"{filename} now in {new_category} but record still points to {old_category}",
                )
            raise

        if updated is None:
            if moved:
                report_inconsistency(
                    "category_move_not_persisted",
                    document_id,
                    f"record vanished after {filename} was moved to {new_category}",
                )
            raise NotFoundError("Document not found")
        return updated

    # -- delete ----------------------------------------------------------

    def delete(self, document_id: int):
        doc = self.get(document_id)
        file_path = doc.file_path

        removed = self.files.delete(file_path)
        if not removed:
            logger.warning("File for document %s already absent at %s", document_id, file_path)

        try:
            deleted = self.records.delete(document_id)
        except PersistenceError:
            if removed:
                report_inconsistency("record_without_file", document_id, f"{file_path} deleted, record kept")
            raise

        if not deleted:
            if removed:
                report_inconsistency("record_without_file", document_id, f"{file_path} deleted, record kept")
            raise PersistenceError("Failed to delete document")
        logger.info("Deleted document %s", document_id)

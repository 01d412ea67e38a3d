from fastapi import Depends, Request
from sqlalchemy.orm import Session

from doc_organizer.config import Settings
from doc_organizer.database import get_db
from doc_organizer.services.document_service import DocumentService
from doc_organizer.services.record_store import DocumentRecordStore
from doc_organizer.utils.filesystem import CategoryFileStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_store(request: Request) -> CategoryFileStore:
    return request.app.state.file_store


def get_record_store(db: Session = Depends(get_db)) -> DocumentRecordStore:
    return DocumentRecordStore(db)


def get_document_service(
    records: DocumentRecordStore = Depends(get_record_store),
    files: CategoryFileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings),
) -> DocumentService:
    return DocumentService(records, files, max_upload_bytes=settings.max_upload_bytes)

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from doc_organizer.config import Settings
from doc_organizer.dependencies import get_document_service, get_file_store, get_record_store, get_settings
from doc_organizer.errors import ValidationError
from doc_organizer.models.category import Category
from doc_organizer.schemas.document import (
    ApiResponse,
    CategoryCount,
    CategoryInfo,
    DocumentResponse,
    DocumentUpdate,
    IntegrityEntry,
    OverviewStats,
    PaginatedResponse,
)
from doc_organizer.services.document_service import DocumentService
from doc_organizer.services.record_store import DocumentFilter, DocumentRecordStore
from doc_organizer.services.validation import (
    validate_document_id,
    validate_list_query,
    validate_pagination,
)
from doc_organizer.utils.filesystem import CategoryFileStore

router = APIRouter(prefix="/documents", tags=["documents"])


def _document_id(raw: str) -> int:
    errors = validate_document_id(raw)
    if errors:
        raise ValidationError([e.to_dict() for e in errors], message="Invalid document ID")
    return int(raw)


def _doc_to_response(doc) -> DocumentResponse:
    return DocumentResponse.model_validate(doc)


@router.post("/upload", response_model=ApiResponse[DocumentResponse], status_code=201)
async def upload_document(
    file: UploadFile | None = File(None),
    category: str | None = Form(None),
    description: str | None = Form(None),
    document_number: str | None = Form(None),
    service: DocumentService = Depends(get_document_service),
):
    doc = service.upload(
        file.file if file else None,
        file.filename if file else None,
        file.content_type if file else None,
        category,
        description,
        document_number,
    )
    return ApiResponse(data=_doc_to_response(doc), message="Document uploaded successfully")


@router.get("", response_model=PaginatedResponse[DocumentResponse])
async def list_documents(
    category: str | None = None,
    search: str | None = None,
    limit: str | None = None,
    offset: str | None = None,
    service: DocumentService = Depends(get_document_service),
):
    # Raw strings so every bad parameter is reported together.
    errors = validate_list_query(category, search, limit, offset)
    if errors:
        raise ValidationError([e.to_dict() for e in errors])

    flt = DocumentFilter(
        category=Category(category.strip()) if category and category.strip() else None,
        search=search.strip() if search is not None else None,
        limit=int(limit) if limit is not None else None,
        offset=int(offset) if offset is not None else None,
    )
    docs, total = service.list_documents(flt)
    return PaginatedResponse(
        data=[_doc_to_response(d) for d in docs],
        total=total,
        limit=flt.limit,
        offset=flt.offset,
    )


@router.get("/categories", response_model=ApiResponse[list[CategoryInfo]])
async def list_categories():
    return ApiResponse(data=[CategoryInfo(value=c.value, name=c.display_name) for c in Category])


@router.get("/stats/categories", response_model=ApiResponse[list[CategoryCount]])
async def category_stats(records: DocumentRecordStore = Depends(get_record_store)):
    return ApiResponse(data=records.category_stats())


@router.get("/stats/overview", response_model=ApiResponse[OverviewStats])
async def overview_stats(records: DocumentRecordStore = Depends(get_record_store)):
    return ApiResponse(data=records.overview_stats())


@router.get("/recent", response_model=ApiResponse[list[DocumentResponse]])
async def recent_documents(
    limit: str = "10",
    records: DocumentRecordStore = Depends(get_record_store),
):
    errors = validate_pagination(limit=limit)
    if errors:
        raise ValidationError([e.to_dict() for e in errors])
    return ApiResponse(data=[_doc_to_response(d) for d in records.recent(int(limit))])


@router.get("/debug/files", response_model=ApiResponse[dict])
async def debug_files(
    files: CategoryFileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings),
):
    if not settings.debug_routes:
        raise HTTPException(status_code=404, detail="Route not found")
    return ApiResponse(data={
        "uploads_dir": str(files.uploads_dir),
        "exists": files.uploads_dir.exists(),
        "categories": files.list_files(),
    })


@router.get("/debug/validate", response_model=ApiResponse[list[IntegrityEntry]])
async def debug_validate(
    service: DocumentService = Depends(get_document_service),
    settings: Settings = Depends(get_settings),
):
    if not settings.debug_routes:
        raise HTTPException(status_code=404, detail="Route not found")
    return ApiResponse(data=service.integrity_report())


@router.get("/{document_id}", response_model=ApiResponse[DocumentResponse])
async def get_document(document_id: str, service: DocumentService = Depends(get_document_service)):
    doc = service.get(_document_id(document_id))
    return ApiResponse(data=_doc_to_response(doc))


@router.get("/{document_id}/download")
async def download_document(document_id: str, service: DocumentService = Depends(get_document_service)):
    full_path, media_type, original_filename = service.open_download(_document_id(document_id))
    return FileResponse(
        path=str(full_path),
        filename=original_filename,
        media_type=media_type,
        content_disposition_type="inline",
    )


@router.put("/{document_id}", response_model=ApiResponse[DocumentResponse])
async def update_document(
    document_id: str,
    req: DocumentUpdate,
    service: DocumentService = Depends(get_document_service),
):
    doc = service.update(_document_id(document_id), req.model_dump(exclude_unset=True))
    return ApiResponse(data=_doc_to_response(doc), message="Document updated successfully")


@router.delete("/{document_id}", response_model=ApiResponse)
async def delete_document(document_id: str, service: DocumentService = Depends(get_document_service)):
    service.delete(_document_id(document_id))
    return ApiResponse(message="Document deleted successfully")

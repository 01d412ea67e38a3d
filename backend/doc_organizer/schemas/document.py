from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

DataT = TypeVar("DataT")


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    original_filename: str
    category: str
    file_type: str
    file_size: int
    file_path: str
    description: str | None
    document_number: str | None
    upload_date: str
    created_at: str
    updated_at: str


class DocumentUpdate(BaseModel):
    description: str | None = None
    document_number: str | None = None
    category: str | None = None


class CategoryInfo(BaseModel):
    value: str
    name: str


class CategoryCount(BaseModel):
    category: str
    count: int


class OverviewStats(BaseModel):
    total_documents: int
    total_size_bytes: int
    by_category: list[CategoryCount]


class IntegrityEntry(BaseModel):
    id: int
    original_filename: str
    category: str
    file_path: str
    file_exists: bool


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    data: DataT | None = None
    error: str | None = None
    message: str | None = None


class PaginatedResponse(BaseModel, Generic[DataT]):
    success: bool = True
    data: list[DataT]
    total: int
    limit: int | None = None
    offset: int | None = None

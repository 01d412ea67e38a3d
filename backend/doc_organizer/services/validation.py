"""Input checks run before any side effect.

Every function returns a list of ``FieldError``; callers concatenate the
lists so all problems are reported in one response.
"""
from dataclasses import asdict, dataclass
from typing import Any

from doc_organizer.models.category import ALLOWED_MIME_TYPES, Category

MAX_DESCRIPTION_CHARS = 1000
MAX_DOCUMENT_NUMBER_CHARS = 100
MAX_SEARCH_CHARS = 200
MAX_PAGE_LIMIT = 100
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
# SQLite INTEGER is a signed 64-bit value.
MAX_SQLITE_INTEGER = 2**63 - 1


@dataclass
class FieldError:
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class UploadedFileInfo:
    filename: str | None
    content_type: str | None
    size: int
    truncated: bool = False


def _clean(value: str | None) -> str | None:
    return value.strip() if isinstance(value, str) else value


def validate_category(value: str | None, field: str = "category", required: bool = True) -> list[FieldError]:
    value = _clean(value)
    if value is None or value == "":
        if required:
            return [FieldError(field, "Category is required", value)]
        return []
    if value not in Category.values():
        return [FieldError(field, f"Category must be one of: {', '.join(Category.values())}", value)]
    return []


def validate_description(value: str | None) -> list[FieldError]:
    value = _clean(value)
    if value and len(value) > MAX_DESCRIPTION_CHARS:
        return [FieldError("description", f"Description must not exceed {MAX_DESCRIPTION_CHARS} characters")]
    return []


def validate_document_number(value: str | None) -> list[FieldError]:
    value = _clean(value)
    if value and len(value) > MAX_DOCUMENT_NUMBER_CHARS:
        return [FieldError("document_number", f"Document number must not exceed {MAX_DOCUMENT_NUMBER_CHARS} characters")]
    return []


def _format_limit(max_bytes: int) -> str:
    if max_bytes % (1024 * 1024) == 0:
        return f"{max_bytes // (1024 * 1024)}MB"
    return f"{max_bytes} bytes"


def validate_upload_file(info: UploadedFileInfo | None, max_bytes: int = MAX_UPLOAD_BYTES) -> list[FieldError]:
    if info is None or not info.filename:
        return [FieldError("file", "No file uploaded")]
    errors = []
    if (info.content_type or "").lower() not in ALLOWED_MIME_TYPES:
        errors.append(FieldError("file", "Invalid file type. Only PDF, JPG, and PNG files are allowed", info.content_type))
    if info.truncated or info.size > max_bytes:
        errors.append(FieldError("file", f"File size exceeds {_format_limit(max_bytes)} limit"))
    elif info.size == 0:
        errors.append(FieldError("file", "Uploaded file is empty"))
    return errors


def validate_search(value: str | None) -> list[FieldError]:
    if value is None:
        return []
    cleaned = value.strip()
    if not 1 <= len(cleaned) <= MAX_SEARCH_CHARS:
        return [FieldError("search", f"Search term must be between 1 and {MAX_SEARCH_CHARS} characters", value)]
    return []


def _parse_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def validate_pagination(limit=None, offset=None) -> list[FieldError]:
    errors = []
    if limit is not None:
        parsed = _parse_int(limit)
        if parsed is None or not 1 <= parsed <= MAX_PAGE_LIMIT:
            errors.append(FieldError("limit", f"Limit must be between 1 and {MAX_PAGE_LIMIT}", limit))
    if offset is not None:
        parsed = _parse_int(offset)
        if parsed is None or not 0 <= parsed <= MAX_SQLITE_INTEGER:
            errors.append(FieldError("offset", "Offset must be a non-negative integer", offset))
    return errors


def validate_document_id(value) -> list[FieldError]:
    parsed = _parse_int(value)
    if parsed is None or not 1 <= parsed <= MAX_SQLITE_INTEGER:
        return [FieldError("id", "Document ID must be a positive integer", value)]
    return []


# -- per-operation aggregates ----------------------------------------------

def validate_upload_form(
    file: UploadedFileInfo | None,
    category: str | None,
    description: str | None = None,
    document_number: str | None = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> list[FieldError]:
    return (
        validate_upload_file(file, max_bytes)
        + validate_category(category)
        + validate_description(description)
        + validate_document_number(document_number)
    )


def validate_update(changes: dict) -> list[FieldError]:
    errors = []
    if "category" in changes:
        errors += validate_category(changes["category"])
    if "description" in changes:
        errors += validate_description(changes["description"])
    if "document_number" in changes:
        errors += validate_document_number(changes["document_number"])
    return errors


def validate_list_query(
    category: str | None = None,
    search: str | None = None,
    limit=None,
    offset=None,
) -> list[FieldError]:
    errors = []
    if category is not None:
        errors += validate_category(category, required=False)
    return errors + validate_search(search) + validate_pagination(limit, offset)


def normalize_text(value: str | None) -> str | None:
    return _clean(value)

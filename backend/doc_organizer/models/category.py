from enum import Enum


class Category(str, Enum):
    PERSONAL_IDS = "personal-ids"
    EDUCATIONAL_DOCS = "educational-docs"
    WORK_EXPERIENCE = "work-experience"
    RESUMES = "resumes"
    INVOICES = "invoices"
    INSURANCE = "insurance"
    BANK_STATEMENTS = "bank-statements"
    OTHERS = "others"

    @property
    def display_name(self) -> str:
        return CATEGORY_NAMES[self]

    @classmethod
    def values(cls) -> list[str]:
        return [c.value for c in cls]


CATEGORY_NAMES: dict[Category, str] = {
    Category.PERSONAL_IDS: "Personal IDs",
    Category.EDUCATIONAL_DOCS: "Educational Docs",
    Category.WORK_EXPERIENCE: "Work Experience Letters",
    Category.RESUMES: "Resumes",
    Category.INVOICES: "Online Purchase Invoices",
    Category.INSURANCE: "Insurance Docs",
    Category.BANK_STATEMENTS: "Bank Statements",
    Category.OTHERS: "Others",
}


class FileType(str, Enum):
    PDF = "pdf"
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @classmethod
    def from_filename(cls, filename: str) -> "FileType | None":
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        try:
            return cls(ext)
        except ValueError:
            return None

    @classmethod
    def from_mime_type(cls, mime_type: str | None) -> "FileType | None":
        return _MIME_TO_FILE_TYPE.get((mime_type or "").lower())


MIME_TYPES: dict[FileType, str] = {
    FileType.PDF: "application/pdf",
    FileType.JPG: "image/jpeg",
    FileType.JPEG: "image/jpeg",
    FileType.PNG: "image/png",
}

ALLOWED_MIME_TYPES = ("application/pdf", "image/jpeg", "image/jpg", "image/png")

_MIME_TO_FILE_TYPE: dict[str, FileType] = {
    "application/pdf": FileType.PDF,
    "image/jpeg": FileType.JPG,
    "image/jpg": FileType.JPG,
    "image/png": FileType.PNG,
}


def mime_type_for(file_type: str) -> str:
    """MIME type for a stored file_type, octet-stream for anything unknown."""
    try:
        return FileType(file_type.lower()).mime_type
    except ValueError:
        return "application/octet-stream"

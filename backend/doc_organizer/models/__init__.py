from doc_organizer.models.category import Category, FileType, CATEGORY_NAMES
from doc_organizer.models.document import Document

__all__ = ["Category", "FileType", "CATEGORY_NAMES", "Document"]

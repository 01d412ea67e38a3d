import logging
import warnings

consistency_logger = logging.getLogger("doc_organizer.consistency")


class DocumentOrganizerError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(DocumentOrganizerError):
    status_code = 400
    public_message = "Validation error"

    def __init__(self, details: list, message: str | None = None):
        super().__init__(message)
        self.details = details


class NotFoundError(DocumentOrganizerError):
    status_code = 404
    public_message = "Document not found"


class FileOperationError(DocumentOrganizerError):
    public_message = "File operation failed"


class FileMoveError(FileOperationError):
    public_message = "Failed to move file"


class PersistenceError(DocumentOrganizerError):
    public_message = "Database operation failed"

    def __init__(
        self,
        message: str | None = None,
        cause: BaseException | None = None,
        cleanup_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.cleanup_error = cleanup_error

    @property
    def details(self) -> list[str]:
        problems = [self.message]
        if self.cleanup_error is not None:
            problems.append("Uploaded file could not be cleaned up and was left on disk")
        return problems


class InconsistencyWarning(UserWarning):
    """File and record state diverged after a partial failure."""

    def __init__(self, kind: str, document_id: int | None = None, detail: str = ""):
        self.kind = kind
        self.document_id = document_id
        self.detail = detail
        super().__init__(f"{kind} (document_id={document_id}): {detail}")


def report_inconsistency(kind: str, document_id: int | None = None, detail: str = "") -> InconsistencyWarning:
    # No automatic repair is attempted; operators reconcile by hand.
    warning = InconsistencyWarning(kind, document_id, detail)
    consistency_logger.error("INCONSISTENCY %s", warning)
    warnings.warn(warning, stacklevel=2)
    return warning

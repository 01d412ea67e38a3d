from doc_organizer.services.validation import (
    UploadedFileInfo,
    validate_category,
    validate_document_id,
    validate_list_query,
    validate_pagination,
    validate_search,
    validate_update,
    validate_upload_form,
)


def _pdf(size=2048, content_type="application/pdf", truncated=False):
    return UploadedFileInfo("bill.pdf", content_type, size, truncated)


class TestValidation:
    def test_valid_upload_form(self):
        assert validate_upload_form(_pdf(), "invoices", "desc", "INV-1") == []

    def test_all_problems_reported_together(self):
        errors = validate_upload_form(
            _pdf(content_type="text/plain", size=11 * 1024 * 1024),
            "receipts",
            "x" * 1001,
            "n" * 101,
        )
        fields = [e.field for e in errors]
        assert fields.count("file") == 2
        assert "category" in fields
        assert "description" in fields
        assert "document_number" in fields

    def test_missing_file(self):
        errors = validate_upload_form(None, "invoices")
        assert [e.message for e in errors] == ["No file uploaded"]

    def test_truncated_file_is_oversize(self):
        errors = validate_upload_form(_pdf(size=100, truncated=True), "invoices")
        assert errors[0].message == "File size exceeds 10MB limit"

    def test_image_jpg_mime_allowed(self):
        assert validate_upload_form(_pdf(content_type="image/jpg"), "others") == []

    def test_category_required_and_trimmed(self):
        assert validate_category(None)[0].message == "Category is required"
        assert validate_category("  resumes  ") == []
        assert validate_category(None, required=False) == []

    def test_update_checks_only_present_fields(self):
        assert validate_update({}) == []
        assert validate_update({"description": "ok"}) == []
        errors = validate_update({"category": None})
        assert errors[0].field == "category"

    def test_search_bounds(self):
        assert validate_search(None) == []
        assert validate_search("a") == []
        assert validate_search("   ")[0].field == "search"
        assert validate_search("s" * 201)[0].field == "search"

    def test_pagination_bounds(self):
        assert validate_pagination("1", "0") == []
        assert validate_pagination(100, 5) == []
        fields = [e.field for e in validate_pagination("0", "-1")]
        assert fields == ["limit", "offset"]
        assert validate_pagination("101")[0].message == "Limit must be between 1 and 100"
        assert validate_pagination("abc")[0].field == "limit"

    def test_list_query_aggregates(self):
        errors = validate_list_query(category="nope", search="", limit="0", offset="x")
        assert [e.field for e in errors] == ["category", "search", "limit", "offset"]

    def test_document_id(self):
        assert validate_document_id("12") == []
        assert validate_document_id("0")
        assert validate_document_id("abc")

    def test_ids_beyond_sqlite_integer_rejected(self):
        assert validate_document_id(str(2**63 - 1)) == []
        assert validate_document_id(str(2**63))[0].message == "Document ID must be a positive integer"
        assert validate_document_id("99999999999999999999999")
        assert validate_pagination(offset=str(2**63))[0].field == "offset"

"""Tests for response envelope models."""

from app.core.responses import (
    DataResponse,
    ErrorDetail,
    ErrorResponse,
    ListResponse,
    PaginationMeta,
)


class TestPaginationMeta:
    """Tests for PaginationMeta and its hasMore flag."""

    def test_serializes_has_more_alias(self):
        """hasMore is emitted under its camelCase alias."""
        meta = PaginationMeta(total=55, page=1, limit=50)

        assert meta.model_dump(by_alias=True) == {
            "total": 55,
            "page": 1,
            "limit": 50,
            "hasMore": True,
        }

    def test_last_page_has_no_more(self):
        """The page that reaches total reports no more."""
        assert PaginationMeta(total=55, page=2, limit=50).has_more is False

    def test_exact_fit_has_no_more(self):
        """total == page * limit means nothing follows."""
        assert PaginationMeta(total=20, page=2, limit=10).has_more is False

    def test_empty_collection(self):
        """Zero items never has more."""
        assert PaginationMeta(total=0, page=1, limit=10).has_more is False


class TestDataResponse:
    """Tests for DataResponse envelope."""

    def test_serializes_with_data_key(self):
        """Single resources are wrapped in data."""
        response = DataResponse[dict](data={"success": True})

        assert response.model_dump() == {"data": {"success": True}}


class TestListResponse:
    """Tests for ListResponse envelope."""

    def test_has_data_and_metadata(self):
        """Collections carry data and metadata."""
        response = ListResponse[dict](
            data=[{"id": "1"}],
            metadata=PaginationMeta(total=1, page=1, limit=10),
        )

        assert response.model_dump(by_alias=True) == {
            "data": [{"id": "1"}],
            "metadata": {"total": 1, "page": 1, "limit": 10, "hasMore": False},
        }


class TestErrorResponse:
    """Tests for ErrorResponse envelope."""

    def test_null_details_when_none(self):
        """details is present and null when unset."""
        response = ErrorResponse(error=ErrorDetail(code="NOT_FOUND", message="Not found"))

        assert response.model_dump() == {
            "error": {"code": "NOT_FOUND", "message": "Not found", "details": None}
        }

    def test_with_field_details(self):
        """Field errors are passed through."""
        detail = ErrorDetail(
            code="VALIDATION_ERROR",
            message="Invalid onboarding data",
            details=[{"field": "full_name", "error": "Name is required"}],
        )

        assert ErrorResponse(error=detail).model_dump()["error"]["details"] == [
            {"field": "full_name", "error": "Name is required"}
        ]

"""Response envelope models.

Consistent response format for all API endpoints: single resources are
wrapped in {"data": ...}, collections in {"data": [...], "metadata": {...}},
errors in {"error": {...}}.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination metadata for collections.

    Attributes:
        total: Total number of items across all pages.
        page: Current page number (1-indexed).
        limit: Number of items per page (after clamping).
    """

    total: int
    page: int
    limit: int

    @computed_field(alias="hasMore")  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        """Whether another page exists after this one.

        Returns:
            True if total exceeds offset + limit.
        """
        return self.total > (self.page - 1) * self.limit + self.limit


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    Usage:
        @router.get("/teachers/{teacher_id}")
        async def get_teacher(teacher_id: UUID) -> DataResponse[dict]:
            teacher = await TeacherProfileRepository.get_by_id(db, teacher_id)
            return DataResponse(data=teacher_to_dict(teacher))
    """

    data: T


class ListResponse(BaseModel, Generic[T]):
    """Standard response envelope for collections.

    Usage:
        @router.get("/education")
        async def list_education(
            pagination: PaginationParams = Depends(pagination_params)
        ) -> ListResponse[dict]:
            rows, total = await repo.list_for_teacher(db, teacher_id, ...)
            return ListResponse(
                data=rows,
                metadata=PaginationMeta(
                    total=total,
                    page=pagination.page,
                    limit=pagination.limit,
                ),
            )
    """

    data: list[T]
    metadata: PaginationMeta


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope.

    Usage in exception handlers:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=exc.code, message=exc.message)
            ).model_dump(),
        )
    """

    error: ErrorDetail

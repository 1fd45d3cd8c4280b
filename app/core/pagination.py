"""Pagination utilities.

page defaults to 1; limit defaults to 10 and is clamped (not rejected)
to MAX_PAGE_LIMIT so a caller asking for limit=500 simply gets 50 rows.
"""

from dataclasses import dataclass

from fastapi import Query

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 50


@dataclass
class PaginationParams:
    """Pagination query parameters.

    Attributes:
        page: Current page number (1-indexed).
        limit: Number of items per page, already clamped.
    """

    page: int
    limit: int

    @property
    def offset(self) -> int:
        """Calculate SQL OFFSET for database queries.

        Returns:
            Number of items to skip (0 for page 1).
        """
        return (self.page - 1) * self.limit


def clamp_limit(limit: int) -> int:
    """Clamp a requested page size to MAX_PAGE_LIMIT.

    Args:
        limit: Requested page size (>= 1).

    Returns:
        min(limit, MAX_PAGE_LIMIT).
    """
    return min(limit, MAX_PAGE_LIMIT)


def pagination_params(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(
        default=DEFAULT_PAGE_LIMIT,
        ge=1,
        description=f"Items per page (clamped to {MAX_PAGE_LIMIT})",
    ),
) -> PaginationParams:
    """FastAPI dependency for pagination query parameters.

    Args:
        page: Page number (default 1, must be >= 1).
        limit: Items per page (default 10, must be >= 1, clamped to 50).

    Returns:
        PaginationParams with validated page and clamped limit.
    """
    return PaginationParams(page=page, limit=clamp_limit(limit))

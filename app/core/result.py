"""Explicit success/failure values for read paths.

Reads that may legitimately come back empty (a teacher with no education
rows, an identity with no profile yet) must stay distinguishable from reads
that failed. Those functions return ``Ok(value)`` or ``Err(kind, message)``
instead of raising or collapsing failures into an empty list.

Usage:
    result = await gateway.list_records(SubRecordKind.EDUCATION, teacher_id)
    if isinstance(result, Err):
        logger.warning("Load failed", kind=result.kind)
        return
    rows = result.value
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why a read or remote call failed."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    STORE = "store"

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorKind":
        """Map an HTTP status code to an ErrorKind.

        Args:
            status_code: Non-2xx HTTP status.

        Returns:
            The closest ErrorKind (STORE for unrecognized 5xx).
        """
        mapping = {
            400: cls.VALIDATION,
            401: cls.UNAUTHORIZED,
            403: cls.FORBIDDEN,
            404: cls.NOT_FOUND,
            503: cls.UNAVAILABLE,
            504: cls.TIMEOUT,
        }
        return mapping.get(status_code, cls.STORE)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result wrapping a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed result with a categorized reason."""

    kind: ErrorKind
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]  # noqa: UP007

"""Shared CRUD router for teacher sub-records.

/education and /experience expose identical endpoints that differ only in
their fields and list ordering, so both routers are built here from the
kind's repository and request models.

Endpoints (per kind):
- GET    /?teacher_id=&page=&limit=  public, paginated
- POST   /                           create (owner only)
- PUT    /{record_id}                partial update (owner only)
- DELETE /{record_id}                hard delete (owner only)

Check order for writes: 401 auth, 400 body, 404 row/teacher, 403 owner.
"""

import uuid
from collections.abc import Callable
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentIdentity, DbSession
from app.core.auth import Identity
from app.core.config import settings
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.core.pagination import PaginationParams, pagination_params
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse, ListResponse, PaginationMeta
from app.models.teacher import TeacherProfile
from app.repositories.sub_record_repository import SUB_RECORD_REPOSITORIES, SubRecord
from app.repositories.teacher_repository import TeacherProfileRepository
from app.schemas.profiles import education_to_dict, experience_to_dict
from app.schemas.sub_records import REQUIRED_FIELDS, SubRecordKind

logger = structlog.get_logger()

_SERIALIZERS: dict[SubRecordKind, Callable[[Any], dict[str, Any]]] = {
    SubRecordKind.EXPERIENCE: experience_to_dict,
    SubRecordKind.EDUCATION: education_to_dict,
}

_RESOURCE_NAMES: dict[SubRecordKind, str] = {
    SubRecordKind.EXPERIENCE: "Experience",
    SubRecordKind.EDUCATION: "Education",
}


async def _owned_teacher(
    db: AsyncSession, teacher_id: uuid.UUID, identity: Identity
) -> TeacherProfile:
    """Load a teacher profile and verify the caller owns it.

    Raises:
        NotFoundError: If the teacher profile does not exist.
        ForbiddenError: If it belongs to another identity.
    """
    teacher = await TeacherProfileRepository.get_by_id(db, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher profile", str(teacher_id))
    if teacher.user_id != identity.id:
        raise ForbiddenError()
    return teacher


def update_changes(kind: SubRecordKind, body: BaseModel) -> dict[str, Any]:
    """Fields a PUT body actually changes.

    Required fields apply only when non-blank; description applies whenever
    the client sent it (null clears it).
    """
    sent = body.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}
    for name in REQUIRED_FIELDS[kind]:
        value = sent.get(name)
        if value is not None and value.strip():
            changes[name] = value.strip()
    if "description" in sent:
        changes["description"] = sent["description"]
    return changes


def build_sub_record_router(
    kind: SubRecordKind,
    create_model: type[BaseModel],
    update_model: type[BaseModel],
) -> APIRouter:
    """Build the CRUD router for one sub-record kind.

    Args:
        kind: Sub-record kind.
        create_model: Request body model for POST (must carry teacher_id).
        update_model: Request body model for PUT.

    Returns:
        APIRouter to mount at /education or /experience.
    """
    repo = SUB_RECORD_REPOSITORIES[kind]
    to_dict = _SERIALIZERS[kind]
    resource = _RESOURCE_NAMES[kind]
    router = APIRouter()

    async def _get_record(db: AsyncSession, record_id: uuid.UUID) -> SubRecord:
        record = await repo.get_by_id(db, record_id)
        if record is None:
            raise NotFoundError(resource, str(record_id))
        return record

    async def list_records(
        db: DbSession,
        pagination: Annotated[PaginationParams, Depends(pagination_params)],
        teacher_id: Annotated[uuid.UUID | None, Query()] = None,
    ) -> ListResponse[dict]:
        """List a teacher's records, newest first. Public.

        Raises:
            ValidationError: If teacher_id is missing.
        """
        if teacher_id is None:
            raise ValidationError(
                "teacher_id is required",
                details=[{"field": "teacher_id", "error": "required"}],
            )

        rows, total = await repo.list_for_teacher(
            db, teacher_id, offset=pagination.offset, limit=pagination.limit
        )
        return ListResponse(
            data=[to_dict(row) for row in rows],
            metadata=PaginationMeta(
                total=total, page=pagination.page, limit=pagination.limit
            ),
        )

    async def create_record(
        request: Request,  # noqa: ARG001
        body: create_model,  # type: ignore[valid-type]
        identity: CurrentIdentity,
        db: DbSession,
    ) -> DataResponse[dict]:
        """Create a record on the caller's own teacher profile."""
        values = body.model_dump()
        teacher_id = values.pop("teacher_id")
        teacher = await _owned_teacher(db, teacher_id, identity)

        record = await repo.create(db, teacher.id, values)
        logger.info(
            "Sub-record created",
            kind=kind.value,
            record_id=str(record.id),
            teacher_id=str(teacher.id),
        )
        return DataResponse(data=to_dict(record))

    async def update_record(
        request: Request,  # noqa: ARG001
        record_id: uuid.UUID,
        body: update_model,  # type: ignore[valid-type]
        identity: CurrentIdentity,
        db: DbSession,
    ) -> DataResponse[dict]:
        """Partially update a record. No row changes unless the caller owns it.

        Raises:
            ValidationError: If the body carries nothing to update.
        """
        changes = update_changes(kind, body)
        if not changes:
            raise ValidationError("No fields to update")

        record = await _get_record(db, record_id)
        await _owned_teacher(db, record.teacher_id, identity)

        record = await repo.update(db, record, changes)
        return DataResponse(data=to_dict(record))

    async def delete_record(
        request: Request,  # noqa: ARG001
        record_id: uuid.UUID,
        identity: CurrentIdentity,
        db: DbSession,
    ) -> DataResponse[dict]:
        """Hard-delete a record owned by the caller."""
        record = await _get_record(db, record_id)
        await _owned_teacher(db, record.teacher_id, identity)

        await repo.delete(db, record)
        logger.info("Sub-record deleted", kind=kind.value, record_id=str(record_id))
        return DataResponse(data={"success": True})

    # Per-kind names keep rate-limit buckets and OpenAPI operation ids apart.
    for endpoint in (list_records, create_record, update_record, delete_record):
        endpoint.__name__ = f"{endpoint.__name__}_{kind.value}"
        endpoint.__qualname__ = endpoint.__name__

    write_limit = limiter.limit(settings.rate_limit_writes)
    router.get("")(list_records)
    router.post("")(write_limit(create_record))
    router.put("/{record_id}")(write_limit(update_record))
    router.delete("/{record_id}")(write_limit(delete_record))
    return router

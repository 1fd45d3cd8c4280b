"""Teachers API router (public, read-only).

Endpoints:
- GET /teachers?subject=&page=&limit=   browse teacher profiles
- GET /teachers/{teacher_id}            one teacher with experiences and educations
"""

import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from app.api.deps import DbSession
from app.core.errors import NotFoundError
from app.core.pagination import PaginationParams, pagination_params
from app.core.responses import DataResponse, ListResponse, PaginationMeta
from app.models.profile import Profile
from app.models.teacher import TeacherProfile
from app.repositories.teacher_repository import TeacherProfileRepository
from app.schemas.profiles import (
    education_to_dict,
    experience_to_dict,
    normalize_avatar_url,
    teacher_to_dict,
)

router = APIRouter()


def _card(teacher: TeacherProfile, profile: Profile) -> dict[str, Any]:
    """Teacher fields plus the public parts of the base profile."""
    return {
        **teacher_to_dict(teacher),
        "full_name": profile.full_name,
        "avatar_url": normalize_avatar_url(profile.avatar_url),
    }


@router.get("")
async def list_teachers(
    db: DbSession,
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    subject: Annotated[str | None, Query(max_length=100)] = None,
) -> ListResponse[dict]:
    """List teachers, newest first, optionally filtered by subject."""
    rows, total = await TeacherProfileRepository.list_public(
        db,
        subject=subject.strip() if subject else None,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return ListResponse(
        data=[_card(teacher, profile) for teacher, profile in rows],
        metadata=PaginationMeta(total=total, page=pagination.page, limit=pagination.limit),
    )


@router.get("/{teacher_id}")
async def get_teacher(teacher_id: uuid.UUID, db: DbSession) -> DataResponse[dict]:
    """Get one teacher with experiences and educations.

    Raises:
        NotFoundError: If the teacher profile does not exist.
    """
    teacher = await TeacherProfileRepository.get_with_sub_records(db, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher profile", str(teacher_id))

    experiences = sorted(teacher.experiences, key=lambda row: row.created_at, reverse=True)
    educations = sorted(teacher.educations, key=lambda row: row.year, reverse=True)
    return DataResponse(
        data={
            **_card(teacher, teacher.profile),
            "experiences": [experience_to_dict(row) for row in experiences],
            "educations": [education_to_dict(row) for row in educations],
        }
    )

"""Onboarding completion - persist a finished draft.

Runs when a draft transitions into "complete". Everything is written in one
transaction, in dependency order:

1. Ensure the avatar bucket exists (teachers only; failure is logged)
2. Resubmission guard (existing profile / orphan profile)
3. Profile
4. TeacherProfile, then its experiences and educations (teachers)
   or StudentProfile / ParentProfile
5. Commit, then refresh the caller's session container

Any failure rolls the whole transaction back, so a failed completion leaves
no partial rows and the user can resubmit.
"""

import uuid
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ConflictError
from app.core.result import Err
from app.core.storage import StorageClient
from app.models.profile import Profile, UserType
from app.repositories.profile_repository import (
    Extension,
    ParentProfileRepository,
    ProfileRepository,
    StudentProfileRepository,
)
from app.repositories.sub_record_repository import (
    education_repository,
    experience_repository,
)
from app.repositories.teacher_repository import TeacherProfileRepository
from app.services.onboarding_machine import Draft
from app.services.session_context import SessionContext

logger = structlog.get_logger()


@dataclass(frozen=True)
class CompletionResult:
    """What a completed onboarding wrote."""

    profile: Profile
    extension: Extension
    experience_count: int = 0
    education_count: int = 0


# =============================================================================
# Field helpers
# =============================================================================


def _text(value: Any) -> str:
    return str(value or "").strip()


def resolve_full_name(user_data: dict[str, Any]) -> str:
    """Display name from full_name, else "first last"."""
    full_name = _text(user_data.get("full_name"))
    if full_name:
        return full_name
    return f"{_text(user_data.get('first_name'))} {_text(user_data.get('last_name'))}".strip()


def resolve_email(identity_email: str | None, user_data: dict[str, Any]) -> str:
    """Identity email wins; the draft's email is the fallback."""
    return _text(identity_email) or _text(user_data.get("email"))


def _optional(value: Any) -> str | None:
    cleaned = _text(value)
    return cleaned or None


def _string_list(values: Any) -> list[str]:
    return [_text(v) for v in values or [] if _text(v)]


# =============================================================================
# Steps
# =============================================================================


async def _ensure_avatar_bucket(storage: StorageClient | None) -> None:
    if storage is None:
        return
    result = await storage.ensure_bucket(settings.avatar_bucket)
    if isinstance(result, Err):
        logger.warning(
            "Avatar bucket check failed; continuing onboarding",
            kind=result.kind.value,
            error=result.message,
        )


async def _guard_existing_profile(
    db: AsyncSession,
    identity_id: uuid.UUID,
    user_type: str,
) -> Profile | None:
    """Return an orphan profile to reuse, or None when there is none.

    Raises:
        ConflictError: PROFILE_EXISTS if profile and extension both exist;
            USER_TYPE_MISMATCH if an orphan has a different user_type.
    """
    existing = await ProfileRepository.get_by_id(db, identity_id)
    if existing is None:
        return None

    if await ProfileRepository.get_extension(db, existing) is not None:
        raise ConflictError("PROFILE_EXISTS", "Onboarding is already complete for this account.")

    if existing.user_type != user_type:
        raise ConflictError(
            "USER_TYPE_MISMATCH",
            "An existing profile was started with a different user type.",
            details=[
                {"field": "user_type", "error": f"Profile is registered as '{existing.user_type}'"}
            ],
        )

    logger.info("Reusing orphan profile", identity_id=str(identity_id), user_type=user_type)
    return existing


async def _write_profile(
    db: AsyncSession,
    identity_id: uuid.UUID,
    identity_email: str | None,
    user_data: dict[str, Any],
    orphan: Profile | None,
) -> Profile:
    full_name = resolve_full_name(user_data)
    phone = _optional(user_data.get("phone"))
    avatar_url = _optional(user_data.get("avatar_url"))

    if orphan is not None:
        updated = await ProfileRepository.update(
            db,
            orphan.id,
            full_name=full_name,
            phone=phone,
            avatar_url=avatar_url or orphan.avatar_url,
        )
        return updated or orphan

    return await ProfileRepository.create(
        db,
        profile_id=identity_id,
        full_name=full_name,
        email=resolve_email(identity_email, user_data),
        user_type=user_data["user_type"],
        phone=phone,
        avatar_url=avatar_url,
    )


async def _write_teacher(
    db: AsyncSession, profile: Profile, user_data: dict[str, Any]
) -> tuple[Extension, int, int]:
    teacher_data = user_data.get("teacher_profile") or {}
    teacher = await TeacherProfileRepository.create(
        db,
        user_id=profile.id,
        subject=_string_list(teacher_data.get("subject")),
        location=_text(teacher_data.get("location")),
        fee=_text(teacher_data.get("fee")),
        about=_text(teacher_data.get("about")),
        tags=_string_list(teacher_data.get("tags")),
    )

    experiences = list(teacher_data.get("experiences") or [])
    educations = list(teacher_data.get("educations") or [])
    if experiences:
        await experience_repository.create_many(db, teacher.id, experiences)
    if educations:
        await education_repository.create_many(db, teacher.id, educations)
    return teacher, len(experiences), len(educations)


async def _write_extension(
    db: AsyncSession, profile: Profile, user_data: dict[str, Any]
) -> tuple[Extension, int, int]:
    user_type = user_data["user_type"]
    if user_type == UserType.TEACHER.value:
        return await _write_teacher(db, profile, user_data)
    if user_type == UserType.STUDENT.value:
        student = await StudentProfileRepository.create(
            db,
            user_id=profile.id,
            grade=_optional(user_data.get("grade")),
            interests=_string_list(user_data.get("interests")),
        )
        return student, 0, 0
    parent = await ParentProfileRepository.create(
        db,
        user_id=profile.id,
        children_count=int(user_data.get("children_count") or 1),
        children_grades=_string_list(user_data.get("children_grades")),
    )
    return parent, 0, 0


# =============================================================================
# Entry point
# =============================================================================


async def complete_onboarding(
    db: AsyncSession,
    session: SessionContext,
    draft: Draft,
    *,
    storage: StorageClient | None = None,
) -> CompletionResult:
    """Persist a validated draft and refresh the caller's session.

    Commits the transaction on success and rolls it back on any failure.

    Args:
        db: Database session (transaction owner for the whole sequence).
        session: Caller's session container; refreshed after commit.
        draft: Draft whose final step has just been validated.
        storage: Object storage client for the teacher avatar bucket.

    Returns:
        CompletionResult with the written profile, extension and counts.

    Raises:
        ConflictError: If the identity already finished onboarding, or an
            orphan profile has a different user type.
    """
    identity = session.identity
    user_data = draft.user_data
    user_type = user_data["user_type"]

    if user_type == UserType.TEACHER.value:
        await _ensure_avatar_bucket(storage)

    try:
        orphan = await _guard_existing_profile(db, identity.id, user_type)
        profile = await _write_profile(db, identity.id, identity.email, user_data, orphan)
        extension, experience_count, education_count = await _write_extension(
            db, profile, user_data
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Onboarding completed",
        identity_id=str(identity.id),
        user_type=user_type,
        experiences=experience_count,
        educations=education_count,
    )

    refreshed = await session.refresh(db)
    if isinstance(refreshed, Err):
        # Rows are committed; fall back to what was just written.
        session.profile = profile
        session.extension = extension

    return CompletionResult(
        profile=profile,
        extension=extension,
        experience_count=experience_count,
        education_count=education_count,
    )

"""Repository for TeacherProfile operations.

Provides database access for the teacher_profiles table, including the
public browse listing joined with the base profile.
"""

import json
import uuid

from sqlalchemy import ColumnElement, String, cast, func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.profile import Profile
from app.models.teacher import TeacherProfile


def subject_filter(subject: str, dialect_name: str) -> ColumnElement[bool]:
    """Match teachers whose subject list holds exactly this value.

    PostgreSQL uses JSONB containment. Elsewhere the JSON array is matched as
    text, quoted and escaped the way the JSON type stored it.

    Args:
        subject: Subject to look for.
        dialect_name: Name of the session's SQL dialect.

    Returns:
        A boolean clause for WHERE.
    """
    if dialect_name == "postgresql":
        return cast(TeacherProfile.subject, JSONB).contains([subject])
    return cast(TeacherProfile.subject, String).contains(json.dumps(subject), autoescape=True)


class TeacherProfileRepository:
    """Stateless repository for TeacherProfile table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(
        db: AsyncSession, teacher_id: uuid.UUID
    ) -> TeacherProfile | None:
        """Fetch a teacher profile by primary key.

        Args:
            db: Async database session.
            teacher_id: TeacherProfile id.

        Returns:
            TeacherProfile if found, None otherwise.
        """
        return await db.get(TeacherProfile, teacher_id)

    @staticmethod
    async def get_by_user_id(
        db: AsyncSession, user_id: uuid.UUID
    ) -> TeacherProfile | None:
        """Fetch the teacher profile owned by a Profile.

        Args:
            db: Async database session.
            user_id: Owning Profile id.

        Returns:
            TeacherProfile if found, None otherwise.
        """
        stmt = select(TeacherProfile).where(TeacherProfile.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_with_sub_records(
        db: AsyncSession, teacher_id: uuid.UUID
    ) -> TeacherProfile | None:
        """Fetch a teacher profile with profile, experiences and educations loaded.

        Args:
            db: Async database session.
            teacher_id: TeacherProfile id.

        Returns:
            TeacherProfile with relationships eagerly loaded, or None.
        """
        stmt = (
            select(TeacherProfile)
            .where(TeacherProfile.id == teacher_id)
            .options(
                selectinload(TeacherProfile.profile),
                selectinload(TeacherProfile.experiences),
                selectinload(TeacherProfile.educations),
            )
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        subject: list[str],
        location: str,
        fee: str,
        about: str,
        tags: list[str] | None = None,
    ) -> TeacherProfile:
        """Create the teacher extension for a profile.

        is_verified, rating and reviews_count are never set here; they are
        owned by moderation and reviews.

        Returns:
            Created TeacherProfile with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If the profile already has one.
        """
        teacher = TeacherProfile(
            user_id=user_id,
            subject=list(subject),
            location=location,
            fee=fee,
            about=about,
            tags=list(tags or []),
        )
        db.add(teacher)
        await db.flush()
        await db.refresh(teacher)
        return teacher

    @staticmethod
    async def list_public(
        db: AsyncSession,
        *,
        subject: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[tuple[TeacherProfile, Profile]], int]:
        """List teacher profiles with their base profile, newest first.

        Args:
            db: Async database session.
            subject: Only teachers whose subject list contains this value.
            offset: Rows to skip.
            limit: Maximum rows to return.

        Returns:
            Tuple of ((teacher, profile) pairs, total matching count).
        """
        filters = []
        if subject:
            filters.append(subject_filter(subject, db.get_bind().dialect.name))

        count_stmt = select(func.count()).select_from(TeacherProfile).where(*filters)
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(TeacherProfile, Profile)
            .join(Profile, Profile.id == TeacherProfile.user_id)
            .where(*filters)
            .order_by(TeacherProfile.created_at.desc(), TeacherProfile.id)
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()], total

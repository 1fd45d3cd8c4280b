"""Repositories for Profile and its student/parent extensions.

Provides database access for the profiles, student_profiles and
parent_profiles tables. TeacherProfile access lives in teacher_repository.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import ParentProfile, Profile, StudentProfile, UserType
from app.models.teacher import TeacherProfile

# Fields that may be updated via ProfileRepository.update().
# id and user_type are immutable once the profile exists.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "full_name",
        "phone",
        "avatar_url",
    }
)

Extension = TeacherProfile | StudentProfile | ParentProfile

_EXTENSION_MODELS: dict[str, type[Extension]] = {
    UserType.TEACHER.value: TeacherProfile,
    UserType.STUDENT.value: StudentProfile,
    UserType.PARENT.value: ParentProfile,
}


class ProfileRepository:
    """Stateless repository for Profile table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, profile_id: uuid.UUID) -> Profile | None:
        """Fetch a profile by identity id.

        Args:
            db: Async database session.
            profile_id: Identity id (Profile primary key).

        Returns:
            Profile if found, None otherwise.
        """
        return await db.get(Profile, profile_id)

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        profile_id: uuid.UUID,
        full_name: str,
        email: str,
        user_type: str,
        phone: str | None = None,
        avatar_url: str | None = None,
    ) -> Profile:
        """Create the base profile for an identity.

        Args:
            db: Async database session.
            profile_id: Identity id, used as primary key.
            full_name: Display name.
            email: Contact email.
            user_type: teacher, student, parent or admin.
            phone: Optional phone number.
            avatar_url: Optional avatar URL.

        Returns:
            Created Profile with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If a profile already exists.
        """
        profile = Profile(
            id=profile_id,
            full_name=full_name,
            email=email,
            phone=phone,
            user_type=user_type,
            avatar_url=avatar_url,
        )
        db.add(profile)
        await db.flush()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def update(
        db: AsyncSession,
        profile_id: uuid.UUID,
        **kwargs: str | None,
    ) -> Profile | None:
        """Update profile fields.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError.

        Args:
            db: Async database session.
            profile_id: Identity id of the profile to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated Profile if found, None if the profile does not exist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        profile = await db.get(Profile, profile_id)
        if profile is None:
            return None

        for field, value in kwargs.items():
            setattr(profile, field, value)

        await db.flush()
        await db.refresh(profile)
        return profile

    @staticmethod
    async def get_extension(db: AsyncSession, profile: Profile) -> Extension | None:
        """Fetch the type-specific extension matching profile.user_type.

        Args:
            db: Async database session.
            profile: The base profile.

        Returns:
            The extension row, or None if missing (or user_type is admin).
        """
        model = _EXTENSION_MODELS.get(profile.user_type)
        if model is None:
            return None
        stmt = select(model).where(model.user_id == profile.id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()


class StudentProfileRepository:
    """Stateless repository for StudentProfile rows."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        grade: str | None = None,
        interests: list[str] | None = None,
    ) -> StudentProfile:
        """Create the student extension for a profile.

        Raises:
            sqlalchemy.exc.IntegrityError: If the profile already has one.
        """
        student = StudentProfile(
            user_id=user_id,
            grade=grade,
            interests=list(interests or []),
        )
        db.add(student)
        await db.flush()
        await db.refresh(student)
        return student


class ParentProfileRepository:
    """Stateless repository for ParentProfile rows."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        children_count: int = 1,
        children_grades: list[str] | None = None,
    ) -> ParentProfile:
        """Create the parent extension for a profile.

        Raises:
            sqlalchemy.exc.IntegrityError: If the profile already has one.
        """
        parent = ParentProfile(
            user_id=user_id,
            children_count=children_count,
            children_grades=list(children_grades or []),
        )
        db.add(parent)
        await db.flush()
        await db.refresh(parent)
        return parent

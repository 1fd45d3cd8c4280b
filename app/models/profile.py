"""Profile models - the base identity-linked record and its extensions.

Profile is keyed by the identity provider's user id. Each Profile carries
exactly one type-specific extension matching user_type (teacher, student or
parent); admins carry none. TeacherProfile lives in teacher.py.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, JSONList, TimestampMixin

if TYPE_CHECKING:
    from app.models.teacher import TeacherProfile

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class UserType(str, Enum):
    """Kind of account. Immutable once the Profile is created."""

    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    ADMIN = "admin"


class Profile(Base, TimestampMixin):
    """Base profile, one per identity.

    Attributes:
        id: Identity id from the identity provider (not generated here).
        full_name: Display name.
        email: Contact email (identity email for federated logins).
        phone: Optional phone number.
        user_type: teacher, student, parent or admin.
        avatar_url: Public URL of the uploaded avatar, if any.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    avatar_url: Mapped[str | None] = mapped_column(
        Text(),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('teacher', 'student', 'parent', 'admin')",
            name="ck_profiles_user_type",
        ),
    )

    teacher_profile: Mapped["TeacherProfile | None"] = relationship(
        "TeacherProfile",
        back_populates="profile",
        uselist=False,
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )
    student_profile: Mapped["StudentProfile | None"] = relationship(
        "StudentProfile",
        back_populates="profile",
        uselist=False,
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )
    parent_profile: Mapped["ParentProfile | None"] = relationship(
        "ParentProfile",
        back_populates="profile",
        uselist=False,
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )


class StudentProfile(Base, CreatedAtMixin):
    """Student extension of a Profile (one-to-one)."""

    __tablename__ = "student_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    grade: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    interests: Mapped[list[str]] = mapped_column(
        JSONList,
        default=list,
        nullable=False,
    )

    profile: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="student_profile",
    )


class ParentProfile(Base, CreatedAtMixin):
    """Parent extension of a Profile (one-to-one)."""

    __tablename__ = "parent_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    children_count: Mapped[int] = mapped_column(
        Integer,
        default=1,
        server_default=text("1"),
        nullable=False,
    )
    children_grades: Mapped[list[str]] = mapped_column(
        JSONList,
        default=list,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "children_count >= 1",
            name="ck_parent_profiles_children_count",
        ),
    )

    profile: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="parent_profile",
    )

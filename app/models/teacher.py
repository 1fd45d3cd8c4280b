"""Teacher models - the teacher extension and its sub-records.

TeacherProfile is the one-to-one extension of a teacher's Profile.
TeacherExperience and TeacherEducation are many-to-one sub-records that
cascade away with their TeacherProfile.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, JSONList, TimestampMixin

if TYPE_CHECKING:
    from app.models.profile import Profile

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class TeacherProfile(Base, TimestampMixin):
    """Teacher extension of a Profile.

    Attributes:
        id: UUID primary key (referenced by sub-records as teacher_id).
        user_id: Owning Profile id, unique.
        subject: Subjects taught (at least one at onboarding).
        location: Where lessons happen.
        fee: Free-form fee description (e.g. "$50/hour").
        about: Teacher's self-description.
        tags: Free-form search tags.
        is_verified: Set by moderation, never by the teacher.
        rating: Average review rating, if any reviews exist.
        reviews_count: Number of reviews, if tracked.
    """

    __tablename__ = "teacher_profiles"

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
    subject: Mapped[list[str]] = mapped_column(
        JSONList,
        default=list,
        nullable=False,
    )
    location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    fee: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    about: Mapped[str] = mapped_column(
        Text(),
        nullable=False,
    )
    tags: Mapped[list[str]] = mapped_column(
        JSONList,
        default=list,
        nullable=False,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
    )
    rating: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    reviews_count: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    profile: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="teacher_profile",
    )
    experiences: Mapped[list["TeacherExperience"]] = relationship(
        "TeacherExperience",
        back_populates="teacher",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )
    educations: Mapped[list["TeacherEducation"]] = relationship(
        "TeacherEducation",
        back_populates="teacher",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
        passive_deletes=True,
    )


class TeacherExperience(Base, CreatedAtMixin):
    """A position the teacher has held."""

    __tablename__ = "teacher_experiences"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    teacher_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    institution: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    period: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text(),
        nullable=True,
    )

    teacher: Mapped["TeacherProfile"] = relationship(
        "TeacherProfile",
        back_populates="experiences",
    )


class TeacherEducation(Base, CreatedAtMixin):
    """A degree or qualification the teacher holds."""

    __tablename__ = "teacher_educations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    teacher_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    degree: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    institution: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    year: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text(),
        nullable=True,
    )

    teacher: Mapped["TeacherProfile"] = relationship(
        "TeacherProfile",
        back_populates="educations",
    )

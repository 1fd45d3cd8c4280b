"""Onboarding request schemas.

Every field is optional at the schema level: a step submission carries only
the fields of that step, and per-step required-field checks happen in the
step machine after the payload is merged into the draft.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.sub_records import MAX_DRAFT_ENTRIES
from app.services.onboarding_machine import StepId


class ExperienceDraft(BaseModel):
    """Experience entry typed into the teacher-details step."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(default="", max_length=255)
    institution: str = Field(default="", max_length=255)
    period: str = Field(default="", max_length=100)
    description: str | None = Field(default=None, max_length=5000)


class EducationDraft(BaseModel):
    """Education entry typed into the teacher-details step."""

    model_config = ConfigDict(extra="forbid")

    degree: str = Field(default="", max_length=255)
    institution: str = Field(default="", max_length=255)
    year: str = Field(default="", max_length=20)
    description: str | None = Field(default=None, max_length=5000)


class TeacherProfileDraft(BaseModel):
    """Teacher-specific answers."""

    model_config = ConfigDict(extra="forbid")

    subject: list[str] = Field(default_factory=list, max_length=20)
    location: str = Field(default="", max_length=255)
    fee: str = Field(default="", max_length=100)
    about: str = Field(default="", max_length=5000)
    tags: list[str] = Field(default_factory=list, max_length=20)
    experiences: list[ExperienceDraft] = Field(
        default_factory=list, max_length=MAX_DRAFT_ENTRIES
    )
    educations: list[EducationDraft] = Field(
        default_factory=list, max_length=MAX_DRAFT_ENTRIES
    )


class UserDataPayload(BaseModel):
    """Fields a step submission may carry.

    Attributes:
        user_type: teacher, student or parent (admin cannot be chosen).
        first_name: Given name (used with last_name when full_name is unset).
        last_name: Family name.
        full_name: Display name.
        email: Contact email; ignored for federated identities.
        phone: Optional phone number.
        avatar_url: URL returned by the avatar upload endpoint.
        grade: Student grade.
        interests: Student interests.
        children_count: Number of children (parents, at least 1).
        children_grades: Children's grades (parents).
        teacher_profile: Teacher-specific answers.
    """

    model_config = ConfigDict(extra="forbid")

    user_type: Literal["teacher", "student", "parent"] | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    full_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    avatar_url: str | None = Field(default=None, max_length=2048)
    grade: str | None = Field(default=None, max_length=50)
    interests: list[str] | None = Field(default=None, max_length=20)
    children_count: int | None = Field(default=None, ge=1, le=20)
    children_grades: list[str] | None = Field(default=None, max_length=20)
    teacher_profile: TeacherProfileDraft | None = None


class StepSubmission(BaseModel):
    """Request body for POST /api/onboarding/steps."""

    model_config = ConfigDict(extra="forbid")

    step: StepId
    data: UserDataPayload = Field(default_factory=UserDataPayload)

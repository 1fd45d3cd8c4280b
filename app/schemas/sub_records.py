"""Schemas for teacher sub-records (experience and education).

Shared by the CRUD routers and the sub-record editor: the kind registry
(which fields each kind requires) plus request bodies for create/update.
"""

import uuid
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

_MAX_DESCRIPTION_LENGTH = 5000

MAX_DRAFT_ENTRIES = 30
"""Most experiences, and most educations, one onboarding draft may carry."""

RequiredStr = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]
"""Required text field: present and non-empty."""


class SubRecordKind(str, Enum):
    """The two kinds of teacher sub-record."""

    EXPERIENCE = "experience"
    EDUCATION = "education"


REQUIRED_FIELDS: dict[SubRecordKind, tuple[str, ...]] = {
    SubRecordKind.EXPERIENCE: ("title", "institution", "period"),
    SubRecordKind.EDUCATION: ("degree", "institution", "year"),
}
"""Fields that must be non-blank when a sub-record is created."""


def missing_required_fields(kind: SubRecordKind, values: dict) -> list[str]:
    """List required fields of a sub-record that are absent or blank.

    Args:
        kind: Sub-record kind.
        values: Candidate field values.

    Returns:
        Names of required fields that are missing or whitespace-only.
    """
    return [
        name
        for name in REQUIRED_FIELDS[kind]
        if not str(values.get(name) or "").strip()
    ]


# =============================================================================
# Experience
# =============================================================================


class CreateExperienceRequest(BaseModel):
    """Request body for POST /api/experience."""

    model_config = ConfigDict(extra="forbid")

    teacher_id: uuid.UUID
    title: RequiredStr
    institution: RequiredStr
    period: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ]
    description: str | None = Field(default=None, max_length=_MAX_DESCRIPTION_LENGTH)


class UpdateExperienceRequest(BaseModel):
    """Request body for PUT /api/experience/{id}.

    Blank values for required fields are ignored; description is applied
    whenever it is sent.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=255)
    institution: str | None = Field(default=None, max_length=255)
    period: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=_MAX_DESCRIPTION_LENGTH)


# =============================================================================
# Education
# =============================================================================


class CreateEducationRequest(BaseModel):
    """Request body for POST /api/education."""

    model_config = ConfigDict(extra="forbid")

    teacher_id: uuid.UUID
    degree: RequiredStr
    institution: RequiredStr
    year: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)
    ]
    description: str | None = Field(default=None, max_length=_MAX_DESCRIPTION_LENGTH)


class UpdateEducationRequest(BaseModel):
    """Request body for PUT /api/education/{id}."""

    model_config = ConfigDict(extra="forbid")

    degree: str | None = Field(default=None, max_length=255)
    institution: str | None = Field(default=None, max_length=255)
    year: str | None = Field(default=None, max_length=20)
    description: str | None = Field(default=None, max_length=_MAX_DESCRIPTION_LENGTH)

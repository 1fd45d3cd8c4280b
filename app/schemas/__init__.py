"""Pydantic request/response schemas for API endpoints."""

from app.schemas.sub_records import (
    REQUIRED_FIELDS,
    CreateEducationRequest,
    CreateExperienceRequest,
    SubRecordKind,
    UpdateEducationRequest,
    UpdateExperienceRequest,
    missing_required_fields,
)

__all__ = [
    "REQUIRED_FIELDS",
    "CreateEducationRequest",
    "CreateExperienceRequest",
    "SubRecordKind",
    "UpdateEducationRequest",
    "UpdateExperienceRequest",
    "missing_required_fields",
]

"""Response serializers for profiles, extensions and sub-records.

Model -> dict converters shared by the session container and the routers.
"""

from datetime import datetime
from typing import Any

from app.core.config import settings
from app.models.profile import ParentProfile, Profile, StudentProfile
from app.models.teacher import TeacherEducation, TeacherExperience, TeacherProfile

# Placeholder values older clients stored instead of leaving the URL empty
_PLACEHOLDER_AVATARS = frozenset({"@default-avatar.png", "/default-avatar.png"})


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def normalize_avatar_url(url: str | None) -> str:
    """Return a usable avatar URL, substituting the default when unset.

    Args:
        url: Stored avatar URL (may be None, blank or a placeholder).

    Returns:
        The stored URL, or settings.default_avatar_url.
    """
    cleaned = (url or "").strip()
    if not cleaned or cleaned in _PLACEHOLDER_AVATARS:
        return settings.default_avatar_url
    return cleaned


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    """Convert Profile model to API response dict."""
    return {
        "id": str(profile.id),
        "full_name": profile.full_name,
        "email": profile.email,
        "phone": profile.phone,
        "user_type": profile.user_type,
        "avatar_url": normalize_avatar_url(profile.avatar_url),
        "created_at": _iso(profile.created_at),
    }


def teacher_to_dict(teacher: TeacherProfile) -> dict[str, Any]:
    """Convert TeacherProfile model to API response dict."""
    return {
        "id": str(teacher.id),
        "user_id": str(teacher.user_id),
        "subject": list(teacher.subject or []),
        "location": teacher.location,
        "fee": teacher.fee,
        "about": teacher.about,
        "tags": list(teacher.tags or []),
        "is_verified": teacher.is_verified,
        "rating": teacher.rating,
        "reviews_count": teacher.reviews_count,
        "created_at": _iso(teacher.created_at),
    }


def student_to_dict(student: StudentProfile) -> dict[str, Any]:
    """Convert StudentProfile model to API response dict."""
    return {
        "id": str(student.id),
        "user_id": str(student.user_id),
        "grade": student.grade,
        "interests": list(student.interests or []),
        "created_at": _iso(student.created_at),
    }


def parent_to_dict(parent: ParentProfile) -> dict[str, Any]:
    """Convert ParentProfile model to API response dict."""
    return {
        "id": str(parent.id),
        "user_id": str(parent.user_id),
        "children_count": parent.children_count,
        "children_grades": list(parent.children_grades or []),
        "created_at": _iso(parent.created_at),
    }


def extension_to_dict(
    extension: TeacherProfile | StudentProfile | ParentProfile | None,
) -> dict[str, Any] | None:
    """Convert whichever extension a profile has to a dict (None passes through)."""
    if extension is None:
        return None
    if isinstance(extension, TeacherProfile):
        return teacher_to_dict(extension)
    if isinstance(extension, StudentProfile):
        return student_to_dict(extension)
    return parent_to_dict(extension)


def experience_to_dict(row: TeacherExperience) -> dict[str, Any]:
    """Convert TeacherExperience model to API response dict."""
    return {
        "id": str(row.id),
        "teacher_id": str(row.teacher_id),
        "title": row.title,
        "institution": row.institution,
        "period": row.period,
        "description": row.description,
        "created_at": _iso(row.created_at),
    }


def education_to_dict(row: TeacherEducation) -> dict[str, Any]:
    """Convert TeacherEducation model to API response dict."""
    return {
        "id": str(row.id),
        "teacher_id": str(row.teacher_id),
        "degree": row.degree,
        "institution": row.institution,
        "year": row.year,
        "description": row.description,
        "created_at": _iso(row.created_at),
    }

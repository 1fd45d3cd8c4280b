"""SQLAlchemy ORM models for TeachersGallery.

All models are exported from this module for convenient imports:
    from app.models import Profile, TeacherProfile, TeacherEducation, ...

Models are organized by domain:
- profile.py: Profile, StudentProfile, ParentProfile, UserType
- teacher.py: TeacherProfile, TeacherExperience, TeacherEducation
"""

from app.models.base import Base, CreatedAtMixin, TimestampMixin
from app.models.profile import ParentProfile, Profile, StudentProfile, UserType
from app.models.teacher import TeacherEducation, TeacherExperience, TeacherProfile

__all__ = [
    # Base classes
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    # Profiles
    "Profile",
    "UserType",
    "StudentProfile",
    "ParentProfile",
    # Teacher
    "TeacherProfile",
    "TeacherExperience",
    "TeacherEducation",
]

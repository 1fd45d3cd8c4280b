"""Tests for onboarding completion - transactional persistence of a draft.

Covers:
- student / parent / teacher row counts
- rollback when the TeacherProfile insert fails, then a clean resubmission
- resubmission guard: PROFILE_EXISTS, orphan reuse, USER_TYPE_MISMATCH
- avatar bucket provisioning for teachers (failure ignored)
- session container refreshed after commit
"""

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity
from app.core.errors import ConflictError
from app.models import (
    ParentProfile,
    Profile,
    StudentProfile,
    TeacherEducation,
    TeacherExperience,
    TeacherProfile,
)
from app.repositories.teacher_repository import TeacherProfileRepository
from app.services.onboarding_completion import (
    complete_onboarding,
    resolve_email,
    resolve_full_name,
)
from app.services.onboarding_machine import Draft, StepId
from app.services.session_context import OnboardingStatus, SessionContext
from tests.helpers import TEST_USER_EMAIL, TEST_USER_ID, FakeObjectStore

_IDENTITY = Identity(id=TEST_USER_ID, email=TEST_USER_EMAIL, provider="email")


# =============================================================================
# Helpers
# =============================================================================


async def _count(db: AsyncSession, model: type) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def _teacher_draft() -> Draft:
    return Draft(
        current_step=StepId.TEACHER_DETAILS,
        user_data={
            "user_type": "teacher",
            "first_name": "Tia",
            "last_name": "Teacher",
            "phone": "555-0100",
            "teacher_profile": {
                "subject": ["Mathematics", "Physics"],
                "location": "Berlin",
                "fee": "40 EUR/hour",
                "about": "Patient tutor.",
                "tags": ["algebra"],
                "experiences": [
                    {"title": "Teacher", "institution": "Gymnasium", "period": "2018-2022"},
                    {"title": "Tutor", "institution": "Online", "period": "2022-now"},
                ],
                "educations": [
                    {"degree": "MEd", "institution": "HU Berlin", "year": "2017"},
                ],
            },
        },
    )


def _student_draft() -> Draft:
    return Draft(
        current_step=StepId.PROFILE_DETAILS,
        user_data={
            "user_type": "student",
            "full_name": "Sam Student",
            "grade": "10",
            "interests": ["chess", " "],
        },
    )


def _parent_draft() -> Draft:
    return Draft(
        current_step=StepId.PROFILE_DETAILS,
        user_data={
            "user_type": "parent",
            "full_name": "Pat Parent",
            "children_count": 2,
            "children_grades": ["3", "7"],
        },
    )


# =============================================================================
# Tests: field resolution
# =============================================================================


class TestFieldResolution:
    """Name and email resolution."""

    def test_full_name_preferred(self) -> None:
        """full_name wins over first/last."""
        data = {"full_name": "Sam S", "first_name": "X", "last_name": "Y"}
        assert resolve_full_name(data) == "Sam S"

    def test_first_and_last_joined(self) -> None:
        """first and last are joined with one space."""
        assert resolve_full_name({"first_name": " Tia ", "last_name": "Teacher"}) == "Tia Teacher"

    def test_identity_email_wins(self) -> None:
        """The identity email is used even when the draft has one."""
        assert resolve_email("id@example.com", {"email": "draft@example.com"}) == "id@example.com"

    def test_draft_email_fallback(self) -> None:
        """Without an identity email the draft's email is used."""
        assert resolve_email(None, {"email": "draft@example.com"}) == "draft@example.com"


# =============================================================================
# Tests: row counts
# =============================================================================


class TestCompletionCounts:
    """Exactly the expected rows are written."""

    @pytest.mark.asyncio
    async def test_student_creates_profile_and_student_row(self, db_session: AsyncSession) -> None:
        """Student: one Profile, one StudentProfile, no teacher rows."""
        session = SessionContext(identity=_IDENTITY)
        result = await complete_onboarding(db_session, session, _student_draft())

        assert await _count(db_session, Profile) == 1
        assert await _count(db_session, StudentProfile) == 1
        assert await _count(db_session, ParentProfile) == 0
        assert await _count(db_session, TeacherProfile) == 0
        assert result.profile.email == TEST_USER_EMAIL
        assert result.extension.interests == ["chess"]

    @pytest.mark.asyncio
    async def test_parent_creates_profile_and_parent_row(self, db_session: AsyncSession) -> None:
        """Parent: one Profile, one ParentProfile, no teacher rows."""
        session = SessionContext(identity=_IDENTITY)
        result = await complete_onboarding(db_session, session, _parent_draft())

        assert await _count(db_session, Profile) == 1
        assert await _count(db_session, ParentProfile) == 1
        assert await _count(db_session, TeacherProfile) == 0
        assert await _count(db_session, TeacherExperience) == 0
        assert result.extension.children_count == 2

    @pytest.mark.asyncio
    async def test_teacher_creates_profile_teacher_and_children(
        self, db_session: AsyncSession
    ) -> None:
        """Teacher: Profile, TeacherProfile and one row per nested entry."""
        session = SessionContext(identity=_IDENTITY)
        result = await complete_onboarding(db_session, session, _teacher_draft())

        teacher = result.extension
        assert await _count(db_session, Profile) == 1
        assert await _count(db_session, TeacherProfile) == 1
        assert result.experience_count == 2
        assert result.education_count == 1

        experiences = (await db_session.execute(select(TeacherExperience))).scalars().all()
        educations = (await db_session.execute(select(TeacherEducation))).scalars().all()
        assert len(experiences) == 2
        assert len(educations) == 1
        assert {row.teacher_id for row in [*experiences, *educations]} == {teacher.id}
        assert result.profile.full_name == "Tia Teacher"
        assert teacher.subject == ["Mathematics", "Physics"]
        assert teacher.is_verified is False


# =============================================================================
# Tests: transactionality
# =============================================================================


class TestRollback:
    """A failure persists nothing and resubmission then succeeds."""

    @pytest.mark.asyncio
    async def test_teacher_insert_failure_rolls_back_profile(
        self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """If the TeacherProfile insert fails, no Profile survives."""

        async def _fail(*_args: object, **_kwargs: object) -> None:
            raise RuntimeError("insert failed")

        monkeypatch.setattr(TeacherProfileRepository, "create", staticmethod(_fail))

        with pytest.raises(RuntimeError, match="insert failed"):
            await complete_onboarding(
                db_session, SessionContext(identity=_IDENTITY), _teacher_draft()
            )

        assert await _count(db_session, Profile) == 0
        assert await _count(db_session, TeacherProfile) == 0

        monkeypatch.undo()
        await complete_onboarding(
            db_session, SessionContext(identity=_IDENTITY), _teacher_draft()
        )

        assert await _count(db_session, Profile) == 1
        assert await _count(db_session, TeacherProfile) == 1


# =============================================================================
# Tests: resubmission guard
# =============================================================================


class TestResubmissionGuard:
    """Existing and orphan profiles."""

    @pytest.mark.asyncio
    async def test_completed_profile_conflicts(self, db_session: AsyncSession) -> None:
        """A second completion raises PROFILE_EXISTS and writes nothing."""
        await complete_onboarding(db_session, SessionContext(identity=_IDENTITY), _student_draft())

        with pytest.raises(ConflictError) as exc_info:
            await complete_onboarding(
                db_session, SessionContext(identity=_IDENTITY), _student_draft()
            )

        assert exc_info.value.code == "PROFILE_EXISTS"
        assert await _count(db_session, StudentProfile) == 1

    @pytest.mark.asyncio
    async def test_orphan_profile_is_reused(self, db_session: AsyncSession) -> None:
        """An orphan Profile gets its extension instead of a duplicate Profile."""
        db_session.add(
            Profile(id=TEST_USER_ID, full_name="Old", email=TEST_USER_EMAIL, user_type="student")
        )
        await db_session.commit()

        result = await complete_onboarding(
            db_session, SessionContext(identity=_IDENTITY), _student_draft()
        )

        assert await _count(db_session, Profile) == 1
        assert await _count(db_session, StudentProfile) == 1
        assert result.profile.full_name == "Sam Student"

    @pytest.mark.asyncio
    async def test_orphan_with_other_type_conflicts(self, db_session: AsyncSession) -> None:
        """A teacher draft cannot complete onto a parent orphan."""
        db_session.add(
            Profile(id=TEST_USER_ID, full_name="Old", email=TEST_USER_EMAIL, user_type="parent")
        )
        await db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            await complete_onboarding(
                db_session, SessionContext(identity=_IDENTITY), _teacher_draft()
            )

        assert exc_info.value.code == "USER_TYPE_MISMATCH"
        assert await _count(db_session, TeacherProfile) == 0


# =============================================================================
# Tests: storage and session
# =============================================================================


class TestSideEffects:
    """Avatar bucket and session refresh."""

    @pytest.mark.asyncio
    async def test_teacher_completion_creates_avatar_bucket(
        self, db_session: AsyncSession, object_store: FakeObjectStore
    ) -> None:
        """Teachers get the avatar bucket provisioned."""
        await complete_onboarding(
            db_session,
            SessionContext(identity=_IDENTITY),
            _teacher_draft(),
            storage=object_store.client(),
        )

        assert object_store.buckets == {"avatars"}

    @pytest.mark.asyncio
    async def test_bucket_failure_does_not_block(
        self, db_session: AsyncSession, object_store: FakeObjectStore
    ) -> None:
        """An unreachable object store is logged and ignored."""
        object_store.raise_error = httpx.ConnectError("connection refused")

        await complete_onboarding(
            db_session,
            SessionContext(identity=_IDENTITY),
            _teacher_draft(),
            storage=object_store.client(),
        )

        assert await _count(db_session, TeacherProfile) == 1

    @pytest.mark.asyncio
    async def test_student_completion_skips_storage(
        self, db_session: AsyncSession, object_store: FakeObjectStore
    ) -> None:
        """Students never touch the object store."""
        await complete_onboarding(
            db_session,
            SessionContext(identity=_IDENTITY),
            _student_draft(),
            storage=object_store.client(),
        )

        assert object_store.requests == []

    @pytest.mark.asyncio
    async def test_session_refreshed(self, db_session: AsyncSession) -> None:
        """The caller's session sees the new profile and extension."""
        session = SessionContext(identity=_IDENTITY)
        assert session.onboarding_status is OnboardingStatus.NOT_STARTED

        await complete_onboarding(db_session, session, _parent_draft())

        assert session.onboarding_status is OnboardingStatus.COMPLETE
        assert session.profile is not None
        assert session.profile.user_type == "parent"

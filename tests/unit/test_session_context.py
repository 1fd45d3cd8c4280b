"""Tests for the per-request session container."""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity
from app.core.result import Err, ErrorKind, Ok
from app.models import Profile, StudentProfile, TeacherProfile
from app.services import session_context
from app.services.session_context import (
    OnboardingStatus,
    SessionContext,
    load_profile_state,
    load_session_snapshot,
)
from tests.helpers import TEST_USER_EMAIL, TEST_USER_ID

_IDENTITY = Identity(id=TEST_USER_ID, email=TEST_USER_EMAIL, provider="email")


class TestLoadProfileState:
    """load_profile_state / load_session_snapshot"""

    @pytest.mark.asyncio
    async def test_no_profile_is_ok_none(self, db_session: AsyncSession) -> None:
        """Absence is a value, not a failure."""
        result = await load_profile_state(db_session, _IDENTITY)

        assert result == Ok((None, None))

    @pytest.mark.asyncio
    async def test_teacher_with_extension(
        self, db_session: AsyncSession, teacher_profile: TeacherProfile
    ) -> None:
        """Profile and teacher extension are both loaded."""
        result = await load_session_snapshot(db_session, _IDENTITY)

        assert isinstance(result, Ok)
        session = result.value
        assert session.profile.id == TEST_USER_ID
        assert session.extension.id == teacher_profile.id
        assert session.onboarding_status is OnboardingStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_timeout_is_err(
        self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A slow read becomes Err(TIMEOUT)."""

        async def _slow(*_args: object) -> None:
            await asyncio.sleep(5)

        monkeypatch.setattr(session_context, "_fetch_profile_state", _slow)

        result = await load_profile_state(db_session, _IDENTITY, timeout=0.01)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_store_error_is_err(
        self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A database error becomes Err(STORE)."""

        async def _broken(*_args: object) -> None:
            raise OperationalError("SELECT 1", {}, Exception("gone"))

        monkeypatch.setattr(session_context, "_fetch_profile_state", _broken)

        result = await load_session_snapshot(db_session, _IDENTITY)

        assert result == Err(ErrorKind.STORE, "Failed to load the profile")


class TestRefresh:
    """SessionContext.refresh"""

    @pytest.mark.asyncio
    async def test_refresh_picks_up_new_rows(self, db_session: AsyncSession) -> None:
        """Rows written after construction are visible after refresh."""
        session = SessionContext(identity=_IDENTITY)
        db_session.add(
            Profile(id=TEST_USER_ID, full_name="Sam", email=TEST_USER_EMAIL, user_type="student")
        )
        await db_session.flush()
        db_session.add(StudentProfile(user_id=TEST_USER_ID, grade="8", interests=[]))
        await db_session.commit()

        result = await session.refresh(db_session)

        assert result == Ok(session)
        assert session.onboarding_status is OnboardingStatus.COMPLETE
        assert session.extension.grade == "8"

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_values(
        self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing reload does not wipe what was loaded before."""
        profile = Profile(
            id=TEST_USER_ID, full_name="Sam", email=TEST_USER_EMAIL, user_type="student"
        )
        session = SessionContext(identity=_IDENTITY, profile=profile)

        async def _broken(*_args: object) -> None:
            raise OperationalError("SELECT 1", {}, Exception("gone"))

        monkeypatch.setattr(session_context, "_fetch_profile_state", _broken)

        result = await session.refresh(db_session)

        assert isinstance(result, Err)
        assert session.profile is profile
        assert session.onboarding_status is OnboardingStatus.INCOMPLETE

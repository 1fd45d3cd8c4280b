"""Per-request session container.

Holds the verified identity together with the profile and type-specific
extension loaded for it. The container is built at the start of each
request (see app.api.deps.get_session_context) and refreshed in place after
onboarding writes a new profile, so the rest of the request sees it.
There is no process-wide user/profile state.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity
from app.core.config import settings
from app.core.result import Err, ErrorKind, Ok, Result
from app.models.profile import Profile, UserType
from app.repositories.profile_repository import Extension, ProfileRepository
from app.schemas.profiles import extension_to_dict, profile_to_dict

logger = structlog.get_logger()


class OnboardingStatus(str, Enum):
    """Where an identity stands relative to onboarding."""

    NOT_STARTED = "not_started"
    INCOMPLETE = "incomplete"  # profile exists without its extension
    COMPLETE = "complete"


@dataclass
class SessionContext:
    """The caller's identity plus whatever profile data exists for it.

    Attributes:
        identity: Verified identity.
        profile: Base profile, or None before onboarding completes.
        extension: Type-specific extension matching profile.user_type.
    """

    identity: Identity
    profile: Profile | None = None
    extension: Extension | None = None

    @property
    def onboarding_status(self) -> OnboardingStatus:
        if self.profile is None:
            return OnboardingStatus.NOT_STARTED
        if self.profile.user_type == UserType.ADMIN.value or self.extension is not None:
            return OnboardingStatus.COMPLETE
        return OnboardingStatus.INCOMPLETE

    async def refresh(self, db: AsyncSession) -> Result["SessionContext"]:
        """Reload profile and extension from the store.

        On failure the previously loaded values are kept.

        Args:
            db: Async database session.

        Returns:
            Ok(self) after reloading, or the Err from the load.
        """
        result = await load_profile_state(db, self.identity)
        if isinstance(result, Err):
            return result
        self.profile, self.extension = result.value
        return Ok(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.to_dict(),
            "profile": profile_to_dict(self.profile) if self.profile else None,
            "extension": extension_to_dict(self.extension),
            "onboarding_status": self.onboarding_status.value,
        }


async def _fetch_profile_state(
    db: AsyncSession, identity: Identity
) -> tuple[Profile | None, Extension | None]:
    profile = await ProfileRepository.get_by_id(db, identity.id)
    if profile is None:
        return None, None
    extension = await ProfileRepository.get_extension(db, profile)
    return profile, extension


async def load_profile_state(
    db: AsyncSession,
    identity: Identity,
    *,
    timeout: float | None = None,
) -> Result[tuple[Profile | None, Extension | None]]:
    """Load an identity's profile and extension with a bounded wait.

    "No profile yet" is Ok((None, None)); only failures are Err.

    Args:
        db: Async database session.
        identity: Verified identity.
        timeout: Seconds to wait (defaults to settings.profile_fetch_timeout_seconds).

    Returns:
        Ok((profile, extension)), Err(TIMEOUT) or Err(STORE).
    """
    limit = timeout if timeout is not None else settings.profile_fetch_timeout_seconds
    try:
        async with asyncio.timeout(limit):
            state = await _fetch_profile_state(db, identity)
    except TimeoutError:
        logger.warning("Profile fetch timed out", identity_id=str(identity.id), timeout=limit)
        return Err(ErrorKind.TIMEOUT, "Loading the profile is taking longer than expected")
    except SQLAlchemyError as exc:
        logger.warning("Profile fetch failed", identity_id=str(identity.id), error=str(exc))
        return Err(ErrorKind.STORE, "Failed to load the profile")
    return Ok(state)


async def load_session_snapshot(
    db: AsyncSession,
    identity: Identity,
    *,
    timeout: float | None = None,
) -> Result[SessionContext]:
    """Build a SessionContext for an identity.

    Args:
        db: Async database session.
        identity: Verified identity.
        timeout: Optional override of the profile fetch timeout.

    Returns:
        Ok(SessionContext) or the Err from the profile load.
    """
    result = await load_profile_state(db, identity, timeout=timeout)
    if isinstance(result, Err):
        return result
    profile, extension = result.value
    return Ok(SessionContext(identity=identity, profile=profile, extension=extension))

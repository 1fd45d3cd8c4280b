"""Session API router.

Endpoints:
- GET /session      identity, profile, extension and onboarding status
- GET /profile/me   the caller's profile (404 before onboarding)
"""

from fastapi import APIRouter

from app.api.deps import SessionCtx
from app.core.errors import NotFoundError
from app.core.responses import DataResponse
from app.schemas.profiles import extension_to_dict, profile_to_dict

router = APIRouter()


@router.get("/session")
async def get_session(session: SessionCtx) -> DataResponse[dict]:
    """Return the caller's session state, freshly loaded."""
    return DataResponse(data=session.to_dict())


@router.get("/profile/me")
async def get_my_profile(session: SessionCtx) -> DataResponse[dict]:
    """Return the caller's profile with its extension.

    Raises:
        NotFoundError: If the caller has no profile yet.
    """
    if session.profile is None:
        raise NotFoundError("Profile")
    return DataResponse(
        data={
            "profile": profile_to_dict(session.profile),
            "extension": extension_to_dict(session.extension),
            "onboarding_status": session.onboarding_status.value,
        }
    )

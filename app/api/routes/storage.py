"""Storage API router.

Endpoints:
- POST /storage/ensure-bucket   create the avatar bucket if missing
- POST /avatar                  upload the caller's avatar (multipart "avatar")
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, File, Request, UploadFile

from app.api.deps import CurrentIdentity, DbSession, Storage
from app.core.config import settings
from app.core.errors import InternalError, ServiceUnavailableError, ValidationError
from app.core.file_validation import read_upload_with_limit
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse
from app.core.result import Err, ErrorKind
from app.repositories.profile_repository import ProfileRepository

logger = structlog.get_logger()

router = APIRouter()


@router.post("/storage/ensure-bucket")
async def ensure_avatar_bucket(
    identity: CurrentIdentity,
    storage: Storage,
) -> dict:
    """Make sure the avatar bucket exists.

    Returns:
        {"success": True, "message": ...}.

    Raises:
        ServiceUnavailableError: If storage is not configured or unreachable.
        InternalError: If the store refused the request.
    """
    result = await storage.ensure_bucket(settings.avatar_bucket)
    if isinstance(result, Err):
        logger.warning(
            "Ensure bucket failed",
            identity_id=str(identity.id),
            kind=result.kind.value,
        )
        if result.kind in (ErrorKind.UNAVAILABLE, ErrorKind.TIMEOUT):
            raise ServiceUnavailableError(result.message)
        raise InternalError(result.message)

    return {"success": True, "message": f"Bucket '{settings.avatar_bucket}' {result.value}"}


@router.post("/avatar")
@limiter.limit(settings.rate_limit_uploads)
async def upload_avatar(
    request: Request,  # noqa: ARG001
    identity: CurrentIdentity,
    db: DbSession,
    storage: Storage,
    avatar: Annotated[UploadFile | None, File()] = None,
) -> DataResponse[dict]:
    """Upload an avatar image and attach it to the caller's profile.

    The profile is updated only when it exists; during onboarding the URL
    is sent back with the profile-details step instead.

    Args:
        request: HTTP request (required by rate limiter).
        identity: Current identity.
        db: Database session.
        storage: Object storage client.
        avatar: Uploaded image.

    Returns:
        DataResponse with {"url": public URL}.

    Raises:
        ValidationError: If no file was sent or the upload was rejected.
    """
    if avatar is None:
        raise ValidationError(
            "No file provided",
            details=[{"field": "avatar", "error": "required"}],
        )

    content = await read_upload_with_limit(avatar)
    outcome = await storage.upload_avatar(content, avatar.content_type, identity.id)
    if "error" in outcome:
        raise ValidationError(outcome["error"])

    url = outcome["url"]
    if await ProfileRepository.get_by_id(db, identity.id) is not None:
        await ProfileRepository.update(db, identity.id, avatar_url=url)

    logger.info("Avatar uploaded", identity_id=str(identity.id))
    return DataResponse(data={"url": url})

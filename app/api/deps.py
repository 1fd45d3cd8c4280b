"""Shared dependencies for API endpoints.

Identity comes from the hosted identity provider's access token (Bearer
header or session cookie). Local development with auth disabled uses
DEFAULT_USER_ID instead.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, decode_access_token, extract_token
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import GatewayTimeoutError, InternalError, UnauthorizedError
from app.core.result import Err, ErrorKind
from app.core.storage import StorageClient, get_storage_client
from app.services.onboarding_draft_store import OnboardingDraftStore, get_draft_store
from app.services.session_context import SessionContext, load_session_snapshot


async def get_current_identity(request: Request) -> Identity:
    """Get the verified identity of the caller.

    Args:
        request: HTTP request (injected by FastAPI).

    Returns:
        Identity of the authenticated caller.

    Raises:
        UnauthorizedError: 401 for any auth failure (same message every time).
    """
    if not settings.auth_enabled:
        if settings.default_user_id is None:
            raise UnauthorizedError()
        return Identity(
            id=settings.default_user_id,
            email=settings.default_user_email,
            provider="email",
        )

    token = extract_token(request)
    if not token:
        raise UnauthorizedError()
    return decode_access_token(token)


async def get_session_context(
    identity: Annotated[Identity, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SessionContext:
    """Build the caller's session container for this request.

    Raises:
        GatewayTimeoutError: If the profile fetch exceeds its timeout.
        InternalError: If the profile could not be read.
    """
    result = await load_session_snapshot(db, identity)
    if isinstance(result, Err):
        if result.kind is ErrorKind.TIMEOUT:
            raise GatewayTimeoutError(result.message)
        raise InternalError(result.message)
    return result.value


# Type aliases for cleaner endpoint signatures
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionCtx = Annotated[SessionContext, Depends(get_session_context)]
Storage = Annotated[StorageClient, Depends(get_storage_client)]
DraftStore = Annotated[OnboardingDraftStore, Depends(get_draft_store)]

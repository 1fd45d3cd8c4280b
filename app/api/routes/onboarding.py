"""Onboarding API router.

Drives the onboarding step machine for the caller's draft. Drafts live in
the in-memory draft store until the last step succeeds; only then is
anything written to the database.

Endpoints:
- GET    /onboarding/draft   current draft, visible steps and progress
- POST   /onboarding/steps   submit the current step ({step, data})
- POST   /onboarding/back    move one step back
- DELETE /onboarding/draft   discard the draft
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request, Response, status

from app.api.deps import DbSession, DraftStore, SessionCtx, Storage
from app.core.config import settings
from app.core.errors import ConflictError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse
from app.schemas.onboarding import StepSubmission
from app.services import onboarding_machine
from app.services.onboarding_completion import complete_onboarding
from app.services.onboarding_machine import Draft
from app.services.session_context import OnboardingStatus, SessionContext

logger = structlog.get_logger()

router = APIRouter()


def _ensure_not_complete(session: SessionContext) -> None:
    if session.onboarding_status is OnboardingStatus.COMPLETE:
        raise ConflictError("ONBOARDING_COMPLETE", "Onboarding is already complete.")


def _initial_draft(session: SessionContext) -> Draft:
    """Fresh draft, prefilled from an orphan profile or the identity email."""
    user_data: dict[str, Any] = {}
    if session.identity.email:
        user_data["email"] = session.identity.email

    profile = session.profile
    if profile is not None:
        # Orphan profile: the user type is fixed, contact fields carry over.
        user_data.update(
            {
                "user_type": profile.user_type,
                "full_name": profile.full_name,
                "email": session.identity.email or profile.email,
            }
        )
        if profile.phone:
            user_data["phone"] = profile.phone
        if profile.avatar_url:
            user_data["avatar_url"] = profile.avatar_url
    return Draft(user_data=user_data)


def _draft_view(draft: Draft) -> dict[str, Any]:
    return {
        "draft": draft.to_dict(),
        "steps": [step.value for step in onboarding_machine.active_steps(draft)],
        "progress": onboarding_machine.progress_percent(draft),
    }


@router.get("/draft")
async def get_draft(session: SessionCtx, store: DraftStore) -> DataResponse[dict]:
    """Get (or start) the caller's onboarding draft.

    Raises:
        ConflictError: ONBOARDING_COMPLETE if the profile is already complete.
    """
    _ensure_not_complete(session)
    draft = store.get_or_create(session.identity.id, initial=_initial_draft(session))
    return DataResponse(data=_draft_view(draft))


@router.post("/steps")
@limiter.limit(settings.rate_limit_writes)
async def submit_step(
    request: Request,  # noqa: ARG001
    body: StepSubmission,
    session: SessionCtx,
    db: DbSession,
    store: DraftStore,
    storage: Storage,
) -> DataResponse[dict]:
    """Submit the current step.

    Non-final steps advance the draft. The final step persists the draft,
    discards it and returns the refreshed session alongside it.

    Args:
        request: HTTP request (required by rate limiter).
        body: Step id and the fields entered on it.
        session: Caller's session container.
        db: Database session.
        store: Onboarding draft store.
        storage: Object storage client (teacher avatar bucket).

    Returns:
        DataResponse with draft, steps and progress (plus session on completion).

    Raises:
        ConflictError: If onboarding is already complete.
        InvalidStateError: If the step is not the draft's current step.
        ValidationError: If the step's required fields are missing.
    """
    _ensure_not_complete(session)
    identity = session.identity
    draft = store.get_or_create(identity.id, initial=_initial_draft(session))

    payload = body.data.model_dump(exclude_unset=True)
    if identity.is_federated:
        payload.pop("email", None)

    transition = onboarding_machine.submit(
        draft, body.step, payload, identity_email=identity.email
    )
    if not transition.completes:
        advanced = transition.advanced()
        store.save(identity.id, advanced)
        return DataResponse(data=_draft_view(advanced))

    # Keep the merged answers if persisting fails so the user can resubmit.
    store.save(identity.id, transition.draft)
    await complete_onboarding(db, session, transition.draft, storage=storage)
    store.discard(identity.id)

    return DataResponse(
        data={**_draft_view(transition.advanced()), "session": session.to_dict()}
    )


@router.post("/back")
async def go_back(session: SessionCtx, store: DraftStore) -> DataResponse[dict]:
    """Move the draft one step back, keeping entered answers.

    Raises:
        InvalidStateError: From the first step.
    """
    _ensure_not_complete(session)
    draft = store.get_or_create(session.identity.id, initial=_initial_draft(session))
    previous = onboarding_machine.back(draft)
    store.save(session.identity.id, previous)
    return DataResponse(data=_draft_view(previous))


@router.delete("/draft", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(session: SessionCtx, store: DraftStore) -> Response:
    """Discard the caller's draft (no-op if none exists)."""
    if store.discard(session.identity.id):
        logger.info("Onboarding draft discarded", identity_id=str(session.identity.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)

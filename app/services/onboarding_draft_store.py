"""In-memory store for onboarding drafts.

Drafts are keyed by identity id and expire after a TTL. They are never
written to the database: a draft either completes (and is discarded) or is
abandoned and ages out.

Safe for the single-threaded event loop; not shared between processes.
A multi-instance deployment needs a shared store (e.g. Redis) behind the
same interface.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from app.core.config import settings
from app.services.onboarding_machine import Draft


@dataclass
class _StoredDraft:
    draft: Draft
    expires_at: datetime


class OnboardingDraftStore:
    """In-memory store for onboarding drafts, one per identity."""

    def __init__(self, ttl_minutes: int | None = None) -> None:
        """Initialize the draft store.

        Args:
            ttl_minutes: Draft time-to-live in minutes, refreshed on every save.
                Defaults to settings.onboarding_draft_ttl_minutes.
        """
        self._store: dict[uuid.UUID, _StoredDraft] = {}
        self._ttl = timedelta(
            minutes=ttl_minutes
            if ttl_minutes is not None
            else settings.onboarding_draft_ttl_minutes
        )

    def get(self, identity_id: uuid.UUID) -> Draft | None:
        """Get the identity's draft if it exists and has not expired.

        Args:
            identity_id: Owner of the draft.

        Returns:
            The draft, or None if absent or expired.
        """
        stored = self._store.get(identity_id)
        if stored is None:
            return None

        if datetime.now(UTC) > stored.expires_at:
            del self._store[identity_id]
            return None

        return stored.draft

    def get_or_create(
        self,
        identity_id: uuid.UUID,
        initial: Draft | None = None,
    ) -> Draft:
        """Get the identity's draft, starting a fresh one if needed.

        Args:
            identity_id: Owner of the draft.
            initial: Draft to start with when none exists (defaults to an
                empty draft on the first step).

        Returns:
            The existing or newly stored draft.
        """
        draft = self.get(identity_id)
        if draft is None:
            draft = initial if initial is not None else Draft()
            self.save(identity_id, draft)
        return draft

    def save(self, identity_id: uuid.UUID, draft: Draft) -> None:
        """Store a draft and restart its TTL.

        Expired drafts of other identities are swept on every save.
        """
        self.cleanup_expired()
        self._store[identity_id] = _StoredDraft(
            draft=draft,
            expires_at=datetime.now(UTC) + self._ttl,
        )

    def discard(self, identity_id: uuid.UUID) -> bool:
        """Remove an identity's draft.

        Returns:
            True if a draft was removed.
        """
        return self._store.pop(identity_id, None) is not None

    def cleanup_expired(self) -> int:
        """Remove all expired drafts.

        Returns:
            Number of drafts removed.
        """
        now = datetime.now(UTC)
        expired = [key for key, stored in self._store.items() if now > stored.expires_at]
        for key in expired:
            del self._store[key]
        return len(expired)

    def clear(self) -> None:
        """Clear all drafts (for testing)."""
        self._store.clear()


# Singleton instance for the application
_draft_store: OnboardingDraftStore | None = None


def get_draft_store() -> OnboardingDraftStore:
    """Get the singleton draft store instance.

    Returns:
        The OnboardingDraftStore singleton.
    """
    global _draft_store
    if _draft_store is None:
        _draft_store = OnboardingDraftStore()
    return _draft_store


def reset_draft_store() -> None:
    """Reset the draft store singleton (for testing)."""
    global _draft_store
    if _draft_store is not None:
        _draft_store.clear()
    _draft_store = None

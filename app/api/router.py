"""API router aggregator.

All endpoint routers are included here; create_app mounts the result at /api.
"""

from fastapi import APIRouter

from app.api.routes import (
    education,
    experience,
    onboarding,
    session,
    storage,
    teachers,
)

router = APIRouter()

# =============================================================================
# Session and onboarding
# =============================================================================

router.include_router(session.router, tags=["session"])
router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])

# =============================================================================
# Teacher profiles and sub-records
# =============================================================================

router.include_router(teachers.router, prefix="/teachers", tags=["teachers"])
router.include_router(education.router, prefix="/education", tags=["education"])
router.include_router(experience.router, prefix="/experience", tags=["experience"])

# =============================================================================
# Storage
# =============================================================================

router.include_router(storage.router, tags=["storage"])

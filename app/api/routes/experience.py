"""Experience API router.

Teaching positions on a teacher profile, newest first.
"""

from app.api.routes.sub_records import build_sub_record_router
from app.schemas.sub_records import (
    CreateExperienceRequest,
    SubRecordKind,
    UpdateExperienceRequest,
)

router = build_sub_record_router(
    SubRecordKind.EXPERIENCE,
    create_model=CreateExperienceRequest,
    update_model=UpdateExperienceRequest,
)

"""Education API router.

Degrees and qualifications on a teacher profile, listed by year (newest
first). Endpoints are built by sub_records.build_sub_record_router.
"""

from app.api.routes.sub_records import build_sub_record_router
from app.schemas.sub_records import (
    CreateEducationRequest,
    SubRecordKind,
    UpdateEducationRequest,
)

router = build_sub_record_router(
    SubRecordKind.EDUCATION,
    create_model=CreateEducationRequest,
    update_model=UpdateEducationRequest,
)

"""Repository for teacher sub-records (experiences and educations).

Both tables share one shape (teacher_id + three required text fields +
optional description), so a single repository class is instantiated once
per table with its model and list ordering.
"""

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.models.teacher import TeacherEducation, TeacherExperience
from app.schemas.sub_records import REQUIRED_FIELDS, SubRecordKind

SubRecord = TeacherExperience | TeacherEducation


class SubRecordRepository:
    """Repository for one sub-record table.

    Holds only configuration (model, kind, ordering); every method takes an
    AsyncSession so the caller controls transaction boundaries.
    """

    def __init__(
        self,
        model: type[SubRecord],
        kind: SubRecordKind,
        order_by: InstrumentedAttribute,
    ) -> None:
        self.model = model
        self.kind = kind
        self._order_by = order_by
        self._updatable_fields: frozenset[str] = frozenset(
            (*REQUIRED_FIELDS[kind], "description")
        )

    async def get_by_id(self, db: AsyncSession, record_id: uuid.UUID) -> SubRecord | None:
        """Fetch a sub-record by primary key.

        Args:
            db: Async database session.
            record_id: Row id.

        Returns:
            The row if found, None otherwise.
        """
        return await db.get(self.model, record_id)

    async def list_for_teacher(
        self,
        db: AsyncSession,
        teacher_id: uuid.UUID,
        *,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[SubRecord], int]:
        """List one page of a teacher's sub-records.

        Args:
            db: Async database session.
            teacher_id: Owning TeacherProfile id.
            offset: Rows to skip.
            limit: Maximum rows to return.

        Returns:
            Tuple of (rows for the page, total rows for the teacher).
        """
        count_stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.teacher_id == teacher_id)
        )
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(self.model)
            .where(self.model.teacher_id == teacher_id)
            .order_by(self._order_by.desc(), self.model.id)
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    async def create(
        self,
        db: AsyncSession,
        teacher_id: uuid.UUID,
        values: dict[str, Any],
    ) -> SubRecord:
        """Insert one sub-record for a teacher.

        Args:
            db: Async database session.
            teacher_id: Owning TeacherProfile id.
            values: Field values (required fields plus optional description).

        Returns:
            Created row with id and created_at populated.
        """
        record = self.model(teacher_id=teacher_id, **self._pick(values))
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return record

    async def create_many(
        self,
        db: AsyncSession,
        teacher_id: uuid.UUID,
        entries: list[dict[str, Any]],
    ) -> list[SubRecord]:
        """Bulk-insert sub-records, each tagged with teacher_id.

        Args:
            db: Async database session.
            teacher_id: Owning TeacherProfile id.
            entries: Field values per row.

        Returns:
            Created rows in input order.
        """
        records = [
            self.model(teacher_id=teacher_id, **self._pick(entry)) for entry in entries
        ]
        db.add_all(records)
        await db.flush()
        return records

    async def update(
        self,
        db: AsyncSession,
        record: SubRecord,
        changes: dict[str, Any],
    ) -> SubRecord:
        """Apply field changes to a sub-record.

        Args:
            db: Async database session.
            record: Row to update.
            changes: Field values to set.

        Returns:
            The refreshed row.

        Raises:
            ValueError: If a field outside the sub-record's columns is passed.
        """
        unknown = set(changes) - self._updatable_fields
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        for field, value in changes.items():
            setattr(record, field, value)
        await db.flush()
        await db.refresh(record)
        return record

    async def delete(self, db: AsyncSession, record: SubRecord) -> None:
        """Hard-delete a sub-record."""
        await db.delete(record)
        await db.flush()

    def _pick(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in values.items() if k in self._updatable_fields}


experience_repository = SubRecordRepository(
    TeacherExperience,
    SubRecordKind.EXPERIENCE,
    order_by=TeacherExperience.created_at,
)

education_repository = SubRecordRepository(
    TeacherEducation,
    SubRecordKind.EDUCATION,
    order_by=TeacherEducation.year,
)

SUB_RECORD_REPOSITORIES: dict[SubRecordKind, SubRecordRepository] = {
    SubRecordKind.EXPERIENCE: experience_repository,
    SubRecordKind.EDUCATION: education_repository,
}

"""Teacher sub-record editor.

List editor for one teacher's experiences and educations, used by the
profile management UI layer and by admin tooling. It holds the lists, the
add forms and the in-flight flags; all reads and writes go through a
SubRecordGateway.

Reads are fail-closed: if either list cannot be loaded, neither list is
shown and a single generic error is set.

There is no edit-in-place: a row is changed by deleting it and adding a
replacement.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import structlog

from app.core.pagination import MAX_PAGE_LIMIT
from app.core.result import Err, ErrorKind, Ok, Result
from app.schemas.sub_records import REQUIRED_FIELDS, SubRecordKind, missing_required_fields

logger = structlog.get_logger()

LOAD_ERROR_MESSAGE = "Failed to load teacher data"

_MAX_PAGES = 100
"""Safety bound on pages followed while listing one kind."""

_MALFORMED_RESPONSE = "Malformed response from the server"


# =============================================================================
# Gateway
# =============================================================================


class SubRecordGateway(Protocol):
    """Storage operations the editor needs."""

    async def list_records(
        self, kind: SubRecordKind, teacher_id: uuid.UUID
    ) -> Result[list[dict[str, Any]]]: ...

    async def create_record(
        self, kind: SubRecordKind, teacher_id: uuid.UUID, values: dict[str, Any]
    ) -> Result[dict[str, Any]]: ...

    async def delete_record(self, kind: SubRecordKind, record_id: str) -> Result[None]: ...


class HttpSubRecordGateway:
    """SubRecordGateway over the /api/experience and /api/education endpoints.

    Args:
        client: httpx client with base_url pointing at this service and the
            caller's credentials (cookie or Authorization header) attached.
        page_size: Rows requested per list page.
    """

    def __init__(self, client: httpx.AsyncClient, *, page_size: int = MAX_PAGE_LIMIT) -> None:
        self._client = client
        self._page_size = page_size

    @staticmethod
    def _path(kind: SubRecordKind) -> str:
        return f"/api/{kind.value}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Result[Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            return Err(ErrorKind.TIMEOUT, "Request timed out")
        except httpx.HTTPError as exc:
            return Err(ErrorKind.UNAVAILABLE, str(exc))

        if response.status_code >= 400:
            message = f"HTTP {response.status_code}"
            try:
                message = response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                pass
            return Err(ErrorKind.from_status(response.status_code), message)
        try:
            return Ok(response.json())
        except ValueError:
            return Err(ErrorKind.STORE, _MALFORMED_RESPONSE)

    async def list_records(
        self, kind: SubRecordKind, teacher_id: uuid.UUID
    ) -> Result[list[dict[str, Any]]]:
        """Fetch every row for the teacher, following hasMore pagination."""
        rows: list[dict[str, Any]] = []
        for page in range(1, _MAX_PAGES + 1):
            result = await self._request(
                "GET",
                self._path(kind),
                params={"teacher_id": str(teacher_id), "page": page, "limit": self._page_size},
            )
            if isinstance(result, Err):
                return result
            try:
                rows.extend(result.value["data"])
                has_more = result.value["metadata"].get("hasMore")
            except (KeyError, TypeError, AttributeError):
                return Err(ErrorKind.STORE, _MALFORMED_RESPONSE)
            if not has_more:
                break
        return Ok(rows)

    async def create_record(
        self, kind: SubRecordKind, teacher_id: uuid.UUID, values: dict[str, Any]
    ) -> Result[dict[str, Any]]:
        result = await self._request(
            "POST",
            self._path(kind),
            json={"teacher_id": str(teacher_id), **values},
        )
        if isinstance(result, Err):
            return result
        try:
            return Ok(result.value["data"])
        except (KeyError, TypeError):
            return Err(ErrorKind.STORE, _MALFORMED_RESPONSE)

    async def delete_record(self, kind: SubRecordKind, record_id: str) -> Result[None]:
        result = await self._request("DELETE", f"{self._path(kind)}/{record_id}")
        if isinstance(result, Err):
            return result
        return Ok(None)


# =============================================================================
# Editor
# =============================================================================


def _empty_form(kind: SubRecordKind) -> dict[str, str]:
    return {**dict.fromkeys(REQUIRED_FIELDS[kind], ""), "description": ""}


@dataclass
class _KindState:
    """Per-kind list, add form and in-flight flags."""

    kind: SubRecordKind
    rows: list[dict[str, Any]] = field(default_factory=list)
    form: dict[str, str] = field(default_factory=dict)
    form_visible: bool = False
    submitting: bool = False
    deleting: set[str] = field(default_factory=set)

    def reset_form(self) -> None:
        self.form = _empty_form(self.kind)


class SubRecordEditor:
    """Editor state for one teacher's experiences and educations.

    Args:
        gateway: Where rows are read from and written to.
        teacher_id: TeacherProfile whose rows are edited.
    """

    def __init__(self, gateway: SubRecordGateway, teacher_id: uuid.UUID) -> None:
        self._gateway = gateway
        self.teacher_id = teacher_id
        self.loading = False
        self.loaded = False
        self.error: str | None = None
        self._state: dict[SubRecordKind, _KindState] = {}
        for kind in SubRecordKind:
            state = _KindState(kind=kind)
            state.reset_form()
            self._state[kind] = state

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    def rows(self, kind: SubRecordKind) -> list[dict[str, Any]]:
        """Rows currently shown for a kind (empty until a load succeeds)."""
        return list(self._state[kind].rows)

    def form(self, kind: SubRecordKind) -> dict[str, str]:
        return dict(self._state[kind].form)

    def is_form_visible(self, kind: SubRecordKind) -> bool:
        return self._state[kind].form_visible

    def is_submitting(self, kind: SubRecordKind) -> bool:
        return self._state[kind].submitting

    def is_deleting(self, kind: SubRecordKind, row_id: str) -> bool:
        return str(row_id) in self._state[kind].deleting

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    async def load(self) -> bool:
        """Load both lists in parallel.

        Returns:
            True if both loads succeeded. On any failure both lists are
            cleared and error is set.
        """
        self.loading = True
        self.error = None
        try:
            experiences, educations = await asyncio.gather(
                self._gateway.list_records(SubRecordKind.EXPERIENCE, self.teacher_id),
                self._gateway.list_records(SubRecordKind.EDUCATION, self.teacher_id),
            )
        finally:
            self.loading = False

        results = {
            SubRecordKind.EXPERIENCE: experiences,
            SubRecordKind.EDUCATION: educations,
        }
        failures = {kind: r for kind, r in results.items() if isinstance(r, Err)}
        if failures:
            for kind, failure in failures.items():
                logger.warning(
                    "Teacher data load failed",
                    kind=kind.value,
                    teacher_id=str(self.teacher_id),
                    error_kind=failure.kind.value,
                )
            for state in self._state.values():
                state.rows = []
            self.loaded = False
            self.error = LOAD_ERROR_MESSAGE
            return False

        for kind, result in results.items():
            self._state[kind].rows = list(result.value)
        self.loaded = True
        return True

    # -------------------------------------------------------------------------
    # Add
    # -------------------------------------------------------------------------

    def show_add_form(self, kind: SubRecordKind) -> None:
        self._state[kind].form_visible = True

    def cancel_add(self, kind: SubRecordKind) -> None:
        """Hide the add form and clear what was typed."""
        state = self._state[kind]
        state.form_visible = False
        state.reset_form()

    def update_form(self, kind: SubRecordKind, **values: str) -> None:
        """Set add-form fields.

        Raises:
            ValueError: If a field does not belong to the kind's form.
        """
        state = self._state[kind]
        unknown = set(values) - set(state.form)
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        state.form.update(values)

    async def submit_add(self, kind: SubRecordKind) -> bool:
        """Create a row from the add form.

        Nothing is sent while the form is hidden or a required field is blank.

        Returns:
            True if the row was created and appended.
        """
        state = self._state[kind]
        if not state.form_visible or state.submitting:
            return False
        if missing_required_fields(kind, state.form):
            return False

        values: dict[str, Any] = {
            name: state.form[name].strip() for name in REQUIRED_FIELDS[kind]
        }
        description = state.form.get("description", "").strip()
        values["description"] = description or None

        state.submitting = True
        try:
            result = await self._gateway.create_record(kind, self.teacher_id, values)
        finally:
            state.submitting = False

        if isinstance(result, Err):
            logger.warning(
                "Adding teacher record failed",
                kind=kind.value,
                teacher_id=str(self.teacher_id),
                error_kind=result.kind.value,
                error=result.message,
            )
            return False

        state.rows.append(result.value)
        state.reset_form()
        state.form_visible = False
        return True

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete(self, kind: SubRecordKind, row_id: str) -> bool:
        """Delete one row. Deletes of different rows may run concurrently.

        Returns:
            True if the row was deleted and removed from the list.
        """
        state = self._state[kind]
        row_id = str(row_id)
        if row_id in state.deleting:
            return False

        state.deleting.add(row_id)
        try:
            result = await self._gateway.delete_record(kind, row_id)
        finally:
            state.deleting.discard(row_id)

        if isinstance(result, Err):
            logger.warning(
                "Deleting teacher record failed",
                kind=kind.value,
                record_id=row_id,
                error_kind=result.kind.value,
                error=result.message,
            )
            return False

        state.rows = [row for row in state.rows if str(row.get("id")) != row_id]
        return True

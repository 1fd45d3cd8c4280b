"""Onboarding step machine.

Pure state machine for the onboarding flow. No I/O: it validates a step
submission, merges it into the draft and tells the caller where the draft
goes next. Persisting the finished draft is onboarding_completion's job.

Flow:
    user-type → profile-details → teacher-details → complete   (teacher)
    user-type → profile-details → complete                      (student, parent)

Events:
    submit(step, payload)   advance by the transition table
    back()                  return to the previous form step

The draft never reaches "complete" through this module alone: a transition
into COMPLETE is reported (Transition.completes) and the caller only marks
the draft complete after the persistence sequence succeeds.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from app.core.errors import InvalidStateError, ValidationError
from app.models.profile import UserType
from app.schemas.sub_records import SubRecordKind, missing_required_fields


class StepId(str, Enum):
    """Onboarding steps."""

    USER_TYPE = "user-type"
    PROFILE_DETAILS = "profile-details"
    TEACHER_DETAILS = "teacher-details"
    COMPLETE = "complete"


SELECTABLE_USER_TYPES: frozenset[str] = frozenset(
    {UserType.TEACHER.value, UserType.STUDENT.value, UserType.PARENT.value}
)
"""User types a person may pick during onboarding (admin is assigned, never chosen)."""

# (current step, user_type after merge) -> next step
SUBMIT_TRANSITIONS: dict[tuple[StepId, str], StepId] = {
    (StepId.USER_TYPE, UserType.TEACHER.value): StepId.PROFILE_DETAILS,
    (StepId.USER_TYPE, UserType.STUDENT.value): StepId.PROFILE_DETAILS,
    (StepId.USER_TYPE, UserType.PARENT.value): StepId.PROFILE_DETAILS,
    (StepId.PROFILE_DETAILS, UserType.TEACHER.value): StepId.TEACHER_DETAILS,
    (StepId.PROFILE_DETAILS, UserType.STUDENT.value): StepId.COMPLETE,
    (StepId.PROFILE_DETAILS, UserType.PARENT.value): StepId.COMPLETE,
    (StepId.TEACHER_DETAILS, UserType.TEACHER.value): StepId.COMPLETE,
}

BACK_TRANSITIONS: dict[StepId, StepId] = {
    StepId.PROFILE_DETAILS: StepId.USER_TYPE,
    StepId.TEACHER_DETAILS: StepId.PROFILE_DETAILS,
}

_BASE_STEPS: tuple[StepId, ...] = (StepId.USER_TYPE, StepId.PROFILE_DETAILS)
_TYPE_STEPS: dict[str, tuple[StepId, ...]] = {
    UserType.TEACHER.value: (StepId.TEACHER_DETAILS,),
    UserType.STUDENT.value: (),
    UserType.PARENT.value: (),
}

_TEACHER_PROFILE_KEY = "teacher_profile"
_TEACHER_TEXT_FIELDS = ("location", "fee", "about")


@dataclass
class Draft:
    """In-memory accumulation of onboarding answers.

    Attributes:
        current_step: Step whose form the user is on.
        user_data: Partial user record merged from every submitted step.
    """

    current_step: StepId = StepId.USER_TYPE
    user_data: dict[str, Any] = field(default_factory=dict)

    @property
    def user_type(self) -> str | None:
        return self.user_data.get("user_type")

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_step": self.current_step.value,
            "user_data": copy.deepcopy(self.user_data),
        }


@dataclass(frozen=True)
class Transition:
    """Outcome of a step submission.

    Attributes:
        draft: Draft with the payload merged, still on the submitted step.
        next_step: Step the draft moves to once the caller accepts it.
        completes: True when next_step is COMPLETE and the caller must run
            the persistence sequence before advancing.
    """

    draft: Draft
    next_step: StepId

    @property
    def completes(self) -> bool:
        return self.next_step is StepId.COMPLETE

    def advanced(self) -> Draft:
        """The merged draft moved onto next_step."""
        return replace(self.draft, current_step=self.next_step)


# =============================================================================
# Merging
# =============================================================================


def merge_user_data(current: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
    """Merge a step payload into the draft's user data.

    Shallow at the top level, except teacher_profile, which is merged key by
    key so fields from earlier submissions survive partial ones.

    Args:
        current: Existing user data (not mutated).
        payload: Fields sent with this submission.

    Returns:
        New merged user data dict.
    """
    merged = copy.deepcopy(current)
    for key, value in payload.items():
        if (
            key == _TEACHER_PROFILE_KEY
            and isinstance(value, dict)
            and isinstance(merged.get(key), dict)
        ):
            merged[key] = {**merged[key], **copy.deepcopy(value)}
        else:
            merged[key] = copy.deepcopy(value)
    return merged


# =============================================================================
# Validation
# =============================================================================


def _blank(value: Any) -> bool:
    return not str(value or "").strip()


def _missing(field_name: str, message: str) -> dict[str, str]:
    return {"field": field_name, "error": message}


def _validate_user_type(user_data: dict[str, Any]) -> list[dict[str, str]]:
    if user_data.get("user_type") not in SELECTABLE_USER_TYPES:
        return [_missing("user_type", "Choose teacher, student or parent")]
    return []


def _validate_profile_details(
    user_data: dict[str, Any], identity_email: str | None
) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    has_full_name = not _blank(user_data.get("full_name"))
    has_split_name = not _blank(user_data.get("first_name")) and not _blank(
        user_data.get("last_name")
    )
    if not (has_full_name or has_split_name):
        errors.append(_missing("full_name", "Name is required"))
    if not identity_email and _blank(user_data.get("email")):
        errors.append(_missing("email", "Email is required"))
    return errors


def _validate_teacher_details(user_data: dict[str, Any]) -> list[dict[str, str]]:
    teacher = user_data.get(_TEACHER_PROFILE_KEY) or {}
    errors: list[dict[str, str]] = []

    subjects = [s for s in teacher.get("subject") or [] if not _blank(s)]
    if not subjects:
        errors.append(_missing("teacher_profile.subject", "Add at least one subject"))
    for name in _TEACHER_TEXT_FIELDS:
        if _blank(teacher.get(name)):
            errors.append(_missing(f"teacher_profile.{name}", f"{name.capitalize()} is required"))

    nested = (
        ("experiences", SubRecordKind.EXPERIENCE),
        ("educations", SubRecordKind.EDUCATION),
    )
    for key, kind in nested:
        for index, entry in enumerate(teacher.get(key) or []):
            for name in missing_required_fields(kind, entry):
                errors.append(
                    _missing(f"teacher_profile.{key}[{index}].{name}", f"{name} is required")
                )
    return errors


def validate_step(
    step: StepId,
    user_data: dict[str, Any],
    *,
    identity_email: str | None = None,
) -> list[dict[str, str]]:
    """Check the required fields of one step against merged user data.

    Args:
        step: Step being submitted.
        user_data: Draft user data with the submission merged in.
        identity_email: Email supplied by the identity provider; when present
            the email field is not required (and not user-editable).

    Returns:
        Field-level error details; empty when the step may be submitted.
    """
    if step is StepId.USER_TYPE:
        return _validate_user_type(user_data)
    if step is StepId.PROFILE_DETAILS:
        return _validate_profile_details(user_data, identity_email)
    if step is StepId.TEACHER_DETAILS:
        return _validate_teacher_details(user_data)
    return []


# =============================================================================
# Transitions
# =============================================================================


def next_step(step: StepId, user_type: str | None) -> StepId:
    """Look up the step after ``step`` for a user type.

    Raises:
        InvalidStateError: If the table has no transition for the pair
            (e.g. teacher-details for a student draft).
    """
    try:
        return SUBMIT_TRANSITIONS[(step, user_type or "")]
    except KeyError:
        raise InvalidStateError(
            f"No onboarding step follows '{step.value}' for user type '{user_type}'"
        ) from None


def submit(
    draft: Draft,
    step: StepId,
    payload: dict[str, Any],
    *,
    identity_email: str | None = None,
) -> Transition:
    """Apply a step submission to a draft.

    The input draft is not mutated.

    Args:
        draft: Current draft.
        step: Step the client claims to be submitting.
        payload: Fields sent with the submission.
        identity_email: Email from the identity provider, if any.

    Returns:
        Transition carrying the merged draft and the next step.

    Raises:
        InvalidStateError: If step is not the draft's current step, or the
            draft is already complete.
        ValidationError: If required fields for the step are missing.
    """
    if draft.current_step is StepId.COMPLETE:
        raise InvalidStateError("Onboarding is already complete")
    if step is not draft.current_step:
        raise InvalidStateError(
            f"Expected step '{draft.current_step.value}', got '{step.value}'"
        )

    merged = merge_user_data(draft.user_data, payload)
    errors = validate_step(step, merged, identity_email=identity_email)
    if errors:
        raise ValidationError("Required onboarding fields are missing", details=errors)

    return Transition(
        draft=Draft(current_step=step, user_data=merged),
        next_step=next_step(step, merged.get("user_type")),
    )


def back(draft: Draft) -> Draft:
    """Move a draft one form step back, keeping everything entered so far.

    Raises:
        InvalidStateError: From the first step or from complete.
    """
    previous = BACK_TRANSITIONS.get(draft.current_step)
    if previous is None:
        raise InvalidStateError(f"Cannot go back from '{draft.current_step.value}'")
    return replace(draft, current_step=previous)


# =============================================================================
# Progress
# =============================================================================


def active_steps(draft: Draft) -> list[StepId]:
    """Steps to show for the draft's path.

    On the first step (or before a type is chosen) only the base steps are
    shown. COMPLETE is appended once the user is on a step that leads to it.
    """
    steps = list(_BASE_STEPS)
    user_type = draft.user_type
    if draft.current_step is StepId.USER_TYPE or user_type not in _TYPE_STEPS:
        return steps

    steps.extend(_TYPE_STEPS[user_type])
    leads_to_complete = (
        SUBMIT_TRANSITIONS.get((draft.current_step, user_type)) is StepId.COMPLETE
    )
    if draft.current_step is StepId.COMPLETE or leads_to_complete:
        steps.append(StepId.COMPLETE)
    return steps


def progress_percent(draft: Draft) -> int:
    """Position of the current step within the active steps, 0-100."""
    steps = active_steps(draft)
    if draft.current_step in steps:
        index = steps.index(draft.current_step)
    else:
        index = steps.index(StepId.PROFILE_DETAILS)
    if len(steps) <= 1:
        return 0
    return round(index / (len(steps) - 1) * 100)

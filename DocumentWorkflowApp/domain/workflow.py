"""Document lifecycle rules: transition table, field ownership and data merge.

Pure functions and constants only; persistence lives in
``domain.services.workflow_service``.

    AWAITING_INPUT --submit--> SUBMITTED --approve--> APPROVED_BY_TEACHER --finalize--> COMPLETED
                                 |    ^
                          reject |    | submit
                                 v    |
                               SENT_BACK
"""

from dataclasses import dataclass
from typing import Any, Mapping

from rest_framework.exceptions import ValidationError

from DocumentWorkflowApp.core.choices import DocumentStatus, FieldOwner, UserRole


class Action:
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    FINALIZE = "finalize"


@dataclass(frozen=True)
class Transition:
    """One row of the transition table.

    ``scope`` names the document attribute that must match the actor
    (``student_email`` for the target student, ``teacher_id`` for the
    creator) or is None when any holder of ``roles`` may act.
    """
    action: str
    sources: frozenset[str]
    target: str
    roles: frozenset[str]
    scope: str | None
    contributes: str | None = None


TRANSITIONS: dict[str, Transition] = {
    Action.SUBMIT: Transition(
        action=Action.SUBMIT,
        sources=frozenset({DocumentStatus.AWAITING_INPUT, DocumentStatus.SENT_BACK}),
        target=DocumentStatus.SUBMITTED,
        roles=frozenset({UserRole.STUDENT}),
        scope="student_email",
        contributes=FieldOwner.STUDENT,
    ),
    Action.REJECT: Transition(
        action=Action.REJECT,
        sources=frozenset({DocumentStatus.SUBMITTED}),
        target=DocumentStatus.SENT_BACK,
        roles=frozenset({UserRole.TEACHER, UserRole.CURATOR}),
        scope="teacher_id",
    ),
    Action.APPROVE: Transition(
        action=Action.APPROVE,
        sources=frozenset({DocumentStatus.SUBMITTED}),
        target=DocumentStatus.APPROVED_BY_TEACHER,
        roles=frozenset({UserRole.TEACHER, UserRole.CURATOR}),
        scope="teacher_id",
        contributes=FieldOwner.TEACHER,
    ),
    Action.FINALIZE: Transition(
        action=Action.FINALIZE,
        sources=frozenset({DocumentStatus.APPROVED_BY_TEACHER}),
        target=DocumentStatus.COMPLETED,
        roles=frozenset({UserRole.CURATOR}),
        scope=None,
    ),
}

TERMINAL_STATES = frozenset({DocumentStatus.COMPLETED})
CREATOR_ROLES = frozenset({UserRole.TEACHER, UserRole.CURATOR})


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def can_transition(status: str, action: str) -> bool:
    """True if ``action`` is defined from ``status``."""
    transition = TRANSITIONS.get(action)
    return bool(transition and status in transition.sources)


def allowed_actions(status: str) -> list[str]:
    return [name for name, t in TRANSITIONS.items() if status in t.sources]


def merge_data(existing: Mapping[str, Any] | None, incoming: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow, last-write-wins merge: incoming keys overwrite, others are kept."""
    merged = dict(existing or {})
    merged.update(incoming or {})
    return merged


def check_field_ownership(slots: Mapping[str, str], data: Mapping[str, Any], owner: str) -> None:
    """Reject keys that are not template slots or belong to another role.

    Raises:
        ValidationError: mapping of offending field name to reason.
    """
    errors = {}
    for key in data:
        declared = slots.get(key)
        if declared is None:
            errors[key] = "Unknown field for this template."
        elif declared != owner:
            errors[key] = f"Field is filled in by the {FieldOwner(declared).label.lower()}."
    if errors:
        raise ValidationError({"data": errors})


def missing_fields(slots: Mapping[str, str], data: Mapping[str, Any]) -> list[str]:
    """Slot names that still have no value."""
    return [name for name in slots if name not in (data or {})]

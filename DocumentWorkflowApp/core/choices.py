"""Typed enumerations (TextChoices) for user roles, template field owners, and document states."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    STUDENT = "STUDENT", "Student"
    TEACHER = "TEACHER", "Teacher"
    CURATOR = "CURATOR", "Curator"

class FieldOwner(models.TextChoices):
    """Role responsible for supplying a template input field."""
    STUDENT = "STUDENT", "Student"
    TEACHER = "TEACHER", "Teacher"

class DocumentStatus(models.TextChoices):
    """Lifecycle states for a workflow document."""
    AWAITING_INPUT = "AWAITING_INPUT", "Awaiting input"
    SUBMITTED = "SUBMITTED", "Submitted"
    SENT_BACK = "SENT_BACK", "Sent back for revision"
    APPROVED_BY_TEACHER = "APPROVED_BY_TEACHER", "Approved by teacher"
    COMPLETED = "COMPLETED", "Completed"

class ReviewAction(models.TextChoices):
    """Decision a reviewer takes on a submitted document."""
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


# Labels written by earlier revisions of the service, read-side only.
LEGACY_STATUS_ALIASES: dict[str, str] = {
    "PENDING": DocumentStatus.AWAITING_INPUT,
    "NEW": DocumentStatus.AWAITING_INPUT,
    "Ожидает заполнения": DocumentStatus.AWAITING_INPUT,
    "ON_REVIEW": DocumentStatus.SUBMITTED,
    "UNDER_REVIEW": DocumentStatus.SUBMITTED,
    "На проверке": DocumentStatus.SUBMITTED,
    "REJECTED": DocumentStatus.SENT_BACK,
    "Отклонен": DocumentStatus.SENT_BACK,
    "APPROVED": DocumentStatus.APPROVED_BY_TEACHER,
    "READY_FOR_CURATOR": DocumentStatus.APPROVED_BY_TEACHER,
    "Одобрен преподавателем": DocumentStatus.APPROVED_BY_TEACHER,
    "DONE": DocumentStatus.COMPLETED,
    "APPROVED_BY_CURATOR": DocumentStatus.COMPLETED,
    "Одобрен куратором": DocumentStatus.COMPLETED,
}


def status_from_storage(value: str | None) -> str | None:
    """Map a stored status label (current or legacy) onto DocumentStatus."""
    if value is None or value in DocumentStatus.values:
        return value
    try:
        return DocumentStatus(LEGACY_STATUS_ALIASES[value])
    except KeyError:
        raise ValueError(f"Unknown document status: {value!r}") from None


def storage_labels(*statuses: str) -> list[str]:
    """Every stored label (canonical and legacy) that reads back as one of ``statuses``."""
    wanted = {str(s) for s in statuses}
    return sorted(wanted) + sorted(label for label, canon in LEGACY_STATUS_ALIASES.items() if canon in wanted)

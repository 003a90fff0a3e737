"""Domain service functions for the document workflow.

Enforces role/ownership rules:
- Teachers (and curators) create documents for a registered student.
- Only the target student submits; only the creator approves or rejects;
  any curator finalizes.
- Each step may only write the template fields owned by the acting side.
State transitions (see ``domain.workflow.TRANSITIONS``):
    AWAITING_INPUT -> SUBMITTED -> APPROVED_BY_TEACHER -> COMPLETED
    SUBMITTED -> SENT_BACK -> SUBMITTED (resubmission)
Every transition is a single conditional UPDATE guarded by id, expected
status, owner and last-modified time, so a lost race updates zero rows
and is reported as InvalidState instead of being applied twice.
"""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from DocumentWorkflowApp.core.access import Principal, authorize
from DocumentWorkflowApp.core.choices import FieldOwner, ReviewAction, UserRole, storage_labels
from DocumentWorkflowApp.core.exceptions import DocumentNotReady, InvalidState
from DocumentWorkflowApp.core.validators import validate_comment, validate_field_values, validate_xml_text
from DocumentWorkflowApp.documents.models import Document
from DocumentWorkflowApp.domain import workflow
from DocumentWorkflowApp.domain.workflow import Action
from DocumentWorkflowApp.templating.registry import DocumentTemplate, get_registry

logger = logging.getLogger(__name__)

User = get_user_model()


def _template_of(document: Document) -> DocumentTemplate:
    return DocumentTemplate.from_snapshot(document.template_snapshot)

def _scope_filter(actor: Principal, transition: workflow.Transition) -> dict[str, Any]:
    """Row filter tying the document to the acting principal."""
    if transition.scope == "student_email":
        return {"student_email": actor.email}
    if transition.scope == "teacher_id":
        return {"teacher_id": actor.id}
    return {}

def _checked_values(data: dict[str, Any] | None) -> dict[str, Any]:
    """Payload as a flat name -> scalar mapping, or ValidationError."""
    data = data or {}
    try:
        validate_field_values(data)
    except DjangoValidationError as exc:
        raise ValidationError({"data": exc.messages}) from exc
    return data

def _load(document_id: int, scope: dict[str, Any]) -> Document:
    document = Document.objects.filter(pk=document_id, **scope).first()
    if document is None:
        raise NotFound("Document not found.")
    return document

@transaction.atomic
def create_document(
    actor: Principal,
    template_name: str,
    student_email: str,
    title: str,
    teacher_data: dict[str, Any] | None = None,
) -> Document:
    """Create a document awaiting the student's input (teacher or curator).

    Args:
        actor: Creator; becomes the reviewer.
        template_name: Registered template name.
        student_email: Email of an existing student account.
        title: Document title.
        teacher_data: Optional teacher-owned field values filled in up front.

    Raises:
        PermissionDenied: Actor is not a teacher or curator.
        ValidationError: Unknown template, target is not a student, or
            ``teacher_data`` writes non-teacher fields.
        NotFound: No account with ``student_email``.
    """
    authorize(actor, workflow.CREATOR_ROLES)
    template = get_registry().get(template_name)
    if template is None:
        raise ValidationError({"template_name": [f"Unknown template {template_name!r}."]})
    student = User.objects.filter(email=student_email).first()
    if student is None:
        raise NotFound(f"Student with email {student_email} not found.")
    if student.role != UserRole.STUDENT:
        raise ValidationError({"student_email": ["Documents can only be addressed to students."]})

    try:
        validate_xml_text(title)
    except DjangoValidationError as exc:
        raise ValidationError({"title": exc.messages}) from exc
    teacher_data = _checked_values(teacher_data)
    workflow.check_field_ownership(template.slots(), teacher_data, FieldOwner.TEACHER)
    document = Document.objects.create(
        title=title,
        template_name=template.name,
        template_snapshot=template.to_snapshot(),
        student_email=student.email,
        teacher_id=actor.id,
        submitted_data=workflow.merge_data({}, teacher_data),
    )
    logger.info(
        "Document id=%s (%s) created by user id=%s for %s",
        document.id, template.name, actor.id, student.email,
    )
    return document

def apply_transition(
    actor: Principal,
    document: Document,
    action: str,
    data: dict[str, Any] | None = None,
    comment: str = "",
) -> Document:
    """Apply ``action`` to an already loaded ``document``.

    ``document`` is the caller's view of the row; the UPDATE only succeeds
    if the stored row still has that status, ``updated_at`` and the actor's
    ownership.

    Raises:
        PermissionDenied: Actor's role may not perform ``action``.
        NotFound: Document outside the actor's scope (or gone).
        InvalidState: ``action`` not defined from the current status, or the
            row changed since it was loaded.
        ValidationError: Payload writes fields the actor does not own.
    """
    transition = workflow.TRANSITIONS[action]
    authorize(actor, transition.roles)
    scope = _scope_filter(actor, transition)
    if any(getattr(document, key) != value for key, value in scope.items()):
        raise NotFound("Document not found.")
    if not workflow.can_transition(document.status, action):
        raise InvalidState(document.status)

    data = _checked_values(data)
    if data and transition.contributes is None:
        raise ValidationError({"data": ["This action does not accept field values."]})
    if transition.contributes:
        workflow.check_field_ownership(_template_of(document).slots(), data, transition.contributes)

    expected_status = document.status
    merged = workflow.merge_data(document.submitted_data, data)
    review_comment = comment.strip() if action == Action.REJECT else ""
    now = timezone.now()

    # updated_at pins the payload ``merged`` was built from
    updated = Document.objects.filter(
        pk=document.pk,
        status__in=storage_labels(expected_status),
        updated_at=document.updated_at,
        **scope,
    ).update(
        status=transition.target,
        submitted_data=merged,
        review_comment=review_comment,
        updated_at=now,
    )
    if not updated:
        current = Document.objects.filter(pk=document.pk, **scope).values_list("status", flat=True).first()
        logger.warning(
            "Transition %s on document id=%s lost a race (expected %s, found %s)",
            action, document.pk, expected_status, current,
        )
        if current is None:
            raise NotFound("Document not found.")
        raise InvalidState(current)

    document.status = transition.target
    document.submitted_data = merged
    document.review_comment = review_comment
    document.updated_at = now
    logger.info(
        "Document id=%s %s -> %s by user id=%s (%s)",
        document.pk, expected_status, transition.target, actor.id, action,
    )
    return document

def submit(actor: Principal, document_id: int, data: dict[str, Any]) -> Document:
    """Student fills in their fields and hands the document to the teacher.

    An empty payload is accepted only when student fields were filled before
    (resubmitting unchanged values after a rejection).
    """
    authorize(actor, workflow.TRANSITIONS[Action.SUBMIT].roles)
    document = _load(document_id, {"student_email": actor.email})
    if not data:
        student_fields = _template_of(document).fields_owned_by(FieldOwner.STUDENT)
        if not any(name in document.submitted_data for name in student_fields):
            raise ValidationError({"data": ["At least one field value is required."]})
    return apply_transition(actor, document, Action.SUBMIT, data=data)

def approve(actor: Principal, document_id: int, data: dict[str, Any] | None = None) -> Document:
    """Creator accepts the submission, optionally adding teacher-owned fields."""
    authorize(actor, workflow.TRANSITIONS[Action.APPROVE].roles)
    document = _load(document_id, {"teacher_id": actor.id})
    return apply_transition(actor, document, Action.APPROVE, data=data)

def reject(actor: Principal, document_id: int, comment: str) -> Document:
    """Creator sends the submission back with a mandatory comment."""
    authorize(actor, workflow.TRANSITIONS[Action.REJECT].roles)
    try:
        validate_comment(comment)
    except DjangoValidationError as exc:
        raise ValidationError({"comment": exc.messages}) from exc
    document = _load(document_id, {"teacher_id": actor.id})
    return apply_transition(actor, document, Action.REJECT, comment=comment)

def review(
    actor: Principal,
    document_id: int,
    action: str,
    data: dict[str, Any] | None = None,
    comment: str = "",
) -> Document:
    """Dispatch a review decision (``approve`` or ``reject``)."""
    if action == ReviewAction.APPROVE:
        return approve(actor, document_id, data)
    if action == ReviewAction.REJECT:
        if data:
            raise ValidationError({"data": ["Field values cannot be sent with a rejection."]})
        return reject(actor, document_id, comment)
    raise ValidationError({"action": [f"Action must be one of: {', '.join(ReviewAction.values)}."]})

def finalize(actor: Principal, document_id: int) -> Document:
    """Curator completes a teacher-approved document (terminal)."""
    authorize(actor, workflow.TRANSITIONS[Action.FINALIZE].roles)
    document = get_document(actor, document_id)
    return apply_transition(actor, document, Action.FINALIZE)

def documents_for(actor: Principal, include_history: bool = False) -> QuerySet[Document]:
    """The caller's role-scoped document list."""
    return Document.objects.visible_to(actor, include_history=include_history).select_related("teacher")

def get_document(actor: Principal, document_id: int) -> Document:
    """One document from the caller's view (students see their full history)."""
    document = documents_for(actor, include_history=True).filter(pk=document_id).first()
    if document is None:
        raise NotFound("Document not found.")
    return document

def get_downloadable(actor: Principal, document_id: int) -> Document:
    """Document ready for rendering: creator or curator, terminal status only.

    Raises:
        PermissionDenied: Actor is a student.
        NotFound: Outside the actor's view.
        DocumentNotReady: Not completed yet.
    """
    authorize(actor, workflow.CREATOR_ROLES)
    document = get_document(actor, document_id)
    if not workflow.is_terminal(document.status):
        raise DocumentNotReady(document.status)
    return document

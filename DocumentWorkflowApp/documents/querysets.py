"""Custom querysets encapsulating role-based visibility for documents."""

from typing import Self

from django.db.models import QuerySet

from DocumentWorkflowApp.core.choices import DocumentStatus, UserRole, storage_labels

STUDENT_EDITABLE = (DocumentStatus.AWAITING_INPUT, DocumentStatus.SENT_BACK)
CURATOR_VISIBLE = (DocumentStatus.APPROVED_BY_TEACHER, DocumentStatus.COMPLETED)


class DocumentQuerySet(QuerySet):
    """QuerySet helpers for the per-role document views."""

    def for_student(self, principal, include_history: bool = False) -> Self:
        """Documents addressed to the student.

        Only those waiting for the student's input unless ``include_history``.
        """
        qs = self.filter(student_email=principal.email)
        if not include_history:
            qs = qs.filter(status__in=storage_labels(*STUDENT_EDITABLE))
        return qs

    def for_teacher(self, principal) -> Self:
        """Documents the user created, any status."""
        return self.filter(teacher_id=principal.id)

    def for_curator(self) -> Self:
        """Documents approved by a teacher or already completed."""
        return self.filter(status__in=storage_labels(*CURATOR_VISIBLE))

    def visible_to(self, principal, include_history: bool = False) -> Self:
        """Role-scoped view:
        - Student: documents addressed to them
        - Teacher: documents they created
        - Curator: approved/completed documents plus those they created
        """
        role = getattr(principal, "role", None)
        if role == UserRole.STUDENT:
            return self.for_student(principal, include_history=include_history)
        if role == UserRole.TEACHER:
            return self.for_teacher(principal)
        if role == UserRole.CURATOR:
            return self.for_curator() | self.for_teacher(principal)
        return self.none()

"""Workflow domain model: Document."""

from django.conf import settings
from django.db import models

from DocumentWorkflowApp.core.choices import DocumentStatus
from DocumentWorkflowApp.documents.fields import DocumentStatusField
from DocumentWorkflowApp.documents.querysets import DocumentQuerySet

User = settings.AUTH_USER_MODEL

class Document(models.Model):
    """A templated document travelling student -> teacher -> curator.

    Fields:
        title: Human readable title given by the creator.
        template_name: Name of the template it was created from.
        template_snapshot: Copy of the template at creation time (rendering source).
        student_email: Target student; the only account that may fill student fields.
        teacher: Creator and reviewer.
        status: DocumentStatus value.
        submitted_data: Field name -> value, merged across workflow steps.
        review_comment: Reason given on the last rejection; cleared by the next step.
        created_at / updated_at: Timestamps.
    """
    title = models.CharField(max_length=200)
    template_name = models.CharField(max_length=100)
    template_snapshot = models.JSONField()
    student_email = models.EmailField(db_index=True)
    teacher = models.ForeignKey(User, on_delete=models.PROTECT, related_name="created_documents")
    status = DocumentStatusField(db_index=True)
    submitted_data = models.JSONField(default=dict, blank=True)
    review_comment = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DocumentQuerySet.as_manager()

    class Meta:
        ordering = ["-updated_at", "-id"]

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk}, {DocumentStatus(self.status).label})"

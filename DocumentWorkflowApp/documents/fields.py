"""Model field storing DocumentStatus, tolerant of labels written by older revisions."""

from django.db import models

from DocumentWorkflowApp.core.choices import DocumentStatus, status_from_storage


class DocumentStatusField(models.CharField):
    """CharField restricted to DocumentStatus; legacy labels are mapped on read.

    Only rows coming back from the database are translated. Query parameters
    go through untouched so ``status__in=storage_labels(...)`` still matches
    rows that carry an old spelling.
    """

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("max_length", 32)
        kwargs.setdefault("choices", DocumentStatus.choices)
        kwargs.setdefault("default", DocumentStatus.AWAITING_INPUT)
        super().__init__(*args, **kwargs)

    def from_db_value(self, value, expression, connection):
        return status_from_storage(value)

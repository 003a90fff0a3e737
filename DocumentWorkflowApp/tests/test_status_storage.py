"""Status labels written by older revisions are read back as current statuses."""

import pytest
from django.db import connection

from DocumentWorkflowApp.core.choices import DocumentStatus, status_from_storage, storage_labels
from DocumentWorkflowApp.documents.models import Document
from DocumentWorkflowApp.domain.services import workflow_service
from DocumentWorkflowApp.tests.conftest import principal_of


@pytest.mark.parametrize("stored, expected", [
    ("AWAITING_INPUT", DocumentStatus.AWAITING_INPUT),
    ("PENDING", DocumentStatus.AWAITING_INPUT),
    ("ON_REVIEW", DocumentStatus.SUBMITTED),
    ("REJECTED", DocumentStatus.SENT_BACK),
    ("Одобрен преподавателем", DocumentStatus.APPROVED_BY_TEACHER),
    ("DONE", DocumentStatus.COMPLETED),
    (None, None),
])
def test_status_from_storage(stored, expected):
    assert status_from_storage(stored) == expected


def test_unknown_label_is_an_error():
    with pytest.raises(ValueError):
        status_from_storage("ARCHIVED")


def test_storage_labels_include_legacy_spellings():
    labels = storage_labels(DocumentStatus.SENT_BACK)
    assert labels[0] == DocumentStatus.SENT_BACK
    assert {"REJECTED", "Отклонен"} <= set(labels)


def _force_status(document, label):
    with connection.cursor() as cursor:
        cursor.execute(f"UPDATE {Document._meta.db_table} SET status = %s WHERE id = %s", [label, document.id])


@pytest.mark.django_db
def test_legacy_row_is_visible_and_transitions(teacher, student):
    document = workflow_service.create_document(principal_of(teacher), "LeaveRequest", student.email, "Old")
    _force_status(document, "PENDING")

    loaded = Document.objects.get(pk=document.id)
    assert loaded.status == DocumentStatus.AWAITING_INPUT
    assert [d.id for d in workflow_service.documents_for(principal_of(student))] == [document.id]

    submitted = workflow_service.submit(principal_of(student), document.id, {"LastName": "Ivanova"})
    assert submitted.status == DocumentStatus.SUBMITTED
    assert Document.objects.values_list("status", flat=True).get(pk=document.id) == DocumentStatus.SUBMITTED


@pytest.mark.django_db
def test_legacy_approved_row_reaches_curator(teacher, student, curator):
    document = workflow_service.create_document(principal_of(teacher), "LeaveRequest", student.email, "Old")
    _force_status(document, "APPROVED")

    c = principal_of(curator)
    assert [d.id for d in workflow_service.documents_for(c)] == [document.id]
    assert Document.objects.filter(status="APPROVED").count() == 1

    finalized = workflow_service.finalize(c, document.id)
    assert finalized.status == DocumentStatus.COMPLETED
    assert Document.objects.values_list("status", flat=True).get(pk=document.id) == DocumentStatus.COMPLETED

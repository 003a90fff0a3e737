import io
import zipfile

import pytest

from DocumentWorkflowApp.core.choices import DocumentStatus
from DocumentWorkflowApp.tests.conftest import login

pytestmark = pytest.mark.django_db

def create(client, student, **extra):
    payload = {"template_name": "LeaveRequest", "student_email": student.email, "title": "Leave", **extra}
    return client.post("/api/documents/", payload, format="json")

def test_document_lifecycle_over_http(teacher, student, curator, leave_fields):
    t_client, s_client, c_client = login(teacher), login(student), login(curator)

    r = create(t_client, student)
    assert r.status_code == 201
    doc_id = r.data["document_id"]
    assert r.data["document"]["status"] == DocumentStatus.AWAITING_INPUT
    assert r.data["document"]["allowed_actions"] == ["submit"]

    mine = s_client.get("/api/documents/mine/")
    assert [d["id"] for d in mine.data["results"]] == [doc_id]

    r = s_client.put(f"/api/documents/{doc_id}/submit/", {"data": leave_fields}, format="json")
    assert r.status_code == 200
    assert r.data["document"]["status"] == DocumentStatus.SUBMITTED
    assert r.data["document"]["missing_fields"] == ["OrderNumber", "OrderDate"]
    assert s_client.get("/api/documents/mine/").data["count"] == 0
    assert s_client.get("/api/documents/mine/?history=true").data["count"] == 1

    assert c_client.get("/api/documents/mine/").data["count"] == 0

    r = t_client.put(
        f"/api/documents/{doc_id}/review/",
        {"action": "approve", "data": {"OrderNumber": "42", "OrderDate": "2024-01-15"}},
        format="json",
    )
    assert r.status_code == 200
    assert r.data["document"]["status"] == DocumentStatus.APPROVED_BY_TEACHER
    assert r.data["document"]["missing_fields"] == []

    assert [d["id"] for d in c_client.get("/api/documents/mine/").data["results"]] == [doc_id]
    r = t_client.get(f"/api/documents/{doc_id}/download/")
    assert r.status_code == 403
    assert r.data["error"] == "document_not_ready"
    assert r.data["current_status"] == DocumentStatus.APPROVED_BY_TEACHER

    r = c_client.put(f"/api/documents/{doc_id}/finalize/")
    assert r.status_code == 200
    assert r.data["document"]["status"] == DocumentStatus.COMPLETED
    assert r.data["document"]["allowed_actions"] == []

    r = t_client.get(f"/api/documents/{doc_id}/download/")
    assert r.status_code == 200
    assert r["Content-Type"].startswith("application/vnd.openxmlformats")
    assert r["Content-Disposition"] == f'attachment; filename="LeaveRequest-{doc_id}.docx"'
    with zipfile.ZipFile(io.BytesIO(r.content)) as archive:
        body = archive.read("word/document.xml").decode("utf-8")
    assert "Ivanova" in body and "NOT FILLED" not in body

    r = c_client.get(f"/api/documents/{doc_id}/download/?format=txt")
    assert r.status_code == 200
    assert r["Content-Type"].startswith("text/plain")
    assert "Approved by order No. 42 dated 2024-01-15." in r.content.decode("utf-8")

def test_reject_requires_comment_and_resubmit(teacher, student, leave_fields):
    t_client, s_client = login(teacher), login(student)
    doc_id = create(t_client, student).data["document_id"]
    s_client.put(f"/api/documents/{doc_id}/submit/", {"data": {"LastName": "Ivanova"}}, format="json")

    r = t_client.put(f"/api/documents/{doc_id}/review/", {"action": "reject"}, format="json")
    assert r.status_code == 400
    assert "comment" in r.data["errors"]

    r = t_client.put(f"/api/documents/{doc_id}/review/", {"action": "reject", "comment": "missing dates"}, format="json")
    assert r.status_code == 200
    assert r.data["document"]["status"] == DocumentStatus.SENT_BACK

    r = s_client.get(f"/api/documents/{doc_id}/")
    assert r.data["document"]["review_comment"] == "missing dates"

    r = s_client.put(f"/api/documents/{doc_id}/submit/", {"data": {"StartDate": "2024-01-01"}}, format="json")
    assert r.status_code == 200
    assert r.data["document"]["submitted_data"] == {"LastName": "Ivanova", "StartDate": "2024-01-01"}
    assert r.data["document"]["review_comment"] == ""

def test_invalid_state_echoes_current_status(teacher, student):
    t_client = login(teacher)
    doc_id = create(t_client, student).data["document_id"]
    r = t_client.put(f"/api/documents/{doc_id}/review/", {"action": "approve"}, format="json")
    assert r.status_code == 400
    assert r.data["error"] == "invalid_state"
    assert r.data["current_status"] == DocumentStatus.AWAITING_INPUT

def test_foreign_documents_are_not_found(teacher, other_teacher, student, other_student):
    doc_id = create(login(teacher), student).data["document_id"]
    r = login(other_student).put(f"/api/documents/{doc_id}/submit/", {"data": {"LastName": "X"}}, format="json")
    assert r.status_code == 404
    assert r.data["error"] == "not_found"
    assert login(other_teacher).get(f"/api/documents/{doc_id}/").status_code == 404
    assert login(other_student).get(f"/api/documents/{doc_id}/").status_code == 404

def test_role_gates(teacher, student, curator):
    s_client = login(student)
    assert create(s_client, student).status_code == 403
    doc_id = create(login(teacher), student).data["document_id"]
    assert s_client.put(f"/api/documents/{doc_id}/finalize/").status_code == 403
    assert s_client.get(f"/api/documents/{doc_id}/download/").status_code == 403
    assert login(teacher).put(f"/api/documents/{doc_id}/submit/", {"data": {"LastName": "X"}}, format="json").status_code == 403

def test_create_unknown_student_is_404(teacher):
    r = login(teacher).post(
        "/api/documents/",
        {"template_name": "LeaveRequest", "student_email": "ghost@example.com", "title": "X"},
        format="json",
    )
    assert r.status_code == 404

def test_submit_rejects_foreign_fields(teacher, student):
    doc_id = create(login(teacher), student).data["document_id"]
    r = login(student).put(f"/api/documents/{doc_id}/submit/", {"data": {"OrderNumber": "1"}}, format="json")
    assert r.status_code == 400
    assert "OrderNumber" in r.data["errors"]["data"]

def test_submit_rejects_non_scalar_values(teacher, student):
    doc_id = create(login(teacher), student).data["document_id"]
    r = login(student).put(f"/api/documents/{doc_id}/submit/", {"data": {"LastName": ["a", "b"]}}, format="json")
    assert r.status_code == 400
    assert r.data["error"] == "invalid"

def test_submit_rejects_control_characters(teacher, student):
    doc_id = create(login(teacher), student).data["document_id"]
    r = login(student).put(f"/api/documents/{doc_id}/submit/", {"data": {"LastName": "Iva\x01nov"}}, format="json")
    assert r.status_code == 400
    assert r.data["error"] == "invalid"
    r = login(student).get(f"/api/documents/{doc_id}/")
    assert r.data["document"]["status"] == DocumentStatus.AWAITING_INPUT

def test_create_rejects_control_characters_in_title(teacher, student):
    r = create(login(teacher), student, title="Le\x01ave")
    assert r.status_code == 400
    assert "title" in r.data["errors"]

def test_download_unknown_format(teacher, student, curator, leave_fields):
    t_client = login(teacher)
    doc_id = create(t_client, student).data["document_id"]
    login(student).put(f"/api/documents/{doc_id}/submit/", {"data": leave_fields}, format="json")
    t_client.put(f"/api/documents/{doc_id}/review/", {"action": "approve"}, format="json")
    login(curator).put(f"/api/documents/{doc_id}/finalize/")
    r = t_client.get(f"/api/documents/{doc_id}/download/?format=pdf")
    assert r.status_code == 400

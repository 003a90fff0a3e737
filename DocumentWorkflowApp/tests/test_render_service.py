import io
import zipfile
from datetime import datetime, timezone

import pytest
from model_bakery import baker

from DocumentWorkflowApp.core.choices import DocumentStatus
from DocumentWorkflowApp.domain.services import render_service
from DocumentWorkflowApp.templating.registry import get_registry

@pytest.fixture
def template():
    return get_registry().get("LeaveRequest")


def test_placeholders_mark_every_empty_slot(template):
    text = render_service.render_text(template, {"LastName": "Ivanova"}, "Leave").decode("utf-8")
    assert "Ivanova" in text
    assert "[NOT FILLED: FirstName (Student)]" in text
    assert "[NOT FILLED: OrderNumber (Teacher)]" in text
    assert "[NOT FILLED: LastName" not in text


def test_empty_string_value_is_not_a_placeholder(template):
    parts = render_service.segments(template, {"Reason": ""})
    reason = [s for s in parts if not s.missing and s.text == ""]
    assert reason
    assert not any("Reason" in s.text for s in parts if s.missing)


def test_literal_parts_are_verbatim(template):
    text = render_service.render_text(template, {}, "Leave").decode("utf-8")
    assert text.startswith("Leave\n=====\n\nTo the Dean of the Faculty\nfrom student ")


def test_text_render_is_byte_identical(template):
    data = {"LastName": "Ivanova", "OrderNumber": 42}
    assert render_service.render_text(template, data, "Leave") == render_service.render_text(template, data, "Leave")


def test_docx_render_is_byte_identical(template):
    data = {"LastName": "Ivanova", "Group": "CS-21"}
    created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    first = render_service.render_docx(template, data, "Leave", created_at=created)
    second = render_service.render_docx(template, data, "Leave", created_at=created)
    assert first == second


def test_docx_only_generation_time_varies(template):
    data = {"LastName": "Ivanova"}
    early = render_service.render_docx(template, data, "Leave", generated_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
    late = render_service.render_docx(template, data, "Leave", generated_at=datetime(2025, 5, 1, tzinfo=timezone.utc))

    def members(raw):
        with zipfile.ZipFile(io.BytesIO(raw)) as archive:
            return {name: archive.read(name) for name in archive.namelist()}

    a, b = members(early), members(late)
    assert a.keys() == b.keys()
    assert [name for name in a if a[name] != b[name]] == ["docProps/core.xml"]


def test_docx_highlights_placeholders(template):
    raw = render_service.render_docx(template, {}, "Leave")
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        body = archive.read("word/document.xml").decode("utf-8")
        stamps = {info.date_time for info in archive.infolist()}
    assert "[NOT FILLED: LastName (Student)]" in body
    assert 'w:highlight w:val="yellow"' in body
    assert stamps == {render_service.FIXED_ZIP_TIME}


def test_booleans_render_as_words(template):
    parts = render_service.segments(template, {"Reason": True})
    assert any(s.text == "yes" for s in parts)


@pytest.mark.django_db
def test_render_document_uses_snapshot_not_current_registry(template):
    snapshot = template.to_snapshot()
    snapshot["parts"] = [{"text": "Old wording for "}, {"field": "LastName", "owner": "STUDENT"}]
    document = baker.make(
        "documents.Document",
        title="Legacy",
        template_name="LeaveRequest",
        template_snapshot=snapshot,
        submitted_data={"LastName": "Ivanova"},
        status=DocumentStatus.COMPLETED,
    )
    rendered = render_service.render_document(document, render_service.TEXT)
    assert rendered.filename == f"LeaveRequest-{document.pk}.txt"
    assert rendered.content == b"Legacy\n======\n\nOld wording for Ivanova\n"

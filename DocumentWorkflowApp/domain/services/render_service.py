"""Render a document's template snapshot plus its field values.

Literal parts are emitted verbatim, filled slots are substituted, and empty
slots become a visible ``[NOT FILLED: <field> (<owner>)]`` marker. Output is
byte-identical for identical inputs; only ``generated_at`` may differ between
two renders of the same document.
"""

import io
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Mapping

from docx import Document as DocxDocument
from docx.enum.text import WD_COLOR_INDEX
from rest_framework.exceptions import ValidationError

from DocumentWorkflowApp.core.choices import FieldOwner
from DocumentWorkflowApp.documents.models import Document
from DocumentWorkflowApp.templating.registry import DocumentTemplate

logger = logging.getLogger(__name__)

DOCX = "docx"
TEXT = "txt"
FORMATS = (DOCX, TEXT)

CONTENT_TYPES = {
    DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    TEXT: "text/plain; charset=utf-8",
}

# Zip member timestamp; the default writer stamps the current time.
FIXED_ZIP_TIME = (1980, 1, 1, 0, 0, 0)
EPOCH = datetime(2000, 1, 1, tzinfo=dt_timezone.utc)


@dataclass(frozen=True)
class Segment:
    """A run of output text; ``missing`` marks an unfilled slot placeholder."""
    text: str
    missing: bool = False


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    content_type: str
    filename: str


def placeholder(field: str, owner: str) -> str:
    return f"[NOT FILLED: {field} ({FieldOwner(owner).label})]"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def segments(template: DocumentTemplate, data: Mapping[str, Any]) -> list[Segment]:
    """Walk template parts in order, substituting values or placeholders."""
    out = []
    for part in template.parts:
        if not part.is_slot:
            out.append(Segment(part.text))
        elif part.field in data:
            out.append(Segment(_format_value(data[part.field])))
        else:
            out.append(Segment(placeholder(part.field, part.owner), missing=True))
    return out


def _paragraphs(parts: list[Segment]) -> list[list[Segment]]:
    """Split segments into paragraphs on newlines inside literal text."""
    paragraphs: list[list[Segment]] = [[]]
    for segment in parts:
        lines = segment.text.split("\n")
        for i, line in enumerate(lines):
            if i:
                paragraphs.append([])
            if line:
                paragraphs[-1].append(Segment(line, segment.missing))
    return paragraphs


def render_text(
    template: DocumentTemplate,
    data: Mapping[str, Any],
    title: str,
    generated_at: datetime | None = None,
) -> bytes:
    """UTF-8 plain-text rendering."""
    body = "".join(s.text for s in segments(template, data))
    lines = [title, "=" * len(title), "", body.rstrip("\n")]
    if generated_at is not None:
        lines += ["", f"Generated: {generated_at.isoformat()}"]
    return ("\n".join(lines) + "\n").encode("utf-8")


def _utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        moment = moment.astimezone(dt_timezone.utc)
    return moment.replace(tzinfo=None)


def _normalize_zip(raw: bytes) -> bytes:
    """Rewrite the archive with fixed member timestamps, keeping member order."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(raw)) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            info = zipfile.ZipInfo(item.filename, date_time=FIXED_ZIP_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            dst.writestr(info, src.read(item.filename))
    return out.getvalue()


def render_docx(
    template: DocumentTemplate,
    data: Mapping[str, Any],
    title: str,
    created_at: datetime | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    """Word-processing rendering: heading, one paragraph per text line,
    unfilled placeholders bold and highlighted."""
    doc = DocxDocument()
    props = doc.core_properties
    props.title = title
    props.subject = template.name
    props.author = "Document Workflow"
    props.last_modified_by = "Document Workflow"
    props.revision = template.version
    props.created = _utc_naive(created_at or EPOCH)
    props.modified = _utc_naive(generated_at or created_at or EPOCH)

    doc.add_heading(title, level=1)
    for paragraph_segments in _paragraphs(segments(template, data)):
        paragraph = doc.add_paragraph()
        for segment in paragraph_segments:
            run = paragraph.add_run(segment.text)
            if segment.missing:
                run.bold = True
                run.font.highlight_color = WD_COLOR_INDEX.YELLOW

    buffer = io.BytesIO()
    doc.save(buffer)
    return _normalize_zip(buffer.getvalue())


def render_document(document: Document, fmt: str = DOCX, generated_at: datetime | None = None) -> RenderedDocument:
    """Render a stored document from its template snapshot and submitted data."""
    if fmt not in FORMATS:
        raise ValidationError({"format": [f"Format must be one of: {', '.join(FORMATS)}."]})
    template = DocumentTemplate.from_snapshot(document.template_snapshot)
    data = document.submitted_data or {}
    if fmt == DOCX:
        content = render_docx(template, data, document.title, document.created_at, generated_at)
    else:
        content = render_text(template, data, document.title, generated_at)
    logger.info("Rendered document id=%s as %s (%d bytes)", document.pk, fmt, len(content))
    return RenderedDocument(
        content=content,
        content_type=CONTENT_TYPES[fmt],
        filename=f"{document.template_name}-{document.pk}.{fmt}",
    )

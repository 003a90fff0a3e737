"""Document template definitions: loading, structural validation and snapshots.

A template is an ordered list of parts. A part is either literal text or a
named input slot owned by the role that has to fill it in. Definitions are
JSON files (one template per file) loaded once when the core app starts;
a malformed file stops the process with ``TemplateConfigError``.
"""

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from django.conf import settings

from DocumentWorkflowApp.core.choices import FieldOwner
from DocumentWorkflowApp.core.exceptions import TemplateConfigError

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).resolve().parent / "definitions"


@dataclass(frozen=True)
class TemplatePart:
    """Literal text (``text``) or an input slot (``field`` + ``owner``)."""
    text: str | None = None
    field: str | None = None
    owner: str | None = None
    label: str | None = None

    @property
    def is_slot(self) -> bool:
        return self.field is not None

    def to_dict(self) -> dict[str, Any]:
        if not self.is_slot:
            return {"text": self.text}
        data = {"field": self.field, "owner": self.owner}
        if self.label:
            data["label"] = self.label
        return data


@dataclass(frozen=True)
class DocumentTemplate:
    """Named, immutable document structure."""
    name: str
    title: str
    version: int = 1
    parts: tuple[TemplatePart, ...] = ()

    def slots(self) -> dict[str, str]:
        """Field name -> owner role, in first-appearance order."""
        owners: dict[str, str] = {}
        for part in self.parts:
            if part.is_slot:
                owners.setdefault(part.field, part.owner)
        return owners

    def labels(self) -> dict[str, str]:
        labels: dict[str, str] = {}
        for part in self.parts:
            if part.is_slot:
                labels.setdefault(part.field, part.label or part.field)
        return labels

    def fields_owned_by(self, owner: str) -> list[str]:
        return [name for name, role in self.slots().items() if role == owner]

    def to_snapshot(self) -> dict[str, Any]:
        """Serializable copy stored with each document for stable rendering."""
        return {
            "name": self.name,
            "title": self.title,
            "version": self.version,
            "parts": [part.to_dict() for part in self.parts],
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> "DocumentTemplate":
        return parse_template(data, source=f"snapshot of {data.get('name', '?')}")


def _parse_part(raw: Any, index: int, source: str) -> TemplatePart:
    where = f"{source}: part #{index}"
    if not isinstance(raw, dict):
        raise TemplateConfigError(f"{where} must be an object.")
    has_text = "text" in raw
    has_field = "field" in raw
    if has_text == has_field:
        raise TemplateConfigError(f"{where} must define exactly one of 'text' or 'field'.")
    if has_text:
        if not isinstance(raw["text"], str):
            raise TemplateConfigError(f"{where} text must be a string.")
        return TemplatePart(text=raw["text"])
    name = raw.get("field")
    if not isinstance(name, str) or not name.strip():
        raise TemplateConfigError(f"{where} field must have a non-empty name.")
    owner = raw.get("owner")
    if owner not in FieldOwner.values:
        raise TemplateConfigError(
            f"{where} field {name!r} has invalid owner {owner!r}; expected one of {FieldOwner.values}."
        )
    label = raw.get("label")
    if label is not None and not isinstance(label, str):
        raise TemplateConfigError(f"{where} label must be a string.")
    return TemplatePart(field=name, owner=owner, label=label)


def parse_template(data: Any, source: str = "template") -> DocumentTemplate:
    """Build a DocumentTemplate from its JSON form, validating structure."""
    if not isinstance(data, dict):
        raise TemplateConfigError(f"{source}: template must be an object.")
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise TemplateConfigError(f"{source}: template name is required.")
    raw_parts = data.get("parts")
    if not isinstance(raw_parts, list) or not raw_parts:
        raise TemplateConfigError(f"{source}: template {name!r} must have a non-empty 'parts' list.")
    version = data.get("version", 1)
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise TemplateConfigError(f"{source}: template {name!r} version must be a positive integer.")

    parts = tuple(_parse_part(raw, i, source) for i, raw in enumerate(raw_parts))
    owners: dict[str, str] = {}
    for part in parts:
        if not part.is_slot:
            continue
        previous = owners.setdefault(part.field, part.owner)
        if previous != part.owner:
            raise TemplateConfigError(
                f"{source}: field {part.field!r} is declared with owners {previous} and {part.owner}."
            )
    if not owners:
        raise TemplateConfigError(f"{source}: template {name!r} declares no input fields.")
    return DocumentTemplate(name=name, title=data.get("title") or name, version=version, parts=parts)


class TemplateRegistry:
    """Lookup of document templates by name."""

    def __init__(self, templates: list[DocumentTemplate]):
        self._templates: dict[str, DocumentTemplate] = {}
        for template in templates:
            if template.name in self._templates:
                raise TemplateConfigError(f"Duplicate template name: {template.name!r}")
            self._templates[template.name] = template

    @classmethod
    def from_directory(cls, directory: Path) -> "TemplateRegistry":
        directory = Path(directory)
        if not directory.is_dir():
            raise TemplateConfigError(f"Template directory not found: {directory}")
        templates = []
        for path in sorted(directory.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise TemplateConfigError(f"{path.name}: invalid JSON ({exc})") from exc
            templates.append(parse_template(data, source=path.name))
        if not templates:
            raise TemplateConfigError(f"No template definitions in {directory}")
        logger.info("Loaded %d document templates from %s", len(templates), directory)
        return cls(templates)

    def get(self, name: str) -> DocumentTemplate | None:
        return self._templates.get(name)

    def names(self) -> list[str]:
        return sorted(self._templates)

    def __iter__(self) -> Iterator[DocumentTemplate]:
        return iter(self._templates[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._templates)


@lru_cache(maxsize=1)
def get_registry() -> TemplateRegistry:
    """Registry for the configured ``DOCUMENT_TEMPLATES_DIR``."""
    return TemplateRegistry.from_directory(getattr(settings, "DOCUMENT_TEMPLATES_DIR", DEFINITIONS_DIR))

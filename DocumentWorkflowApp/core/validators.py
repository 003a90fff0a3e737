"""Validation helpers for field-value payloads and review comments."""

import re
from typing import Any

from django.core.exceptions import ValidationError

SCALAR_TYPES = (str, int, float, bool)
MAX_VALUE_LENGTH = 2000

# Characters XML 1.0 cannot carry; python-docx refuses them when rendering.
XML_INCOMPATIBLE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

def validate_xml_text(text: str) -> None:
    """Reject control characters and lone surrogates that cannot be rendered."""
    if XML_INCOMPATIBLE.search(text):
        raise ValidationError("Text contains control characters that cannot be stored in a document.")

def validate_field_values(data: Any) -> None:
    """Ensure payload is a flat mapping of field name to a scalar leaf value."""
    if not isinstance(data, dict):
        raise ValidationError("Field values must be an object.")
    for key, value in data.items():
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("Field names must be non-empty strings.")
        if value is None or not isinstance(value, SCALAR_TYPES):
            raise ValidationError(f"Field {key!r} must be a string or a number.")
        if isinstance(value, str):
            if len(value) > MAX_VALUE_LENGTH:
                raise ValidationError(f"Field {key!r} exceeds {MAX_VALUE_LENGTH} characters.")
            if XML_INCOMPATIBLE.search(value):
                raise ValidationError(f"Field {key!r} contains control characters.")

def validate_comment(text: str) -> None:
    """Ensure a rejection comment has visible content."""
    if not text or not text.strip():
        raise ValidationError("A comment is required when sending a document back.")

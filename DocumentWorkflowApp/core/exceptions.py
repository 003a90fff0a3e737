"""API error types.

Unauthenticated, Forbidden, NotFound and InvalidInput map onto DRF's own
NotAuthenticated/AuthenticationFailed, PermissionDenied, NotFound and
ValidationError. The classes below cover the rest of the taxonomy; the
envelope they are rendered in lives in ``api.exceptions``.
"""

from django.core.exceptions import ImproperlyConfigured
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed, PermissionDenied


class Conflict(APIException):
    """A unique key (e.g. user email) is already taken."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class InvalidCredentials(AuthenticationFailed):
    """Login failed; identical for unknown email and wrong password."""
    default_detail = "Invalid email or password."
    default_code = "invalid_credentials"


class InvalidState(APIException):
    """Action is not legal for the document's current status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Action is not allowed in the current document status."
    default_code = "invalid_state"

    def __init__(self, current_status: str, detail: str | None = None):
        self.current_status = str(current_status)
        super().__init__(detail or f"Action is not allowed while the document is {self.current_status}.")


class DocumentNotReady(PermissionDenied):
    """Download requested before the document reached its terminal status."""
    default_detail = "Document is not ready for download."
    default_code = "document_not_ready"

    def __init__(self, current_status: str):
        self.current_status = str(current_status)
        super().__init__(f"Document is not ready for download while it is {self.current_status}.")


class TemplateConfigError(ImproperlyConfigured):
    """A document template definition is structurally invalid."""

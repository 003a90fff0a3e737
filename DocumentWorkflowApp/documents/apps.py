"""Documents app configuration."""

from django.apps import AppConfig

class DocumentsConfig(AppConfig):
    """AppConfig for the workflow documents (model, status field, visibility querysets)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "DocumentWorkflowApp.documents"
    label = "documents"

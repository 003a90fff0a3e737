"""Users app configuration."""

from django.apps import AppConfig

class UsersConfig(AppConfig):
    """AppConfig for accounts (custom user model keyed by email, with a role)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "DocumentWorkflowApp.users"
    label = "users"

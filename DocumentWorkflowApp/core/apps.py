"""Core app configuration and startup checks (signing secret, template definitions)."""

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import Warning, register

MIN_SECRET_LENGTH = 32

class CoreConfig(AppConfig):
    """AppConfig loading document templates and registering a signing-secret check."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "DocumentWorkflowApp.core"
    label = "core"

    def ready(self):
        """Load templates eagerly so a malformed definition stops startup."""
        from DocumentWorkflowApp.templating.registry import get_registry

        get_registry()

        @register()
        def jwt_secret_check(app_configs, **kwargs):
            if len(settings.JWT_SECRET) < MIN_SECRET_LENGTH:
                return [Warning(
                    f"JWT_SECRET is shorter than {MIN_SECRET_LENGTH} characters.",
                    hint="Use a long random value, e.g. `openssl rand -hex 32`.",
                    id="core.W001",
                )]
            return []

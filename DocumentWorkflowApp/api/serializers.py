"""Serializers for registration, login, role management, templates and documents."""

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError

from DocumentWorkflowApp.core.choices import DocumentStatus, FieldOwner, ReviewAction, UserRole
from DocumentWorkflowApp.core.validators import validate_comment, validate_field_values, validate_xml_text
from DocumentWorkflowApp.documents.models import Document
from DocumentWorkflowApp.domain import workflow
from DocumentWorkflowApp.templating.registry import DocumentTemplate

User = get_user_model()

class RegistrationSerializer(serializers.Serializer):
    """Input for self-registration; the role is always student."""
    name = serializers.CharField(max_length=150, help_text="Display name.")
    email = serializers.EmailField(max_length=150, help_text="Login email (case-sensitive).")
    password = serializers.CharField(write_only=True, trim_whitespace=False, help_text="User password (write‑only).")

    def validate_password(self, value: str) -> str:
        password_validation.validate_password(value)
        return value


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class UserSerializer(serializers.ModelSerializer):
    """Public, safe representation of a user."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "role"]


class RoleChangeSerializer(serializers.Serializer):
    """Curator request to change a user's role."""
    email = serializers.EmailField()
    new_role = serializers.CharField(help_text=f"One of: {', '.join(UserRole.values)}.")

    def validate_new_role(self, value: str) -> str:
        if value not in UserRole.values:
            raise serializers.ValidationError(f"Role must be one of: {', '.join(UserRole.values)}.")
        return value


class FieldValuesField(serializers.JSONField):
    """Flat mapping of template field name to a string/number value."""

    def __init__(self, **kwargs):
        kwargs.setdefault("validators", [validate_field_values])
        super().__init__(**kwargs)


class TemplateFieldSerializer(serializers.Serializer):
    name = serializers.CharField()
    label = serializers.CharField()
    owner = serializers.ChoiceField(choices=FieldOwner.choices)


class TemplateSerializer(serializers.Serializer):
    """Template summary with its fillable fields, for building input forms."""
    name = serializers.CharField()
    title = serializers.CharField()
    version = serializers.IntegerField()
    inputs = serializers.SerializerMethodField()

    def get_inputs(self, template: DocumentTemplate) -> list[dict]:
        labels = template.labels()
        rows = [
            {"name": name, "label": labels[name], "owner": owner}
            for name, owner in template.slots().items()
        ]
        return TemplateFieldSerializer(rows, many=True).data


class DocumentCreateSerializer(serializers.Serializer):
    """Input for creating a document addressed to a student."""
    template_name = serializers.CharField(max_length=100)
    student_email = serializers.EmailField()
    title = serializers.CharField(max_length=200, validators=[validate_xml_text])
    teacher_data = FieldValuesField(required=False, help_text="Teacher-owned field values filled up front.")


class DocumentReadSerializer(serializers.ModelSerializer):
    """Document with its merged field values, outstanding fields and next actions."""
    status_label = serializers.SerializerMethodField()
    missing_fields = serializers.SerializerMethodField()
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            "id", "title", "template_name", "student_email", "teacher", "status", "status_label",
            "submitted_data", "review_comment", "missing_fields", "allowed_actions",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_status_label(self, obj: Document) -> str:
        return DocumentStatus(obj.status).label

    def get_missing_fields(self, obj: Document) -> list[str]:
        template = DocumentTemplate.from_snapshot(obj.template_snapshot)
        return workflow.missing_fields(template.slots(), obj.submitted_data)

    def get_allowed_actions(self, obj: Document) -> list[str]:
        return workflow.allowed_actions(obj.status)


class SubmitSerializer(serializers.Serializer):
    """Student field values for the submit step."""
    data = FieldValuesField(required=False, default=dict)


class ReviewSerializer(serializers.Serializer):
    """Teacher decision: approve (optionally with teacher fields) or reject with a comment."""
    action = serializers.ChoiceField(choices=ReviewAction.choices)
    data = FieldValuesField(required=False, default=dict)
    comment = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs: dict) -> dict:
        if attrs["action"] == ReviewAction.REJECT:
            try:
                validate_comment(attrs.get("comment", ""))
            except DjangoValidationError as exc:
                raise serializers.ValidationError({"comment": exc.messages})
            if attrs.get("data"):
                raise serializers.ValidationError({"data": "Field values cannot be sent with a rejection."})
        return attrs

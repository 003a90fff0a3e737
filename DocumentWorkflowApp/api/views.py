"""REST API views for authentication, user roles, templates and the document workflow."""

from django.http import HttpResponse
from django.utils import timezone

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from DocumentWorkflowApp.api.mixins import PaginationMixin
from DocumentWorkflowApp.api.throttles import LoginRateThrottle
from DocumentWorkflowApp.core.permissions import IsCurator, IsStudent, IsTeacherOrCurator
from DocumentWorkflowApp.domain.services import identity_service, render_service, workflow_service
from DocumentWorkflowApp.templating.registry import get_registry
from DocumentWorkflowApp.api.serializers import (
    RegistrationSerializer,
    LoginSerializer,
    UserSerializer,
    RoleChangeSerializer,
    TemplateSerializer,
    DocumentCreateSerializer,
    DocumentReadSerializer,
    SubmitSerializer,
    ReviewSerializer,
)

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

STATE_RESPONSE = {
    400: OpenApiResponse(description="Invalid input, or action not allowed in the current status (`current_status`)."),
}


def ok(data: dict | None = None, status_code: int = status.HTTP_200_OK) -> Response:
    return Response({"success": True, **(data or {})}, status=status_code)


# ---------- Auth ----------
@extend_schema(
    tags=["Auth"],
    request=RegistrationSerializer,
    responses={
        201: OpenApiResponse(description="Registered as student; body carries the new `id`."),
        400: OpenApiResponse(description="Validation error."),
        409: OpenApiResponse(description="Email already registered."),
    },
    description="Register a new account. The role is always Student; curators promote users later.",
)
class RegistrationView(APIView):
    """User registration endpoint."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        ser = RegistrationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = identity_service.register(**ser.validated_data)
        return ok({"id": user.id, "role": user.role, "message": "Registration successful."}, status.HTTP_201_CREATED)


@extend_schema(
    tags=["Auth"],
    request=LoginSerializer,
    responses={
        200: OpenApiResponse(description="`token` (Bearer) and `role`."),
        401: OpenApiResponse(description="Invalid email or password."),
        429: OpenApiResponse(description="Too many requests / throttled."),
    },
)
class LoginView(APIView):
    """Exchange email and password for a signed access token."""
    permission_classes = [AllowAny]
    throttle_classes = [LoginRateThrottle]

    def post(self, request: Request) -> Response:
        ser = LoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        token, user = identity_service.login(ser.validated_data["email"], ser.validated_data["password"])
        return ok({"token": token, "role": user.role, "name": user.name})


@extend_schema(tags=["Auth"], responses={200: OpenApiResponse(description="Name and role from the token."), **AUTH_RESPONSES})
class GreetingView(APIView):
    """Echo the caller's identity as carried by the token."""
    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        principal = request.user
        return ok({"message": f"Hello, {principal.name}!", "name": principal.name, "role": principal.role})


# ---------- Users ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Users"],
        responses={200: UserSerializer(many=True), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["curator"]}},
    ),
    role=extend_schema(
        tags=["Users"],
        request=RoleChangeSerializer,
        responses={200: UserSerializer, 400: OpenApiResponse(description="Unknown role."), **AUTH_RESPONSES},
        description="Change a user's role. Takes effect at the user's next login.",
        extensions={"x-permissions": {"required_roles": ["curator"]}},
    ),
)
class UserViewSet(PaginationMixin, viewsets.GenericViewSet):
    """Curator-only account administration."""
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, IsCurator]

    def list(self, request: Request) -> Response:
        """List all accounts."""
        users = identity_service.list_users(request.user)
        return self.paginate_and_respond(users, UserSerializer)

    @action(detail=False, methods=["put"], url_path="role")
    def role(self, request: Request) -> Response:
        """Set the role of the account with the given email."""
        ser = RoleChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = identity_service.set_role(request.user, ser.validated_data["email"], ser.validated_data["new_role"])
        return ok({
            "message": f"Role of {user.email} updated to {user.role}.",
            "user": UserSerializer(user).data,
        })


# ---------- Templates ----------
@extend_schema(tags=["Templates"], responses={200: TemplateSerializer(many=True), **AUTH_RESPONSES})
class TemplateListView(APIView):
    """Registered document templates with their fields and owners."""
    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return ok({"results": TemplateSerializer(list(get_registry()), many=True).data})


# ---------- Documents ----------
@extend_schema_view(
    create=extend_schema(
        tags=["Documents"],
        request=DocumentCreateSerializer,
        responses={201: DocumentReadSerializer, **STATE_RESPONSE, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["teacher", "curator"], "ownership": "owner-on-create"}},
    ),
    retrieve=extend_schema(
        tags=["Documents"],
        responses={200: DocumentReadSerializer, **AUTH_RESPONSES},
    ),
    mine=extend_schema(
        tags=["Documents"],
        parameters=[OpenApiParameter("history", bool, OpenApiParameter.QUERY,
                                     description="Students: include submitted/approved/completed documents.")],
        responses={200: DocumentReadSerializer(many=True), **AUTH_RESPONSES},
        description="Role-scoped list: students see documents waiting for them, teachers what they created, "
                    "curators approved and completed documents.",
    ),
    submit=extend_schema(
        tags=["Workflow"],
        request=SubmitSerializer,
        responses={200: DocumentReadSerializer, **STATE_RESPONSE, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "target"}},
    ),
    review=extend_schema(
        tags=["Workflow"],
        request=ReviewSerializer,
        responses={200: DocumentReadSerializer, **STATE_RESPONSE, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["teacher", "curator"], "ownership": "creator"}},
    ),
    finalize=extend_schema(
        tags=["Workflow"],
        request=None,
        responses={200: DocumentReadSerializer, **STATE_RESPONSE, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["curator"]}},
    ),
    download=extend_schema(
        tags=["Workflow"],
        parameters=[OpenApiParameter("format", str, OpenApiParameter.QUERY, enum=list(render_service.FORMATS))],
        responses={
            (200, "application/octet-stream"): OpenApiTypes.BINARY,
            403: OpenApiResponse(description="Wrong role, or document not completed yet (`current_status`)."),
            401: AUTH_RESPONSES[401],
            404: AUTH_RESPONSES[404],
        },
        extensions={"x-permissions": {"required_roles": ["teacher", "curator"], "ownership": "creator-or-curator"}},
    ),
)
class DocumentViewSet(PaginationMixin, viewsets.GenericViewSet):
    """Create documents and move them through the approval pipeline."""
    serializer_class = DocumentReadSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self) -> list:
        role_gates = {
            "create": IsTeacherOrCurator,
            "submit": IsStudent,
            "review": IsTeacherOrCurator,
            "finalize": IsCurator,
            "download": IsTeacherOrCurator,
        }
        gate = role_gates.get(self.action)
        if gate:
            return [IsAuthenticated(), gate()]
        return [IsAuthenticated()]

    def get_queryset(self):
        """Documents visible to the requesting user."""
        return workflow_service.documents_for(self.request.user, include_history=True)

    def _respond(self, document, status_code: int = status.HTTP_200_OK) -> Response:
        return ok({"document": DocumentReadSerializer(document).data}, status_code)

    def create(self, request: Request) -> Response:
        """Create a document for a student from a template."""
        ser = DocumentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        document = workflow_service.create_document(
            request.user,
            template_name=data["template_name"],
            student_email=data["student_email"],
            title=data["title"],
            teacher_data=data.get("teacher_data"),
        )
        return ok({"document_id": document.id, "document": DocumentReadSerializer(document).data},
                  status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: int | None = None) -> Response:
        """Retrieve one document from the caller's view."""
        return self._respond(workflow_service.get_document(request.user, int(pk)))

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """List documents in the caller's role-scoped view."""
        include_history = request.query_params.get("history", "").lower() in {"1", "true", "yes"}
        qs = workflow_service.documents_for(request.user, include_history=include_history)
        return self.paginate_and_respond(qs, DocumentReadSerializer)

    @action(detail=True, methods=["put"])
    def submit(self, request: Request, pk: int | None = None) -> Response:
        """Student fills in their fields and submits for review."""
        ser = SubmitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        document = workflow_service.submit(request.user, int(pk), ser.validated_data["data"])
        return self._respond(document)

    @action(detail=True, methods=["put"])
    def review(self, request: Request, pk: int | None = None) -> Response:
        """Creator approves (with optional teacher fields) or rejects with a comment."""
        ser = ReviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        document = workflow_service.review(
            request.user, int(pk), data["action"], data=data["data"], comment=data["comment"],
        )
        return self._respond(document)

    @action(detail=True, methods=["put"])
    def finalize(self, request: Request, pk: int | None = None) -> Response:
        """Curator completes a teacher-approved document."""
        return self._respond(workflow_service.finalize(request.user, int(pk)))

    @action(detail=True, methods=["get"])
    def download(self, request: Request, pk: int | None = None) -> HttpResponse:
        """Rendered artifact of a completed document."""
        fmt = request.query_params.get("format", render_service.DOCX)
        document = workflow_service.get_downloadable(request.user, int(pk))
        rendered = render_service.render_document(document, fmt, generated_at=timezone.now())
        response = HttpResponse(rendered.content, content_type=rendered.content_type)
        response["Content-Disposition"] = f'attachment; filename="{rendered.filename}"'
        return response

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from DocumentWorkflowApp.api.views import (
    DocumentViewSet,
    GreetingView,
    LoginView,
    RegistrationView,
    TemplateListView,
    UserViewSet,
)

router = SimpleRouter()
router.register(r"users", UserViewSet, basename="user")
router.register(r"documents", DocumentViewSet, basename="document")

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("register/", RegistrationView.as_view(), name="auth-register"),
    path("login/", LoginView.as_view(), name="auth-login"),
    path("greeting/", GreetingView.as_view(), name="greeting"),
    path("templates/", TemplateListView.as_view(), name="template-list"),
    path("", include(router.urls)),
]

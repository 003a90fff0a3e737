import pytest
from model_bakery import baker
from rest_framework.test import APIClient

from DocumentWorkflowApp.core.access import Principal
from DocumentWorkflowApp.core.choices import UserRole

PASSWORD = "pass1234"


def make_user(email, role=UserRole.STUDENT, name=None):
    u = baker.make("users.User", email=email, username=email, name=name or email.split("@")[0], role=role)
    u.set_password(PASSWORD); u.save()
    return u


def principal_of(user):
    return Principal(id=user.id, email=user.email, name=user.name, role=user.role)


def login(user):
    client = APIClient()
    token = client.post("/api/login/", {"email": user.email, "password": PASSWORD}, format="json").data["token"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def student():
    return make_user("s1@example.com", UserRole.STUDENT, name="Sam Student")


@pytest.fixture
def other_student():
    return make_user("s2@example.com", UserRole.STUDENT)


@pytest.fixture
def teacher():
    return make_user("t1@example.com", UserRole.TEACHER, name="Tess Teacher")


@pytest.fixture
def other_teacher():
    return make_user("t2@example.com", UserRole.TEACHER)


@pytest.fixture
def curator():
    return make_user("c1@example.com", UserRole.CURATOR, name="Cal Curator")


@pytest.fixture
def leave_fields():
    return {
        "LastName": "Ivanova",
        "FirstName": "Anna",
        "Group": "CS-21",
        "StartDate": "2024-02-01",
        "EndDate": "2024-08-31",
        "Reason": "health",
    }

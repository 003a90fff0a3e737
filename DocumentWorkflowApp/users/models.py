from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models

from DocumentWorkflowApp.core.choices import UserRole


class UserManager(DjangoUserManager):
    """Email is the identity key; username mirrors it."""

    def _create_user(self, username, email, password, **extra_fields):
        email = email or username
        user = self.model(username=email, email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", UserRole.CURATOR)
        return self._create_user(email, email, password, **extra_fields)


class User(AbstractUser):
    # Stored as given: no case folding, lookups are case-sensitive.
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150)
    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.STUDENT)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

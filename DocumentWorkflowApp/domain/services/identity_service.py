"""Domain service functions for accounts, credentials and role management.

These helpers encapsulate identity rules (registration always yields a
student, only curators change roles, login failures are indistinguishable)
and keep view/serializer layers thin. Tokens are stateless: the principal is
rebuilt from signed claims on every request, so a role change reaches the
affected user on their next login.
"""
import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from rest_framework.exceptions import AuthenticationFailed, NotFound, ValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import AccessToken

from DocumentWorkflowApp.core.access import Principal, authorize
from DocumentWorkflowApp.core.choices import UserRole
from DocumentWorkflowApp.core.exceptions import Conflict, InvalidCredentials

logger = logging.getLogger(__name__)

User = get_user_model()

@transaction.atomic
def register(name: str, email: str, password: str) -> User:
    """Create a student account.

    Args:
        name: Display name.
        email: Login identity, stored as given (case-sensitive).
        password: Clear-text password; only its hash is stored.

    Returns:
        The new User.

    Raises:
        Conflict: If the email is already registered.
    """
    if User.objects.filter(email=email).exists():
        raise Conflict("This email is already registered.")
    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, name=name, role=UserRole.STUDENT)
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        raise Conflict("This email is already registered.") from None
    logger.info("Registered user id=%s", user.id)
    return user

def issue_token(user: Any) -> str:
    """Signed access token carrying the claims the principal is rebuilt from."""
    token = AccessToken.for_user(user)
    token["email"] = user.email
    token["name"] = user.name
    token["role"] = user.role
    return str(token)

def login(email: str, password: str) -> tuple[str, Any]:
    """Verify credentials and return ``(token, user)``.

    Raises:
        InvalidCredentials: Same error for unknown email and wrong password.
    """
    user = User.objects.filter(email=email).first()
    if user is None:
        # keep the unknown-email path as slow as a real hash check
        make_password(password)
        logger.warning("Failed login attempt")
        raise InvalidCredentials()
    if not user.is_active or not user.check_password(password):
        logger.warning("Failed login attempt for user id=%s", user.id)
        raise InvalidCredentials()
    logger.info("User id=%s logged in", user.id)
    return issue_token(user), user

def principal_from_claims(claims: Any) -> Principal:
    """Build the request principal from validated token claims (no DB lookup)."""
    try:
        user_id = claims[jwt_settings.USER_ID_CLAIM]
        email = claims["email"]
        role = claims["role"]
    except KeyError:
        raise AuthenticationFailed("Token is missing required claims.", code="token_not_valid") from None
    if role not in UserRole.values:
        raise AuthenticationFailed("Token carries an unknown role.", code="token_not_valid")
    return Principal(id=int(user_id), email=email, name=claims.get("name", ""), role=role)

def authenticate(credential: str | None) -> Principal:
    """Validate a raw bearer token and return its principal.

    Raises:
        AuthenticationFailed: Missing, malformed, expired or badly signed token.
    """
    if not credential:
        raise AuthenticationFailed("Authentication credentials were not provided.", code="not_authenticated")
    try:
        token = AccessToken(credential)
    except TokenError as exc:
        raise AuthenticationFailed(str(exc), code="token_not_valid") from exc
    return principal_from_claims(token)

@transaction.atomic
def set_role(actor: Principal, target_email: str, new_role: str) -> User:
    """Change a user's role (curator only).

    Raises:
        PermissionDenied: Actor is not a curator.
        ValidationError: ``new_role`` is not one of UserRole.
        NotFound: No user with ``target_email``.
    """
    authorize(actor, {UserRole.CURATOR})
    if new_role not in UserRole.values:
        raise ValidationError({"new_role": [f"Role must be one of: {', '.join(UserRole.values)}."]})
    user = User.objects.select_for_update().filter(email=target_email).first()
    if user is None:
        raise NotFound(f"User with email {target_email} not found.")
    old_role = user.role
    if old_role != new_role:
        user.role = new_role
        user.save(update_fields=["role"])
    logger.info("User id=%s changed role of user id=%s: %s -> %s", actor.id, user.id, old_role, new_role)
    return user

def list_users(actor: Principal) -> QuerySet:
    """All accounts ordered by id (curator only)."""
    authorize(actor, {UserRole.CURATOR})
    return User.objects.order_by("id")

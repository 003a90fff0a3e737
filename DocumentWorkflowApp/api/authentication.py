"""Bearer-token authentication resolving the request principal from token claims."""

from rest_framework_simplejwt.authentication import JWTAuthentication

from DocumentWorkflowApp.core.access import Principal
from DocumentWorkflowApp.domain.services.identity_service import principal_from_claims


class PrincipalJWTAuthentication(JWTAuthentication):
    """Stateless JWT authentication: no user lookup, claims are trusted once the signature checks out."""

    def get_user(self, validated_token) -> Principal:
        return principal_from_claims(validated_token)

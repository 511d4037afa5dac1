"""
Caller identity for the inventory API.

Identity is resolved upstream (gateway / auth service) and forwarded as
headers:

    X-Organization-ID: <uuid>
    X-User-ID: <uuid>
    X-User-Role: ADMIN | MANAGER | USER
"""
import uuid
from dataclasses import dataclass

from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication
from rest_framework.permissions import BasePermission, SAFE_METHODS

ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_USER = "USER"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_USER)


@dataclass(frozen=True)
class CallerIdentity:
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: str

    @property
    def pk(self) -> str:
        return str(self.user_id)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class HeaderIdentityAuthentication(BaseAuthentication):
    organization_header = "X-Organization-ID"
    user_header = "X-User-ID"
    role_header = "X-User-Role"

    def authenticate(self, request):
        organization = request.headers.get(self.organization_header)
        user = request.headers.get(self.user_header)
        if not organization and not user:
            return None

        try:
            organization_id = uuid.UUID(organization)
            user_id = uuid.UUID(user)
        except (TypeError, ValueError):
            raise exceptions.AuthenticationFailed("Invalid caller identity headers")

        role = (request.headers.get(self.role_header) or ROLE_USER).strip().upper()
        if role not in ROLES:
            raise exceptions.AuthenticationFailed(f"Unknown role: {role}")

        identity = CallerIdentity(organization_id=organization_id, user_id=user_id, role=role)
        return identity, None

    def authenticate_header(self, request):
        return self.organization_header


class IsAdminRole(BasePermission):
    """Reads are open to any caller; writes need the ADMIN role."""

    message = "Admin role required"

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user and getattr(request.user, "is_admin", False))

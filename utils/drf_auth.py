from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import APIException, AuthenticationFailed
from rest_framework.permissions import BasePermission

from accounts.auth import get_bearer_token, is_admin_claims, verify_firebase_id_token


class FirebaseUnavailable(APIException):
    status_code = 503
    default_detail = 'Firebase admin not initialized'
    default_code = 'firebase_unavailable'


@dataclass(frozen=True)
class FirebaseUser:
    """Request user built from verified token claims; never persisted."""
    uid: str
    claims: dict = field(default_factory=dict)
    is_authenticated = True

    @property
    def is_admin(self) -> bool:
        return is_admin_claims(self.claims)


class FirebaseAuthentication(BaseAuthentication):
    """Bearer-token authentication against Firebase; 401 on failure, 503 when Firebase is down."""

    def authenticate(self, request) -> Optional[Tuple[FirebaseUser, dict]]:
        claims, err, http_status = verify_firebase_id_token(get_bearer_token(request))
        if err:
            raise FirebaseUnavailable(err) if http_status == 503 else AuthenticationFailed(err)
        uid = str((claims or {}).get('uid') or '')
        if not uid:
            raise AuthenticationFailed('Invalid token')
        return FirebaseUser(uid=uid, claims=claims), claims

    def authenticate_header(self, request) -> str:
        return 'Bearer'


class IsRulesAdmin(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view) -> bool:
        return bool(getattr(request.user, 'is_admin', False))

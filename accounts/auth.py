"""Firebase ID-token checks and the admin gate shared by the API modules."""
import base64
import json
import logging
import os
import sys
from typing import Any, Callable, Optional, Tuple

import firebase_admin
from django.conf import settings
from django.http import JsonResponse
from firebase_admin import auth as fb_auth
from firebase_admin import credentials

_logger = logging.getLogger(__name__)

RUNNING_TESTS = 'test' in sys.argv or 'pytest' in sys.modules

TEST_CLAIMS = {'uid': 'test-user', 'email': 'test@example.com'}

_init_error = ''


def firebase_init_error() -> str:
    return _init_error


def _load_credentials():
    """Service-account credentials from a file path or a base64 JSON blob."""
    path = (os.getenv('FIREBASE_CREDENTIALS_JSON_PATH') or os.getenv('GOOGLE_APPLICATION_CREDENTIALS') or '').strip()
    if path:
        return credentials.Certificate(path), path
    blob = (os.getenv('FIREBASE_CREDENTIALS_JSON_B64') or '').strip()
    if not blob:
        return None, ''
    info = json.loads(base64.b64decode(blob).decode('utf-8'))
    return credentials.Certificate(info), 'FIREBASE_CREDENTIALS_JSON_B64'


def ensure_firebase_initialized() -> bool:
    global _init_error
    if RUNNING_TESTS or firebase_admin._apps:
        _init_error = ''
        return True
    source = ''
    try:
        cred, source = _load_credentials()
        if cred is None:
            _init_error = 'Missing FIREBASE_CREDENTIALS_JSON_B64'
            return False
        firebase_admin.initialize_app(cred)
    except Exception as e:
        _init_error = f"{e.__class__.__name__}: {str(e)}".strip()
        _logger.warning("firebase init from %s failed: %s", source or 'environment', _init_error)
        return False
    _init_error = ''
    return True


def verify_firebase_id_token(token: str) -> Tuple[Optional[dict], Optional[str], Optional[int]]:
    """Returns (claims, error_detail, http_status)."""
    token = (token or '').strip()
    if not token:
        return None, 'Missing bearer token', 401
    if RUNNING_TESTS:
        # Admin rights in tests come from RULES_ADMIN_UIDS.
        return dict(TEST_CLAIMS), None, None
    if not ensure_firebase_initialized():
        detail = 'Firebase admin not initialized'
        if _init_error:
            detail = f"{detail}: {_init_error}"
        return None, detail, 503
    try:
        claims = fb_auth.verify_id_token(token)
    except Exception:
        return None, 'Invalid token', 401
    if not isinstance(claims, dict):
        return None, 'Invalid token', 401
    return claims, None, None


def get_bearer_token(request) -> str:
    scheme, _, value = (request.META.get('HTTP_AUTHORIZATION') or '').partition(' ')
    if scheme.strip().lower() == 'bearer' and value.strip():
        return value.strip()
    if settings.DEBUG:
        # Local development only.
        return (request.GET.get('id_token') or request.GET.get('token') or '').strip()
    return ''


def is_admin_claims(claims: Optional[dict]) -> bool:
    """Admin if the token carries ``admin: true`` or its uid is allow-listed."""
    if not isinstance(claims, dict):
        return False
    if claims.get('admin') is True:
        return True
    uid = str(claims.get('uid') or '')
    return bool(uid) and uid in set(getattr(settings, 'RULES_ADMIN_UIDS', None) or [])


def require_admin_uid(
    request,
    *,
    response_factory: Optional[Callable[[dict, int], Any]] = None,
) -> Tuple[Optional[str], Any]:
    """Gate for plain Django views: (uid, None) for admins, else (None, error response)."""
    respond = response_factory or (lambda data, status: JsonResponse(data, status=status))

    claims, err, http_status = verify_firebase_id_token(get_bearer_token(request))
    if err:
        status = int(http_status or 401)
        if status == 503:
            code = 'firebase_unavailable'
        elif err == 'Missing bearer token':
            code = 'missing_token'
        else:
            code = 'unauthorized'
        return None, respond({'detail': err, 'code': code}, status)

    uid = str((claims or {}).get('uid') or '')
    if not uid:
        return None, respond({'detail': 'Invalid token', 'code': 'invalid_token'}, 401)
    if not is_admin_claims(claims):
        return None, respond({'detail': 'Admin access required', 'code': 'forbidden'}, 403)
    return uid, None

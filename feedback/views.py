import json
import logging
from datetime import timedelta
from typing import Any, Dict

from django.conf import settings
from django.db.utils import OperationalError, ProgrammingError
from django.http import HttpResponseBadRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from accounts.auth import require_admin_uid
from rules.models import RuleResponse, Suggestion

from .models import ContactSubmission, GuidanceRecord

_logger = logging.getLogger(__name__)

DASHBOARD_WINDOW_DAYS = 7


def _read_json(request) -> Dict[str, Any]:
    data = json.loads(request.body.decode('utf-8') or '{}')
    if not isinstance(data, dict):
        raise ValueError('JSON object expected')
    return data


def _error(e: Exception) -> JsonResponse:
    if isinstance(e, (ProgrammingError, OperationalError)):
        detail = 'Database not initialized'
        status, code = 503, 'db_unavailable'
    else:
        _logger.exception("unhandled error in feedback views")
        detail = 'Server error'
        status, code = 500, 'server_error'
    if settings.DEBUG:
        detail = f"{detail}: {e.__class__.__name__}: {str(e)}".strip()
    return JsonResponse({'detail': detail, 'code': code}, status=status)


@csrf_exempt
def submit_contact(request):
    """POST /api/contact
    Body: { name: str, email: str, message: str }
    """
    if request.method != 'POST':
        return HttpResponseBadRequest('POST required')
    try:
        data = _read_json(request)
    except ValueError:
        return JsonResponse({'detail': 'Invalid JSON body', 'code': 'invalid_json'}, status=400)
    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip()
    message = str(data.get('message') or '').strip()
    missing = {k: 'This field is required.' for k, v in (('name', name), ('email', email), ('message', message)) if not v}
    if missing:
        return JsonResponse({'detail': 'Missing required fields', 'code': 'validation_error', 'fields': missing}, status=400)
    if '@' not in email:
        return JsonResponse(
            {'detail': 'Invalid email', 'code': 'validation_error', 'fields': {'email': 'Enter a valid email address.'}},
            status=400,
        )
    try:
        sub = ContactSubmission(name=name[:200])
        sub.email = email
        sub.message = message
        sub.save()
        return JsonResponse({'id': sub.id, 'created_at': sub.created_at.isoformat()}, status=201)
    except Exception as e:
        return _error(e)


@csrf_exempt
def save_guidance(request):
    """POST /api/guidance
    Body: { scenario: str, reply?: str, rules_used?: [str] }
    """
    if request.method != 'POST':
        return HttpResponseBadRequest('POST required')
    try:
        data = _read_json(request)
    except ValueError:
        return JsonResponse({'detail': 'Invalid JSON body', 'code': 'invalid_json'}, status=400)
    scenario = str(data.get('scenario') or '').strip()
    if not scenario:
        return JsonResponse(
            {'detail': 'scenario is required', 'code': 'validation_error', 'fields': {'scenario': 'This field is required.'}},
            status=400,
        )
    rules_used = data.get('rules_used') or []
    if not isinstance(rules_used, list):
        rules_used = [rules_used]
    try:
        rec = GuidanceRecord.objects.create(
            scenario=scenario,
            reply=str(data.get('reply') or '').strip(),
            rules_used=[str(r).strip() for r in rules_used if str(r).strip()],
        )
        return JsonResponse(rec.to_row(), status=201)
    except Exception as e:
        return _error(e)


@csrf_exempt
def admin_messages(request):
    """GET /api/admin/messages (newest first, decrypted)"""
    if request.method != 'GET':
        return HttpResponseBadRequest('GET required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        rows = [m.to_row() for m in ContactSubmission.objects.order_by('-created_at')]
        return JsonResponse({'count': len(rows), 'results': rows})
    except Exception as e:
        return _error(e)


@csrf_exempt
def admin_message_detail(request, message_id: int):
    if request.method != 'DELETE':
        return HttpResponseBadRequest('DELETE required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        deleted, _ = ContactSubmission.objects.filter(id=message_id).delete()
        if not deleted:
            return JsonResponse({'detail': 'Not found', 'code': 'not_found'}, status=404)
        return JsonResponse({}, status=204)
    except Exception as e:
        return _error(e)


@csrf_exempt
def admin_guidance(request):
    """GET /api/admin/guidance (newest first)"""
    if request.method != 'GET':
        return HttpResponseBadRequest('GET required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        rows = [g.to_row() for g in GuidanceRecord.objects.order_by('-created_at')]
        return JsonResponse({'count': len(rows), 'results': rows})
    except Exception as e:
        return _error(e)


@csrf_exempt
def admin_guidance_detail(request, record_id: int):
    if request.method != 'DELETE':
        return HttpResponseBadRequest('DELETE required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        deleted, _ = GuidanceRecord.objects.filter(id=record_id).delete()
        if not deleted:
            return JsonResponse({'detail': 'Not found', 'code': 'not_found'}, status=404)
        return JsonResponse({}, status=204)
    except Exception as e:
        return _error(e)


@csrf_exempt
def admin_dashboard(request):
    """GET /api/admin/dashboard
    Counts of records created within the last seven days.
    """
    if request.method != 'GET':
        return HttpResponseBadRequest('GET required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        since = timezone.now() - timedelta(days=DASHBOARD_WINDOW_DAYS)
        return JsonResponse({
            'since': since.isoformat(),
            'window_days': DASHBOARD_WINDOW_DAYS,
            'guidance_records': GuidanceRecord.objects.filter(created_at__gte=since).count(),
            'rule_responses': RuleResponse.objects.filter(created_at__gte=since).count(),
            'contact_submissions': ContactSubmission.objects.filter(created_at__gte=since).count(),
            'suggestions': Suggestion.objects.filter(created_at__gte=since).count(),
        })
    except Exception as e:
        return _error(e)

"""Static page sections: public read of one page, admin listing and content edits."""
import json
import logging
from typing import Any, Dict

from django.conf import settings
from django.http import HttpResponseBadRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from accounts.auth import require_admin_uid
from rules.store import DjangoRecordStore, RecordStoreError

_logger = logging.getLogger(__name__)

TABLE = 'pages_content'


def _store():
    return DjangoRecordStore()


def _error(e: Exception) -> JsonResponse:
    if isinstance(e, RecordStoreError):
        detail, status, code = str(e), 500, 'store_error'
    else:
        _logger.exception("unhandled error in pages views")
        detail, status, code = 'Server error', 500, 'server_error'
        if settings.DEBUG:
            detail = f"{detail}: {e.__class__.__name__}: {str(e)}".strip()
    return JsonResponse({'detail': detail, 'code': code}, status=status)


def _grouped(rows) -> Dict[str, Dict[str, Any]]:
    pages: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        pages.setdefault(row['page_name'], {})[row['section_key']] = row['content']
    return pages


def page_sections(request, page_name: str):
    """GET /api/pages/<page_name>
    Returns { page, sections: {section_key: content}, results: [row] }.
    """
    if request.method != 'GET':
        return HttpResponseBadRequest('GET required')
    name = (page_name or '').strip()
    try:
        rows = _store().select(TABLE, filters={'page_name': name}, order_by='section_key')
    except Exception as e:
        return _error(e)
    if not rows:
        return JsonResponse({'detail': 'Page not found', 'code': 'not_found'}, status=404)
    return JsonResponse({'page': name, 'sections': _grouped(rows)[name], 'results': rows})


@csrf_exempt
def admin_pages(request):
    """GET /api/admin/pages (by page name, then section key)"""
    if request.method != 'GET':
        return HttpResponseBadRequest('GET required')
    _uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        rows = _store().select(TABLE, order_by=['page_name', 'section_key'])
    except Exception as e:
        return _error(e)
    return JsonResponse({
        'count': len(rows),
        'results': rows,
        'pages': {name: sorted(sections) for name, sections in _grouped(rows).items()},
    })


@csrf_exempt
def admin_page_detail(request, section_id: int):
    """PATCH /api/admin/pages/<id>
    Body: { content: str }
    """
    if request.method != 'PATCH':
        return HttpResponseBadRequest('PATCH required')
    uid, resp = require_admin_uid(request)
    if resp is not None:
        return resp
    try:
        data = json.loads(request.body.decode('utf-8') or '{}')
    except ValueError:
        return JsonResponse({'detail': 'Invalid JSON body', 'code': 'invalid_json'}, status=400)
    content = data.get('content') if isinstance(data, dict) else None
    if not isinstance(content, str):
        return JsonResponse(
            {'detail': 'content must be a string', 'code': 'validation_error', 'fields': {'content': 'This field is required.'}},
            status=400,
        )
    store = _store()
    try:
        if not store.update(TABLE, section_id, {'content': content}):
            return JsonResponse({'detail': 'Not found', 'code': 'not_found'}, status=404)
        row = store.select(TABLE, filters={'pk': section_id})[0]
    except Exception as e:
        return _error(e)
    _logger.info("page section %s/%s updated by %s", row['page_name'], row['section_key'], uid)
    return JsonResponse(row)

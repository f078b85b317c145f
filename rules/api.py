import logging
import os

from django.conf import settings
from django.db import transaction
from django.db.utils import OperationalError, ProgrammingError
from django.http import HttpResponse

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import APIException
from rest_framework.response import Response

from utils.drf_auth import FirebaseAuthentication, IsRulesAdmin
from utils.errors import error_response, not_found, validation_error

from .csv_parser import format_row
from .filters import filter_rules
from .importer import ImportOutcome, RuleImporter
from .mapping import RuleColumn, RuleRecord
from .models import ImpressionAction, Rule, Suggestion
from .stats import aggregate_rule_statistics
from .store import DjangoRecordStore, RecordStoreError
from .vocab import AREAS, DISCIPLINES, SKILLS, canonical, split_tags

_logger = logging.getLogger(__name__)

_YES = ("1", "true", "yes", "y")
_NO = ("0", "false", "no", "n")


def _store() -> DjangoRecordStore:
    return DjangoRecordStore()


def _failure(e: Exception) -> Response:
    if isinstance(e, APIException):
        # Parse/auth errors raised while reading request.data go to the global handler.
        raise e
    if isinstance(e, RecordStoreError):
        return error_response(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, code='store_error')
    if isinstance(e, (ProgrammingError, OperationalError)):
        detail = "Database not initialized"
        if settings.DEBUG:
            detail = f"{detail}: {e.__class__.__name__}: {str(e)}".strip()
        return error_response(detail, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, code='db_unavailable')
    _logger.exception("unhandled error in rules api")
    detail = "Server error"
    if settings.DEBUG:
        detail = f"{detail}: {e.__class__.__name__}: {str(e)}".strip()
    return error_response(detail, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, code='server_error')


def _parse_yes_no(value):
    if isinstance(value, bool):
        return value
    s = str(value if value is not None else '').strip().lower()
    if s in _YES:
        return True
    if s in _NO:
        return False
    return None


def _area_list(value) -> list:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return split_tags(str(value or ''))


def _outcome_response(outcome: ImportOutcome) -> Response:
    if outcome.success:
        return Response(outcome.as_dict())
    status_by_code = {
        'no_valid_rows': status.HTTP_400_BAD_REQUEST,
        'remote_fetch_failed': status.HTTP_502_BAD_GATEWAY,
        'store_error': status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return Response(outcome.as_dict(), status=status_by_code.get(outcome.code, status.HTTP_400_BAD_REQUEST))


# ---- Public ----

@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
def api_rules(request):
    try:
        rows = _store().select('rules', order_by='title')
        results = filter_rules(
            rows,
            q=request.GET.get('q') or '',
            area=request.GET.get('area') or '',
            discipline=request.GET.get('discipline') or '',
            skill=request.GET.get('skill') or '',
        )
        return Response({"count": len(results), "total": len(rows), "results": results})
    except Exception as e:
        return _failure(e)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
def api_random_rule(request):
    try:
        rule = Rule.objects.order_by('?').first()
        if rule is None:
            return not_found("No rules found")
        return Response(rule.to_row())
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def api_rule_impression(request, rule_id: int):
    try:
        data = request.data or {}
        action = str(data.get('action') or '').strip().lower()
        if action not in (ImpressionAction.VIEWED, ImpressionAction.SKIPPED):
            return validation_error(
                "action must be 'viewed' or 'skipped'",
                {'action': ['Must be one of: viewed, skipped.']},
            )
        rule = Rule.objects.filter(pk=rule_id).first()
        if rule is None:
            return not_found(f"Rule {rule_id} not found")
        _store().insert_batch('rule_impressions', [{'rule_id': rule.id, 'rule_title': rule.title, 'action': action}])
        return Response({"status": "ok"}, status=status.HTTP_201_CREATED)
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def api_rule_response(request):
    """Store a review and log a matching 'reviewed' impression."""
    try:
        data = request.data or {}
        if not isinstance(data, dict):
            return validation_error("Invalid JSON body")

        fields = {}
        answers = {}
        for name in ('resonates', 'applicable', 'learned_new'):
            answers[name] = _parse_yes_no(data.get(name))
            if answers[name] is None:
                fields[name] = ['A yes/no answer is required.']

        rule = None
        raw_id = data.get('rule_id')
        if raw_id not in (None, ''):
            try:
                rule = Rule.objects.filter(pk=int(raw_id)).first()
            except (TypeError, ValueError):
                rule = None
            if rule is None:
                fields['rule_id'] = ['Unknown rule.']
        rule_title = rule.title if rule else str(data.get('rule_title') or '').strip()
        if rule is None and not rule_title and 'rule_id' not in fields:
            fields['rule_title'] = ['rule_id or rule_title is required.']

        if fields:
            return validation_error(
                "Please answer all questions",
                fields,
            )

        store = _store()
        rule_id = rule.id if rule else None
        with transaction.atomic():
            store.insert_batch('rule_responses', [{
                'rule_id': rule_id,
                'rule_title': rule_title,
                'resonates': answers['resonates'],
                'applicable': answers['applicable'],
                'learned_new': answers['learned_new'],
                'thoughts': str(data.get('thoughts') or '').strip(),
            }])
            store.insert_batch('rule_impressions', [{
                'rule_id': rule_id,
                'rule_title': rule_title,
                'action': ImpressionAction.REVIEWED,
            }])
        return Response({"status": "ok", "detail": "Thank you for your feedback!"}, status=status.HTTP_201_CREATED)
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
def api_submit_suggestion(request):
    try:
        data = request.data or {}
        if not isinstance(data, dict):
            return validation_error("Invalid JSON body")
        title = str(data.get('title') or '').strip()
        description = str(data.get('description') or '').strip()
        areas = [canonical(a, AREAS) for a in _area_list(data.get('area'))]
        discipline = canonical(str(data.get('discipline') or ''), DISCIPLINES)
        skill = canonical(str(data.get('skill') or ''), SKILLS)

        fields = {}
        if not title:
            fields['title'] = ['This field is required.']
        if not description:
            fields['description'] = ['This field is required.']
        if not areas or any(a is None for a in areas):
            fields['area'] = [f"Select at least one of: {', '.join(AREAS)}."]
        if not discipline:
            fields['discipline'] = [f"Must be one of: {', '.join(DISCIPLINES)}."]
        if not skill:
            fields['skill'] = [f"Must be one of: {', '.join(SKILLS)}."]
        if fields:
            return validation_error(
                "Invalid suggestion",
                fields,
            )

        s = Suggestion.objects.create(
            title=title,
            description=description,
            area=list(dict.fromkeys(areas)),
            discipline=discipline,
            skill=skill,
        )
        return Response(s.to_row(), status=status.HTTP_201_CREATED)
    except Exception as e:
        return _failure(e)


# ---- Admin: rule corpus ----

@api_view(['GET', 'POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rules(request):
    try:
        if request.method == 'GET':
            rows = _store().select('rules', order_by='-created_at')
            return Response({"count": len(rows), "results": rows})

        data = request.data or {}
        title = str(data.get('title') or '').strip()
        description = str(data.get('description') or '').strip()
        if not title or not description:
            fields = {}
            if not title:
                fields['title'] = ['This field is required.']
            if not description:
                fields['description'] = ['This field is required.']
            return validation_error(
                "title and description are required",
                fields,
            )
        record = RuleRecord(
            title=title,
            description=description,
            area=';'.join(_area_list(data.get('area'))),
            discipline=str(data.get('discipline') or '').strip(),
            skill=str(data.get('skill') or '').strip(),
        )
        rule = Rule.objects.create(**record.to_row())
        _logger.info("rule %s added by %s", rule.id, getattr(request.user, 'uid', ''))
        return Response(rule.to_row(), status=status.HTTP_201_CREATED)
    except Exception as e:
        return _failure(e)


@api_view(['PATCH', 'DELETE'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rule_detail(request, rule_id: int):
    try:
        store = _store()
        if request.method == 'DELETE':
            if not store.delete('rules', rule_id):
                return not_found(f"Rule {rule_id} not found")
            return Response(status=status.HTTP_204_NO_CONTENT)

        data = request.data or {}
        changes = {}
        for name in ('title', 'description'):
            if name in data:
                value = str(data.get(name) or '').strip()
                if not value:
                    return validation_error(
                        f"{name} cannot be empty",
                        {name: ['This field may not be blank.']},
                    )
                changes[name] = value
        if 'area' in data:
            changes['area'] = [canonical(a, AREAS) or a for a in _area_list(data.get('area'))]
        if 'discipline' in data:
            value = str(data.get('discipline') or '').strip()
            changes['discipline'] = canonical(value, DISCIPLINES) or value
        if 'skill' in data:
            value = str(data.get('skill') or '').strip()
            changes['skill'] = canonical(value, SKILLS) or value

        if not store.update('rules', rule_id, changes):
            return not_found(f"Rule {rule_id} not found")
        return Response(Rule.objects.get(pk=rule_id).to_row())
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rules_delete_all(request):
    try:
        if _parse_yes_no((request.data or {}).get('confirm')) is not True:
            return error_response(
                "Deleting all rules requires confirm=true",
                status_code=status.HTTP_400_BAD_REQUEST,
                code='confirmation_required',
                fields={'confirm': ['Must be true.']},
            )
        deleted = _store().delete('rules', all_rows=True)
        _logger.warning("all rules deleted (%d) by %s", deleted, getattr(request.user, 'uid', ''))
        return Response({"deleted": deleted, "detail": "All rules deleted successfully"})
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rules_import(request):
    try:
        if not request.FILES:
            return validation_error(
                "No file provided",
                {'file': ['A CSV file is required.']},
            )
        fobj = request.FILES.get('file') or next(iter(request.FILES.values()))
        max_bytes = int(getattr(settings, 'RULES_IMPORT_MAX_BYTES', 5 * 1024 * 1024) or 0)
        if max_bytes and fobj.size > max_bytes:
            return error_response(
                f"File too large (limit {max_bytes} bytes)",
                status_code=status.HTTP_400_BAD_REQUEST,
                code='file_too_large',
            )
        ext = os.path.splitext(os.path.basename(fobj.name or ''))[1].lower()
        if ext and ext not in ('.csv', '.txt'):
            return validation_error(
                "Only .csv files can be imported",
                {'file': ['Expected a .csv file.']},
            )
        outcome = RuleImporter(_store()).import_csv(fobj.read())
        return _outcome_response(outcome)
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rules_import_sheet(request):
    try:
        url = str((request.data or {}).get('url') or '').strip()
        if not url:
            return validation_error(
                "url is required",
                {'url': ['This field is required.']},
            )
        outcome = RuleImporter(_store()).import_remote_json(url)
        return _outcome_response(outcome)
    except Exception as e:
        return _failure(e)


@api_view(['GET'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rules_export(request):
    try:
        columns = [c.value for c in RuleColumn]
        lines = [format_row(columns)]
        for row in _store().select('rules', order_by='title'):
            row = dict(row, area=';'.join(row.get('area') or []))
            lines.append(format_row([str(row.get(c) or '') for c in columns]))
        response = HttpResponse('\r\n'.join(lines) + '\r\n', content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = 'attachment; filename=rules.csv'
        return response
    except Exception as e:
        return _failure(e)


# ---- Admin: analytics and moderation ----

@api_view(['GET'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_rule_statistics(request):
    try:
        store = _store()
        impressions = store.select('rule_impressions')
        responses = store.select('rule_responses')
        stats = aggregate_rule_statistics(impressions, responses)
        totals = {
            "views": sum(s.total_views for s in stats),
            "skips": sum(s.total_skips for s in stats),
            "reviews": sum(s.total_reviews for s in stats),
        }
        return Response({"count": len(stats), "totals": totals, "results": [s.as_dict() for s in stats]})
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_impressions_purge(request):
    try:
        if _parse_yes_no((request.data or {}).get('confirm')) is not True:
            return error_response(
                "Purging impressions requires confirm=true",
                status_code=status.HTTP_400_BAD_REQUEST,
                code='confirmation_required',
                fields={'confirm': ['Must be true.']},
            )
        deleted = _store().delete('rule_impressions', all_rows=True)
        return Response({"deleted": deleted})
    except Exception as e:
        return _failure(e)


@api_view(['GET'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_responses(request):
    try:
        rows = _store().select('rule_responses', order_by='-created_at')
        return Response({"count": len(rows), "results": rows})
    except Exception as e:
        return _failure(e)


@api_view(['DELETE'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_response_detail(request, response_id: int):
    try:
        if not _store().delete('rule_responses', response_id):
            return not_found("Response not found")
        return Response(status=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        return _failure(e)


@api_view(['GET'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_suggestions(request):
    try:
        rows = _store().select('suggestions', order_by='-created_at')
        return Response({"count": len(rows), "results": rows})
    except Exception as e:
        return _failure(e)


@api_view(['DELETE'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_suggestion_detail(request, suggestion_id: int):
    try:
        if not _store().delete('suggestions', suggestion_id):
            return not_found("Suggestion not found")
        return Response(status=status.HTTP_204_NO_CONTENT)
    except Exception as e:
        return _failure(e)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsRulesAdmin])
def admin_suggestion_approve(request, suggestion_id: int):
    """Copy a suggestion into the rule corpus and remove it from the queue."""
    try:
        with transaction.atomic():
            s = Suggestion.objects.select_for_update().filter(pk=suggestion_id).first()
            if s is None:
                return not_found("Suggestion not found")
            rule = Rule.objects.create(
                title=s.title,
                description=s.description,
                area=list(s.area or []),
                discipline=s.discipline,
                skill=s.skill,
            )
            s.delete()
        return Response(rule.to_row(), status=status.HTTP_201_CREATED)
    except Exception as e:
        return _failure(e)

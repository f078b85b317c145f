from django.urls import path

from . import api

urlpatterns = [
    path('rules', api.api_rules, name='api_rules'),
    path('rules/random', api.api_random_rule, name='api_random_rule'),
    path('rules/responses', api.api_rule_response, name='api_rule_response'),
    path('rules/<int:rule_id>/impressions', api.api_rule_impression, name='api_rule_impression'),
    path('suggestions', api.api_submit_suggestion, name='api_submit_suggestion'),
    # Admin
    path('admin/rules', api.admin_rules, name='admin_rules'),
    path('admin/rules/delete-all', api.admin_rules_delete_all, name='admin_rules_delete_all'),
    path('admin/rules/import', api.admin_rules_import, name='admin_rules_import'),
    path('admin/rules/import-sheet', api.admin_rules_import_sheet, name='admin_rules_import_sheet'),
    path('admin/rules/export', api.admin_rules_export, name='admin_rules_export'),
    path('admin/rules/statistics', api.admin_rule_statistics, name='admin_rule_statistics'),
    path('admin/rules/<int:rule_id>', api.admin_rule_detail, name='admin_rule_detail'),
    path('admin/impressions/purge', api.admin_impressions_purge, name='admin_impressions_purge'),
    path('admin/responses', api.admin_responses, name='admin_responses'),
    path('admin/responses/<int:response_id>', api.admin_response_detail, name='admin_response_detail'),
    path('admin/suggestions', api.admin_suggestions, name='admin_suggestions'),
    path('admin/suggestions/<int:suggestion_id>', api.admin_suggestion_detail, name='admin_suggestion_detail'),
    path('admin/suggestions/<int:suggestion_id>/approve', api.admin_suggestion_approve, name='admin_suggestion_approve'),
]

from django.contrib import admin, messages
from django.http import HttpResponse

from .csv_parser import format_row
from .mapping import RuleColumn
from .models import Rule, RuleImpression, RuleResponse, Suggestion


@admin.register(Rule)
class RuleAdmin(admin.ModelAdmin):
    list_display = ("title", "discipline", "skill", "created_at")
    search_fields = ("title", "description")
    list_filter = ("discipline", "skill")
    actions = ("export_selected_as_csv",)

    def export_selected_as_csv(self, request, queryset):
        """Export selected rules in the same CSV shape the importer accepts."""
        columns = [c.value for c in RuleColumn]
        lines = [format_row(columns)]
        for obj in queryset:
            lines.append(format_row([obj.title, obj.description, ";".join(obj.area or []), obj.discipline, obj.skill]))
        response = HttpResponse("\r\n".join(lines) + "\r\n", content_type="text/csv")
        response["Content-Disposition"] = "attachment; filename=rules.csv"
        return response
    export_selected_as_csv.short_description = "Export selected as CSV"


@admin.register(RuleImpression)
class RuleImpressionAdmin(admin.ModelAdmin):
    list_display = ("rule_title", "rule", "action", "created_at")
    search_fields = ("rule_title",)
    list_filter = ("action",)


@admin.register(RuleResponse)
class RuleResponseAdmin(admin.ModelAdmin):
    list_display = ("rule_title", "resonates", "applicable", "learned_new", "created_at")
    search_fields = ("rule_title", "thoughts")
    list_filter = ("resonates", "applicable", "learned_new")


@admin.register(Suggestion)
class SuggestionAdmin(admin.ModelAdmin):
    list_display = ("title", "discipline", "skill", "created_at")
    search_fields = ("title", "description")
    actions = ("approve_selected",)

    def approve_selected(self, request, queryset):
        """Copy selected suggestions into the rule corpus and remove them."""
        created = 0
        for s in queryset:
            Rule.objects.create(
                title=s.title,
                description=s.description,
                area=list(s.area or []),
                discipline=s.discipline,
                skill=s.skill,
            )
            s.delete()
            created += 1
        self.message_user(request, f"Approved {created} suggestions", level=messages.SUCCESS)
    approve_selected.short_description = "Approve selected suggestions"

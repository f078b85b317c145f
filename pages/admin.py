from django.contrib import admin

from .models import PageContent


@admin.register(PageContent)
class PageContentAdmin(admin.ModelAdmin):
    list_display = ("page_name", "section_key", "updated_at")
    list_filter = ("page_name",)
    search_fields = ("page_name", "section_key", "content")
    readonly_fields = ("updated_at",)

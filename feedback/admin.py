from django.contrib import admin

from .models import ContactSubmission, GuidanceRecord


@admin.register(ContactSubmission)
class ContactSubmissionAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)
    readonly_fields = ("email_plain", "message_plain", "created_at")
    exclude = ("email_encrypted", "message_encrypted")

    def email_plain(self, obj):
        return obj.email
    email_plain.short_description = "Email"

    def message_plain(self, obj):
        return obj.message
    message_plain.short_description = "Message"


@admin.register(GuidanceRecord)
class GuidanceRecordAdmin(admin.ModelAdmin):
    list_display = ("scenario", "created_at")
    search_fields = ("scenario", "reply")

from django.contrib import admin

from . import models


@admin.register(models.EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ["to", "subject", "sent_at"]
    search_fields = ["to", "subject"]
    readonly_fields = ["to", "subject", "body", "html_body", "sent_at"]
    date_hierarchy = "sent_at"

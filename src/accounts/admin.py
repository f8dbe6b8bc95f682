"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import SchoolUser


@admin.register(SchoolUser)
class SchoolUserAdmin(UserAdmin):  # type: ignore[type-arg]
    list_display = ["username", "email", "first_name", "last_name", "role", "student_id", "grade", "house"]
    list_filter = ["role", "house", "grade", "is_staff", "is_superuser", "is_active"]
    search_fields = ["username", "email", "first_name", "last_name", "student_id"]
    ordering = ["username"]
    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("School", {"fields": ("role", "student_id", "grade", "house", "phone", "avatar", "email_notifications")}),
    )

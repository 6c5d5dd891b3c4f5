from django.contrib import admin

from accounts.models import EmailCode, Tutor, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["email", "full_name", "verified", "is_staff", "date_joined"]
    list_filter = ["verified", "is_staff"]
    search_fields = ["email", "full_name"]


@admin.register(Tutor)
class TutorAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "user"]
    search_fields = ["name", "email"]


@admin.register(EmailCode)
class EmailCodeAdmin(admin.ModelAdmin):
    list_display = ["user", "purpose", "is_used", "attempts", "expires_at"]
    list_filter = ["purpose", "is_used"]
    readonly_fields = ["code_hash"]

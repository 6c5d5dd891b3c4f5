from django.contrib import admin

from schedules.models import Registration, Schedule, Session


class SessionInline(admin.TabularInline):
    model = Session
    extra = 1


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ["title", "slug", "status", "price", "created_at"]
    list_filter = ["status"]
    search_fields = ["title", "slug"]
    inlines = [SessionInline]


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ["user", "schedule", "session", "status", "payment_status", "created_at"]
    list_filter = ["status", "payment_status", "is_full_class_request"]
    search_fields = ["user__email", "schedule__title"]

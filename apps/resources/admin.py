"""Admin registration for resources."""

from __future__ import annotations

from django.contrib import admin

from .models import AvailabilityWindow, Resource


class AvailabilityWindowInline(admin.TabularInline):
    model = AvailabilityWindow
    extra = 0
    fields = ("start_time", "end_time", "is_available", "created_at")
    readonly_fields = ("start_time", "end_time", "is_available", "created_at")

    def has_add_permission(self, request, obj=None):  # type: ignore
        # Windows are created through the calendar service, which checks overlaps
        return False


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("title", "code", "hourly_rate", "capacity", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("title", "code")
    inlines = [AvailabilityWindowInline]


@admin.register(AvailabilityWindow)
class AvailabilityWindowAdmin(admin.ModelAdmin):
    list_display = ("resource", "start_time", "end_time", "is_available")
    list_filter = ("is_available",)
    readonly_fields = ("resource", "start_time", "end_time", "is_available", "created_at")

    def has_add_permission(self, request):  # type: ignore
        return False

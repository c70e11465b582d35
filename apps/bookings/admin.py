"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "resource",
        "requester_id",
        "status",
        "start_time",
        "end_time",
        "created_at",
    )
    list_filter = ("status", "start_time")
    search_fields = ("booking_code", "resource__title", "resource__code")
    readonly_fields = (
        "booking_code",
        "resource",
        "requester_id",
        "start_time",
        "end_time",
        "confirmed_at",
        "canceled_at",
        "created_at",
        "updated_at",
    )

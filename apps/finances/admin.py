"""Admin registration for finances."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment, PaymentMethod, ReconciliationCase, Refund


class RefundInline(admin.TabularInline):
    model = Refund
    extra = 0
    can_delete = False
    readonly_fields = ("refund_id", "amount", "status", "created_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "booking", "amount", "currency", "status", "paid_at")
    list_filter = ("status", "currency")
    search_fields = ("transaction_id", "idempotency_key", "booking__booking_code")
    readonly_fields = ("booking", "transaction_id", "idempotency_key", "amount", "currency", "paid_at", "metadata")
    inlines = [RefundInline]

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("id", "requester_id", "brand", "last4", "exp_month", "exp_year")
    search_fields = ("id", "last4")


@admin.register(ReconciliationCase)
class ReconciliationCaseAdmin(admin.ModelAdmin):
    list_display = ("id", "kind", "status", "transaction_id", "amount", "resource_id", "attempts", "created_at")
    list_filter = ("kind", "status")
    search_fields = ("transaction_id", "idempotency_key")
    readonly_fields = ("idempotency_key", "transaction_id", "amount", "currency", "booking", "resolved_at")

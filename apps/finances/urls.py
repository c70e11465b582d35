"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import PaymentViewSet, ReconciliationCaseViewSet

router = DefaultRouter()
router.register(r"payments", PaymentViewSet, basename="payment")
router.register(r"reconciliation-cases", ReconciliationCaseViewSet, basename="reconciliation-case")

urlpatterns = [
    path("", include(router.urls)),
]

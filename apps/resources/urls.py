"""URL routing for resources and their calendars."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    ResourceAvailabilityView,
    ResourceFreeSlotsView,
    ResourceViewSet,
    ResourceWindowDetailView,
    ResourceWindowListView,
)

router = DefaultRouter()
router.register(r"", ResourceViewSet, basename="resource")

urlpatterns = [
    path(
        "<int:resource_id>/availability/",
        ResourceAvailabilityView.as_view(),
        name="resource-availability",
    ),
    path(
        "<int:resource_id>/slots/",
        ResourceFreeSlotsView.as_view(),
        name="resource-slots",
    ),
    path(
        "<int:resource_id>/windows/",
        ResourceWindowListView.as_view(),
        name="resource-windows",
    ),
    path(
        "windows/<int:pk>/",
        ResourceWindowDetailView.as_view(),
        name="resource-window-detail",
    ),
    path("", include(router.urls)),
]

"""Catalog lookups used by the booking core."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.exceptions import ResourceNotFound
from shared.infrastructure.locking import lock_queryset_if_possible

from .models import Resource


@dataclass(frozen=True)
class ResourceSnapshot:
    """Pricing-relevant view of a resource, read once per request."""

    id: int
    title: str
    hourly_rate: Decimal
    capacity: int

    @classmethod
    def from_model(cls, resource: Resource) -> "ResourceSnapshot":
        return cls(
            id=resource.pk,
            title=resource.title,
            hourly_rate=Decimal(resource.hourly_rate),
            capacity=resource.capacity,
        )


def get_resource_snapshot(resource_id) -> ResourceSnapshot:
    """Return an immutable snapshot of an active resource or raise ResourceNotFound."""

    try:
        resource = Resource.objects.get(pk=resource_id, is_active=True)
    except (Resource.DoesNotExist, ValueError, TypeError):
        raise ResourceNotFound(resource_id)
    return ResourceSnapshot.from_model(resource)


def ensure_resource_exists(resource_id) -> None:
    if not Resource.objects.filter(pk=resource_id, is_active=True).exists():
        raise ResourceNotFound(resource_id)


def lock_resource(resource_id) -> Resource:
    """Load the resource row with a write lock (must run inside transaction.atomic()).

    Every write that has to keep per-resource invariants (window overlap,
    booking overlap) takes this lock first, so concurrent writers for the
    same resource are serialized while other resources proceed in parallel.
    """

    queryset = lock_queryset_if_possible(Resource.objects.filter(pk=resource_id, is_active=True))
    resource = queryset.first()
    if resource is None:
        raise ResourceNotFound(resource_id)
    return resource

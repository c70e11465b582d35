from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class Recorded(DomainEvent):
    pass


@pytest.fixture
def bus_and_received():
    bus = MessageBus()
    received = []
    bus.register_event_handler(Recorded, received.append)
    return bus, received


@pytest.mark.django_db
def test_events_are_published_only_after_commit(bus_and_received, django_capture_on_commit_callbacks):
    bus, received = bus_and_received

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork(bus=bus) as uow:
            uow.add_event(Recorded())
            assert len(uow.pending_events) == 1
            assert received == []

    assert len(received) == 1


@pytest.mark.django_db
def test_events_are_discarded_on_rollback(bus_and_received, django_capture_on_commit_callbacks):
    bus, received = bus_and_received

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork(bus=bus) as uow:
                uow.add_event(Recorded())
                raise RuntimeError("fail inside transaction")

    assert received == []
    assert callbacks == []

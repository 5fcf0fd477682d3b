"""Unit tests for the domain event primitives and the in-memory bus."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderSubmitted
from shared.domain.events import DomainEvent, DomainEventMixin
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        event = OrderSubmitted(
            aggregate_id=uuid4(), client_id=uuid4(), total_price=Decimal("10.00")
        )
        assert event.event_name == "OrderSubmitted"

    def test_events_are_immutable(self):
        event = OrderSubmitted(
            aggregate_id=uuid4(), client_id=uuid4(), total_price=Decimal("10.00")
        )
        with pytest.raises(AttributeError):
            event.total_price = Decimal("0")

    def test_subclasses_are_registered(self):
        assert DomainEvent.registry["OrderSubmitted"] is OrderSubmitted
        assert DomainEvent.registry["OrderCancelled"] is OrderCancelled

    def test_from_payload_parses_declared_types(self):
        order_id, client_id = uuid4(), uuid4()
        payload = {
            "aggregate_id": str(order_id),
            "event_id": str(uuid4()),
            "occurred_on": "2026-02-01T09:15:00+00:00",
            "event_name": "OrderSubmitted",
            "client_id": str(client_id),
            "total_price": "45.00",
        }

        event = DomainEvent.from_payload("OrderSubmitted", payload)

        assert isinstance(event, OrderSubmitted)
        assert event.aggregate_id == order_id
        assert event.client_id == client_id
        assert event.total_price == Decimal("45.00")
        assert isinstance(event.occurred_on, datetime)
        assert isinstance(event.event_id, UUID)

    def test_from_payload_keeps_plain_strings(self):
        event = DomainEvent.from_payload(
            "OrderCancelled",
            {
                "aggregate_id": str(uuid4()),
                "previous_status": "SUBMITTED",
                "total_price": "12.50",
            },
        )
        assert event.previous_status == "SUBMITTED"

    def test_from_payload_unknown_event(self):
        with pytest.raises(LookupError, match="NoSuchEvent"):
            DomainEvent.from_payload("NoSuchEvent", {})


class TestDomainEventMixin:
    def test_collects_and_clears_events(self):
        aggregate = DomainEventMixin()
        event = OrderCancelled(
            aggregate_id=uuid4(), previous_status="SUBMITTED", total_price=Decimal("1")
        )

        aggregate.add_domain_event(event)
        assert aggregate.domain_events == [event]

        aggregate.clear_domain_events()
        assert aggregate.domain_events == []

    def test_domain_events_returns_a_copy(self):
        aggregate = DomainEventMixin()
        aggregate.domain_events.append("not stored")
        assert aggregate.domain_events == []


class _RecordingHandler:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class TestInMemoryEventBus:
    def test_publish_dispatches_to_subscribers_of_the_type(self):
        bus = InMemoryEventBus()
        submitted, cancelled = _RecordingHandler(), _RecordingHandler()
        bus.subscribe(OrderSubmitted, submitted)
        bus.subscribe(OrderCancelled, cancelled)

        event = OrderSubmitted(
            aggregate_id=uuid4(), client_id=uuid4(), total_price=Decimal("3.00")
        )
        bus.publish(event)

        assert submitted.events == [event]
        assert cancelled.events == []

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        handler = _RecordingHandler()
        bus.subscribe(OrderSubmitted, handler)
        bus.subscribe(OrderSubmitted, handler)
        assert bus.handlers_for(OrderSubmitted) == [handler]

    def test_publish_without_handlers_is_noop(self):
        bus = InMemoryEventBus()
        bus.publish(
            OrderCancelled(
                aggregate_id=uuid4(), previous_status="CONFIRMED", total_price=Decimal("1")
            )
        )

"""Unit tests for the outbox publisher task."""

from __future__ import annotations

from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import publish_outbox_events
from modules.orders.events import OrderConfirmed

pytestmark = pytest.mark.unit


def _confirmed_row(**overrides) -> OutboxEvent:
    aggregate_id = str(uuid4())
    defaults = {
        "event_type": "OrderConfirmed",
        "payload": {
            "aggregate_id": aggregate_id,
            "event_id": str(uuid4()),
            "occurred_on": "2026-03-01T10:00:00+00:00",
            "event_name": "OrderConfirmed",
        },
        "aggregate_id": aggregate_id,
        "topic": "orders",
    }
    defaults.update(overrides)
    return OutboxEvent.objects.create(**defaults)


class TestPublishOutboxEvents:
    def test_publishes_pending_rows(self):
        row = _confirmed_row()

        with patch("modules.core.tasks.event_bus.publish") as publish:
            result = publish_outbox_events()

        assert result == {"published": 1, "failed": 0}
        event = publish.call_args.args[0]
        assert isinstance(event, OrderConfirmed)
        assert str(event.aggregate_id) == row.aggregate_id
        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED

    def test_unknown_event_type_marks_row_failed(self):
        row = _confirmed_row(event_type="SomethingElse")

        result = publish_outbox_events()

        assert result == {"published": 0, "failed": 1}
        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert row.attempts == 1
        assert "SomethingElse" in row.last_error

    def test_handler_error_marks_row_failed_and_continues(self):
        failing = _confirmed_row()
        succeeding = _confirmed_row()

        def publish(event):
            if str(event.aggregate_id) == failing.aggregate_id:
                raise RuntimeError("handler exploded")

        with patch("modules.core.tasks.event_bus.publish", side_effect=publish):
            result = publish_outbox_events()

        assert result == {"published": 1, "failed": 1}
        failing.refresh_from_db()
        succeeding.refresh_from_db()
        assert failing.status == EventStatus.FAILED
        assert failing.last_error == "handler exploded"
        assert succeeding.status == EventStatus.PUBLISHED

    def test_failed_rows_are_retried_until_limit(self, settings):
        settings.OUTBOX_MAX_ATTEMPTS = 2
        row = _confirmed_row(status=EventStatus.FAILED, attempts=1)

        with patch("modules.core.tasks.event_bus.publish", side_effect=RuntimeError("x")):
            publish_outbox_events()
            second = publish_outbox_events()

        row.refresh_from_db()
        assert row.attempts == 2
        assert second == {"published": 0, "failed": 0}

    def test_respects_batch_size(self):
        for _ in range(3):
            _confirmed_row()

        with patch("modules.core.tasks.event_bus.publish"):
            result = publish_outbox_events(batch_size=2)

        assert result == {"published": 2, "failed": 0}
        assert OutboxEvent.objects.filter(status=EventStatus.PENDING).count() == 1

    def test_published_rows_are_not_republished(self):
        _confirmed_row(status=EventStatus.PUBLISHED)
        with patch("modules.core.tasks.event_bus.publish") as publish:
            result = publish_outbox_events()
        assert result == {"published": 0, "failed": 0}
        publish.assert_not_called()

"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def _dispatch(row: OutboxEvent) -> None:
    event_bus.publish(DomainEvent.from_payload(row.event_type, row.payload))


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size=None):
    """Drain the outbox onto the in-process event bus, oldest rows first.

    A row whose event type is unknown or whose handler raises is marked
    FAILED and picked up again on later runs until it has been tried
    ``OUTBOX_MAX_ATTEMPTS`` times.
    """
    rows = OutboxEvent.objects.publishable(settings.OUTBOX_MAX_ATTEMPTS)
    batch = list(rows[: batch_size or settings.OUTBOX_BATCH_SIZE])

    counts = {"published": 0, "failed": 0}
    for row in batch:
        log = logger.bind(
            outbox_event_id=str(row.id),
            event_type=row.event_type,
            aggregate_id=row.aggregate_id,
        )
        try:
            _dispatch(row)
        except Exception as exc:
            row.mark_failed(str(exc))
            counts["failed"] += 1
            log.error("outbox.publish_failed", attempts=row.attempts, exc_info=True)
        else:
            row.mark_published()
            counts["published"] += 1
            log.info("outbox.published")

    logger.info("outbox.batch_processed", **counts)
    return counts

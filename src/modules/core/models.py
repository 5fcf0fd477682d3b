"""Shared model infrastructure.

- ``BaseModel``: UUIDv7 primary key plus creation/modification timestamps.
  UUIDv7 keys grow with time, so ``("-created_at", "-id")`` orders rows
  newest first even when two of them share a timestamp.
- ``SoftDeleteModel``: rows are hidden by stamping ``deleted_at``; the
  catalog uses it so books referenced by past orders never disappear.
- ``OutboxEvent``: domain events written in the transaction that produced
  them and published later by ``core.publish_outbox_events``.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now fields are skipped when they are not listed in update_fields.
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=False)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Stamp ``deleted_at`` on every live row instead of removing it."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}


class SoftDeleteModel(BaseModel):
    """Abstract model whose ``delete()`` only stamps ``deleted_at``.

    ``objects`` is unfiltered; callers pick ``objects.alive()`` or
    ``objects.dead()`` explicitly.
    """

    deleted_at = models.DateTimeField(null=True, blank=True, default=None, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self._stamp_deleted_at(timezone.now())
        return 1, {self._meta.label: 1}

    def restore(self) -> None:
        if self.is_deleted:
            self._stamp_deleted_at(None)

    def _stamp_deleted_at(self, value) -> None:
        self.deleted_at = value
        self.save(update_fields=["deleted_at"])


# ---------------------------------------------------------------------------
# Transactional outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxEventQuerySet(models.QuerySet):
    def publishable(self, max_attempts: int) -> OutboxEventQuerySet:
        """PENDING rows plus FAILED rows below ``max_attempts``, oldest first."""
        retryable = models.Q(status=EventStatus.FAILED, attempts__lt=max_attempts)
        return self.filter(models.Q(status=EventStatus.PENDING) | retryable).order_by(
            "created_at", "id"
        )


class OutboxEvent(BaseModel):
    """A domain event waiting to be dispatched on the event bus.

    ``payload`` holds the JSON form of the event; ``event_type`` is the
    event class name used by ``DomainEvent.from_payload`` to rebuild it.
    Each failed dispatch increments ``attempts`` and keeps the error in
    ``last_error``.
    """

    event_type = models.CharField(max_length=100)
    topic = models.CharField(max_length=100)
    aggregate_id = models.CharField(max_length=64)
    payload = models.JSONField()
    status = models.CharField(
        max_length=20, choices=EventStatus.choices, default=EventStatus.PENDING
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    published_at = models.DateTimeField(null=True, blank=True, default=None)

    objects = OutboxEventQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="outbox_status_created_idx"),
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_idx"),
        ]

    def mark_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.published_at = timezone.now()
        self.last_error = ""
        self.save(update_fields=["status", "published_at", "last_error"])

    def mark_failed(self, error: str) -> None:
        self.status = EventStatus.FAILED
        self.attempts += 1
        self.last_error = error
        self.save(update_fields=["status", "attempts", "last_error"])

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"

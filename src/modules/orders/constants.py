"""Order domain constants.

Status choices and the valid transitions of the order state machine::

    DRAFT -> SUBMITTED -> CONFIRMED
                 |           |
                 +---------> CANCELLED

DRAFT has no incoming transition; CANCELLED is terminal.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    SUBMITTED = "SUBMITTED", "Submitted"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.DRAFT: {OrderStatus.SUBMITTED},
    OrderStatus.SUBMITTED: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.CANCELLED}

ORDER_EVENTS_TOPIC = "orders"

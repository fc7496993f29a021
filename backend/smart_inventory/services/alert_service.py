# Overview: Low-stock / out-of-stock alert gate, per-unit-of-work outbox and post-commit dispatch.

"""
Stock Alert Rules (authoritative)

evaluate_alert() is a pure decision function, evaluated in this order:

1. new_quantity == 0            -> OUT_OF_STOCK, always (ignores the flag);
                                   flag forced True (zero is below threshold).
2. new_quantity < threshold and
   flag is False                -> LOW_STOCK; flag set True.
3. new_quantity >= threshold and
   flag is True                 -> no event; flag reset to False (silent).
4. otherwise                    -> no event; flag unchanged.

So LOW_STOCK fires at most once per dip below the threshold, and OUT_OF_STOCK
fires every time stock reaches zero.

Alerts are never sent from inside a unit of work. The stock service queues an
AlertIntent on the AlertOutbox owned by the current attempt; the outbox is
flushed by dispatch_alerts() only after the unit commits. A rolled-back sale
therefore never produces an alert. Each intent fans out to two independent,
best-effort sinks (owner email and in-app notification); their failures are
logged and never reach the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import NotificationDeliveryError
from ..models.communications import TYPE_ALERT, TYPE_WARNING
from . import email_service, notification_service

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5

EVENT_LOW_STOCK = "LOW_STOCK"
EVENT_OUT_OF_STOCK = "OUT_OF_STOCK"


@dataclass(frozen=True)
class AlertDecision:
    new_flag: bool
    event: str | None = None


def evaluate_alert(previous_quantity: int, new_quantity: int, previous_flag: bool) -> AlertDecision:
    """Decide the alert flag transition and whether an event fires. No I/O."""
    if new_quantity == 0:
        return AlertDecision(new_flag=True, event=EVENT_OUT_OF_STOCK)

    if new_quantity < LOW_STOCK_THRESHOLD:
        if not previous_flag:
            return AlertDecision(new_flag=True, event=EVENT_LOW_STOCK)
        return AlertDecision(new_flag=True)

    # At or above threshold: replenished (or never low)
    return AlertDecision(new_flag=False)


@dataclass(frozen=True)
class AlertIntent:
    shop_id: int
    product_id: int
    product_name: str
    event: str
    current_stock: int
    recipient_email: str | None = None

    @property
    def notification_message(self) -> str:
        if self.event == EVENT_OUT_OF_STOCK:
            return f"{self.product_name} is now OUT OF STOCK!"
        return f"{self.product_name} is low on stock ({self.current_stock} left)"

    @property
    def notification_type(self) -> str:
        return TYPE_ALERT if self.event == EVENT_OUT_OF_STOCK else TYPE_WARNING


@dataclass
class AlertOutbox:
    """Alert intents queued during one unit-of-work attempt."""
    intents: list[AlertIntent] = field(default_factory=list)

    def add(self, intent: AlertIntent) -> None:
        self.intents.append(intent)

    def __len__(self) -> int:
        return len(self.intents)

    def drain(self) -> list[AlertIntent]:
        pending, self.intents = self.intents, []
        return pending


def _send_email(intent: AlertIntent) -> None:
    if not intent.recipient_email:
        logger.info(
            "No owner email for shop %s; skipping %s email for %r",
            intent.shop_id, intent.event, intent.product_name,
        )
        return
    if intent.event == EVENT_OUT_OF_STOCK:
        email_service.send_out_of_stock_alert(intent.recipient_email, intent.product_name)
    else:
        email_service.send_low_stock_alert(
            intent.recipient_email, intent.product_name, intent.current_stock
        )


def dispatch_alerts(outbox: AlertOutbox) -> int:
    """
    Deliver every queued intent. Call only after the owning unit committed.

    Returns the number of intents processed. Never raises for delivery
    failures.
    """
    intents = outbox.drain()
    for intent in intents:
        try:
            _send_email(intent)
        except NotificationDeliveryError:
            logger.exception(
                "Failed to send %s email for product %s", intent.event, intent.product_id
            )
        except Exception:
            logger.exception(
                "Unexpected error sending %s email for product %s", intent.event, intent.product_id
            )

        try:
            notification_service.create_notification(
                intent.shop_id, intent.notification_message, intent.notification_type
            )
        except NotificationDeliveryError:
            logger.exception(
                "Failed to create %s notification for product %s", intent.event, intent.product_id
            )
        except Exception:
            logger.exception(
                "Unexpected error creating %s notification for product %s", intent.event, intent.product_id
            )
    return len(intents)

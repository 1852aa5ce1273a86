"""Notification boundary.

Flows call a Notifier after their unit of work has committed; the ledger
itself never notifies. Email delivery is owned by another service, so the
default implementation only writes a structured log line that the mail
relay tails.
"""

import logging
from decimal import Decimal
from typing import Protocol

from src.gc_common.amounts import amount_to_number

logger = logging.getLogger("gc.notify")


class Notifier(Protocol):
    async def award_received(
        self, email: str, name: str, amount: Decimal, manager_name: str, description: str | None
    ) -> None: ...

    async def transfer_sent(
        self, email: str, name: str, amount: Decimal, recipient_name: str
    ) -> None: ...

    async def transfer_received(
        self, email: str, name: str, amount: Decimal, sender_name: str, message: str | None
    ) -> None: ...

    async def wellness_approved(
        self, email: str, name: str, task_name: str, amount: Decimal
    ) -> None: ...

    async def wellness_rejected(
        self, email: str, name: str, task_name: str, reason: str | None
    ) -> None: ...

    async def purchase_confirmed(
        self, email: str, name: str, product_name: str, amount: Decimal
    ) -> None: ...

    async def purchase_fulfilled(
        self, email: str, name: str, product_name: str, tracking_number: str | None
    ) -> None: ...


class LogNotifier:
    """Notifier that records each message on the ``gc.notify`` logger."""

    async def _emit(self, kind: str, email: str, **params: object) -> None:
        details = " ".join(f"{k}={v!r}" for k, v in params.items())
        logger.info("notify %s to=%s %s", kind, email, details)

    async def award_received(
        self, email: str, name: str, amount: Decimal, manager_name: str, description: str | None
    ) -> None:
        await self._emit(
            "award_received", email, name=name, amount=amount_to_number(amount),
            manager=manager_name, description=description,
        )

    async def transfer_sent(
        self, email: str, name: str, amount: Decimal, recipient_name: str
    ) -> None:
        await self._emit(
            "transfer_sent", email, name=name, amount=amount_to_number(amount),
            recipient=recipient_name,
        )

    async def transfer_received(
        self, email: str, name: str, amount: Decimal, sender_name: str, message: str | None
    ) -> None:
        await self._emit(
            "transfer_received", email, name=name, amount=amount_to_number(amount),
            sender=sender_name, message=message,
        )

    async def wellness_approved(
        self, email: str, name: str, task_name: str, amount: Decimal
    ) -> None:
        await self._emit(
            "wellness_approved", email, name=name, task=task_name,
            amount=amount_to_number(amount),
        )

    async def wellness_rejected(
        self, email: str, name: str, task_name: str, reason: str | None
    ) -> None:
        await self._emit("wellness_rejected", email, name=name, task=task_name, reason=reason)

    async def purchase_confirmed(
        self, email: str, name: str, product_name: str, amount: Decimal
    ) -> None:
        await self._emit(
            "purchase_confirmed", email, name=name, product=product_name,
            amount=amount_to_number(amount),
        )

    async def purchase_fulfilled(
        self, email: str, name: str, product_name: str, tracking_number: str | None
    ) -> None:
        await self._emit(
            "purchase_fulfilled", email, name=name, product=product_name,
            tracking_number=tracking_number,
        )

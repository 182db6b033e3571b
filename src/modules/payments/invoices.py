"""Invoice documents for orders.

Invoices are plain-text documents rendered from a template and written
to Django's default storage (filesystem locally, any configured backend
in production).  Issuing an invoice never affects an order's payment
state: ``try_issue`` logs and swallows every failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.template.loader import render_to_string

from modules.orders.dtos import OrderOutputDTO

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

INVOICE_TEMPLATE = "payments/invoice.txt"


class InvoiceEmitter:
    def __init__(
        self,
        order_repository: IOrderRepository,
        storage: Optional[Storage] = None,
    ) -> None:
        self._order_repo = order_repository
        self._storage = storage or default_storage

    @staticmethod
    def storage_name(order: Order) -> str:
        return f"{settings.INVOICE_STORAGE_PREFIX}/invoice-{order.id}.txt"

    def render(self, order: Order) -> str:
        return render_to_string(
            INVOICE_TEMPLATE,
            {
                "order": OrderOutputDTO.from_entity(order),
                "owner": order.owner,
                "currency": settings.CURRENCY,
            },
        )

    def issue(self, order: Order) -> str:
        """Render, store and attach the invoice; returns its URL.

        The storage key is stable per order, so issuing again replaces
        the previous document.
        """
        content = self.render(order)
        name = self.storage_name(order)
        if self._storage.exists(name):
            self._storage.delete(name)
        saved_name = self._storage.save(name, ContentFile(content.encode("utf-8")))
        url = self._storage.url(saved_name)

        self._order_repo.attach_invoice(order.id, url)
        logger.info("invoice.issued", order_id=str(order.id), storage_name=saved_name)
        return url

    def try_issue(self, order: Order) -> Optional[str]:
        try:
            return self.issue(order)
        except Exception:
            logger.exception("invoice.generation_failed", order_id=str(order.id))
            return None

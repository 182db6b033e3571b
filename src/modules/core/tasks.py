"""Asynchronous tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int | None = None) -> dict:
    """Publish relayable outbox events on the in-process event bus.

    Rows are claimed with ``SELECT ... FOR UPDATE SKIP LOCKED`` so two
    workers never relay the same event.  A failing handler marks only its
    own event as failed; the rest of the batch is still relayed.
    """
    batch_size = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
    published = failed = 0

    with transaction.atomic():
        events = list(
            OutboxEvent.objects.relayable(settings.OUTBOX_MAX_RETRIES)
            .select_for_update(skip_locked=True)[:batch_size]
        )
        for outbox_event in events:
            log = logger.bind(
                outbox_event_id=str(outbox_event.id),
                event_type=outbox_event.event_type,
                aggregate_id=outbox_event.aggregate_id,
            )
            try:
                with transaction.atomic():
                    domain_event = DomainEvent.from_payload(
                        outbox_event.event_type, outbox_event.payload
                    )
                    event_bus.publish(domain_event)
            except Exception as exc:
                log.exception("outbox.relay_failed")
                outbox_event.mark_as_failed(str(exc))
                failed += 1
                continue
            outbox_event.mark_as_published()
            published += 1

    logger.info("outbox.relayed", published=published, failed=failed)
    return {"published": published, "failed": failed}

"""Tasks assíncronas do módulo de estoque."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.inventory.services import SWEEP_BATCH_SIZE, build_inventory_ledger
from modules.orders.constants import RELEASING_STATES

logger = structlog.get_logger(__name__)


@shared_task(name="inventory.sweep_unreleased_reservations")
def sweep_unreleased_reservations(batch_size: int = SWEEP_BATCH_SIZE) -> dict:
    """Devolve ao estoque reservas de pedidos rejeitados/cancelados não liberadas."""
    with transaction.atomic():
        result = build_inventory_ledger().sweep_unreleased(
            RELEASING_STATES, batch_size=batch_size
        )
    logger.info("inventory.sweep_completed", **result)
    return result

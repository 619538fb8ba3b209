from __future__ import annotations

import logging

from backoffice.errors import StoreError
from backoffice.models import OrderSyncEvent, OrderSyncStatus
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)


def log_sync_event(
    store: OrderStore,
    *,
    tenant_id: str,
    external_order_id: str | None,
    success: bool,
    sales_order_id: int | None = None,
    order_number: str | None = None,
    error: str | None = None,
    metadata: dict | None = None,
) -> None:
    """Record one reconciliation attempt. Never fails the caller."""
    try:
        with store.transaction() as db:
            db.add(
                OrderSyncEvent(
                    tenant_id=tenant_id,
                    external_order_id=external_order_id,
                    status=OrderSyncStatus.SUCCESS if success else OrderSyncStatus.FAILED,
                    sales_order_id=sales_order_id,
                    order_number=order_number,
                    error_text=error,
                    meta=metadata or {},
                )
            )
    except StoreError as exc:
        logger.warning('Sync event for external order %s not recorded: %s', external_order_id, exc)

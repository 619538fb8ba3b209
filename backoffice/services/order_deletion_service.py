from __future__ import annotations

import logging

from backoffice.errors import StoreError
from backoffice.schemas import OperationResult
from backoffice.services.order_status_service import ORDER_NOT_FOUND
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)


def delete_order(store: OrderStore, *, tenant_id: str, order_id: int, ledger_category: str) -> OperationResult:
    """Remove an order's lines, its sales ledger entry, then the header, in that order."""
    try:
        order_number = store.get_order_number(tenant_id=tenant_id, order_id=order_id)
    except StoreError as exc:
        return OperationResult(success=False, error=str(exc))
    if order_number is None:
        return OperationResult(success=False, error=ORDER_NOT_FOUND)

    try:
        store.delete_order_lines(order_id=order_id)
    except StoreError as exc:
        return OperationResult(success=False, error=f'Failed to delete order items: {exc}')

    try:
        store.delete_ledger_entries(tenant_id=tenant_id, reference_number=order_number, category=ledger_category)
    except StoreError as exc:
        logger.warning('Ledger entry for %s not removed: %s', order_number, exc)

    try:
        store.delete_sales_order(tenant_id=tenant_id, order_id=order_id)
    except StoreError as exc:
        return OperationResult(success=False, error=f'Failed to delete order: {exc}')

    logger.info('Deleted order %s (%s)', order_id, order_number)
    return OperationResult(success=True)

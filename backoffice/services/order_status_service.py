from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backoffice.errors import StoreError
from backoffice.models import (
    FinancialTransaction,
    InventoryItem,
    LedgerEntryType,
    OrderStatus,
    SalesOrder,
    SalesOrderLine,
    SalesOrderStatusHistory,
)
from backoffice.schemas import OperationResult
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)

EXTERNAL_STATUS_MAP: dict[str, OrderStatus] = {
    'Order Confirmed': OrderStatus.CONFIRMED,
    'Order Pending Delivery': OrderStatus.SHIPPED,
    'Order Delivered': OrderStatus.DELIVERED,
    'Ship': OrderStatus.SHIPPED,
    'Deliver': OrderStatus.DELIVERED,
}

ORDER_NOT_FOUND = 'Order not found'


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def map_external_status(label: str) -> str:
    """Translate a UI/storefront status label into the stored status value.

    Unknown labels are not rejected; they are stored lower-cased.
    """
    mapped = EXTERNAL_STATUS_MAP.get(label.strip())
    if mapped is not None:
        return mapped.value
    return label.strip().lower()


def _apply_delivery_effects(db: Session, order: SalesOrder, *, ledger_category: str, now: datetime) -> None:
    # The sales ledger row marks the first delivery; stock and income move together under it.
    existing_entry = db.execute(
        select(FinancialTransaction.id)
        .where(
            FinancialTransaction.tenant_id == order.tenant_id,
            FinancialTransaction.reference_number == order.order_number,
            FinancialTransaction.category == ledger_category,
        )
        .limit(1)
    ).first()
    if existing_entry:
        logger.info('Order %s was already delivered once, stock and ledger left as they are', order.order_number)
        return

    lines = db.execute(
        select(SalesOrderLine.inventory_item_id, SalesOrderLine.quantity).where(SalesOrderLine.sales_order_id == order.id)
    ).all()
    for line in lines:
        db.execute(
            update(InventoryItem)
            .where(InventoryItem.id == line.inventory_item_id)
            .values(current_stock=InventoryItem.current_stock - line.quantity, updated_at=now)
        )

    db.add(
        FinancialTransaction(
            tenant_id=order.tenant_id,
            type=LedgerEntryType.INCOME,
            amount=order.total_amount,
            category=ledger_category,
            reference_number=order.order_number,
            payment_method=order.payment_method,
            description=f'Sales Order {order.order_number}',
            date=now,
        )
    )


def update_order_status(
    store: OrderStore,
    *,
    tenant_id: str,
    order_id: int,
    status: str,
    ledger_category: str,
    reason: str | None = None,
) -> OperationResult:
    """
    Move an order to the status named by an external label.

    The first move into ``delivered`` also decrements stock for every line and
    books one income ledger entry keyed by the order number. Later delivered
    updates, even after a move away from ``delivered``, change nothing else.
    Store errors are returned as-is.
    """
    new_status = map_external_status(status)
    if not new_status:
        return OperationResult(success=False, error='Status is required')
    now = _now()
    try:
        with store.transaction() as db:
            order = db.execute(
                select(SalesOrder)
                .where(SalesOrder.tenant_id == tenant_id, SalesOrder.id == order_id)
                .with_for_update()
            ).scalar_one_or_none()
            if order is None:
                return OperationResult(success=False, error=ORDER_NOT_FOUND)

            previous_status = order.status
            order.status = new_status
            order.updated_at = now
            db.add(
                SalesOrderStatusHistory(
                    sales_order_id=order.id,
                    previous_status=previous_status,
                    new_status=new_status,
                    reason=reason or f'Status updated to {new_status}',
                )
            )
            if new_status == OrderStatus.DELIVERED.value:
                _apply_delivery_effects(db, order, ledger_category=ledger_category, now=now)
    except StoreError as exc:
        logger.warning('Status update of order %s to %s failed: %s', order_id, new_status, exc)
        return OperationResult(success=False, error=str(exc))

    logger.info('Order %s moved from %s to %s', order_id, previous_status, new_status)
    return OperationResult(success=True)

from __future__ import annotations

import logging
from decimal import Decimal

from backoffice.errors import OrderAssemblyError, OrderLineMappingError, StoreError
from backoffice.models import OrderStatus
from backoffice.schemas import StorefrontOrderItem, StorefrontOrderPayload
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)

INITIAL_STATUS_REASON = 'Initial order placement from storefront'
DEFAULT_NOTES = 'Storefront Order'


def build_order_lines(items: list[StorefrontOrderItem], catalog_items: dict[str, int]) -> list[dict]:
    rows: list[dict] = []
    for item in items:
        inventory_item_id = catalog_items.get(item.effective_sku)
        if inventory_item_id is None:
            raise OrderLineMappingError(f'Inventory item not found for SKU: {item.effective_sku}')
        rows.append(
            {
                'inventory_item_id': inventory_item_id,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'total_price': item.total_price,
                'discount': Decimal('0.00'),
            }
        )
    return rows


def _compensate_header(store: OrderStore, *, tenant_id: str, order_id: int) -> None:
    try:
        store.delete_sales_order(tenant_id=tenant_id, order_id=order_id)
    except StoreError:
        logger.exception('Rollback of sales order %s failed; header left without lines', order_id)


def assemble_order(
    store: OrderStore,
    *,
    tenant_id: str,
    origin: str,
    order_number: str,
    customer_id: int | None,
    payload: StorefrontOrderPayload,
    catalog_items: dict[str, int],
) -> int:
    """
    Persist the order header and its lines as one logical unit.

    Lines are matched to catalog items before anything is written. If the bulk
    line insert fails the header is deleted again (single best-effort step) and
    OrderAssemblyError is raised. The initial status history row is
    supplementary: its failure is logged and the order still counts as created.
    """
    line_rows = build_order_lines(payload.items, catalog_items)

    contact = payload.customer_info
    try:
        order_id = store.insert_sales_order(
            tenant_id=tenant_id,
            order_number=order_number,
            customer_id=customer_id,
            external_order_id=payload.order_id,
            order_date=payload.order_date,
            total_amount=payload.total_amount,
            status=OrderStatus.PENDING.value,
            payment_method=payload.payment_method,
            notes=payload.notes or DEFAULT_NOTES,
            order_source=origin,
            shipping_address=contact.address,
            shipping_city=contact.city,
            shipping_postal_code=contact.postal_code,
            customer_email=contact.email,
            customer_phone=contact.phone,
        )
    except StoreError as exc:
        raise OrderAssemblyError(str(exc)) from exc

    for row in line_rows:
        row['sales_order_id'] = order_id
    try:
        store.insert_order_lines(line_rows)
    except StoreError as exc:
        logger.warning('Order items insert failed for %s, removing header %s: %s', order_number, order_id, exc)
        _compensate_header(store, tenant_id=tenant_id, order_id=order_id)
        raise OrderAssemblyError(f'Failed to create order items: {exc}') from exc

    try:
        store.insert_status_history(
            order_id=order_id,
            new_status=OrderStatus.PENDING.value,
            reason=INITIAL_STATUS_REASON,
        )
    except StoreError as exc:
        logger.warning('Initial status history for order %s not recorded: %s', order_number, exc)

    return order_id

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.errors import StoreError
from backoffice.models import Customer, InventoryItem, SalesOrder, SalesOrderLine, storefront_orders_view
from backoffice.schemas import StorefrontOrderItemView, StorefrontOrderView
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)

UNKNOWN_CUSTOMER = 'Unknown Customer'


def _text(value) -> str:
    return '' if value is None else str(value)


def _item_view(raw: Mapping) -> StorefrontOrderItemView:
    return StorefrontOrderItemView(**{key: value for key, value in raw.items() if value is not None})


def _order_view(row: Mapping, items: list) -> StorefrontOrderView:
    customer_name = row.get('customer_name') or UNKNOWN_CUSTOMER
    return StorefrontOrderView(
        id=row['id'],
        order_number=_text(row.get('order_number')),
        status=_text(row.get('status')),
        order_date=row.get('order_date'),
        total_amount=row.get('total_amount') or Decimal('0'),
        payment_method=_text(row.get('payment_method')),
        shipping_address=_text(row.get('shipping_address')),
        shipping_city=_text(row.get('shipping_city')),
        shipping_postal_code=_text(row.get('shipping_postal_code')),
        customer_email=_text(row.get('customer_email')),
        customer_phone=_text(row.get('customer_phone')),
        delivery_instructions=_text(row.get('delivery_instructions')),
        customer_name=customer_name,
        user_email=_text(row.get('customer_email')),
        customer_record_name=customer_name,
        order_items=[_item_view(item) for item in items or []],
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at'),
    )


def _read_view(db: Session, *, tenant_id: str, origin: str | None, order_id: int | None) -> list[StorefrontOrderView]:
    view = storefront_orders_view
    stmt = select(view).where(view.c.tenant_id == tenant_id)
    if origin is not None:
        stmt = stmt.where(view.c.order_source == origin)
    if order_id is not None:
        stmt = stmt.where(view.c.id == order_id)
    rows = db.execute(stmt.order_by(view.c.created_at.desc(), view.c.id.desc())).mappings().all()
    return [_order_view(row, row.get('order_items')) for row in rows]


def _read_tables(db: Session, *, tenant_id: str, origin: str | None, order_id: int | None) -> list[StorefrontOrderView]:
    stmt = (
        select(SalesOrder, Customer.name)
        .outerjoin(Customer, Customer.id == SalesOrder.customer_id)
        .where(SalesOrder.tenant_id == tenant_id)
    )
    if origin is not None:
        stmt = stmt.where(SalesOrder.order_source == origin)
    if order_id is not None:
        stmt = stmt.where(SalesOrder.id == order_id)
    orders = db.execute(stmt.order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc())).all()
    if not orders:
        return []

    items_by_order: dict[int, list[dict]] = {}
    line_rows = db.execute(
        select(SalesOrderLine, InventoryItem.name, InventoryItem.sku)
        .outerjoin(InventoryItem, InventoryItem.id == SalesOrderLine.inventory_item_id)
        .where(SalesOrderLine.sales_order_id.in_([order.id for order, _name in orders]))
        .order_by(SalesOrderLine.id.asc())
    ).all()
    for line, product_name, sku in line_rows:
        items_by_order.setdefault(line.sales_order_id, []).append(
            {
                'id': line.id,
                'product_id': line.inventory_item_id,
                'product_name': product_name,
                'sku': sku,
                'quantity': line.quantity,
                'unit_price': line.unit_price,
                'total_price': line.total_price,
                'discount': line.discount,
            }
        )

    return [
        _order_view(
            {
                'id': order.id,
                'order_number': order.order_number,
                'status': order.status,
                'order_date': order.order_date,
                'total_amount': order.total_amount,
                'payment_method': order.payment_method,
                'shipping_address': order.shipping_address,
                'shipping_city': order.shipping_city,
                'shipping_postal_code': order.shipping_postal_code,
                'customer_email': order.customer_email,
                'customer_phone': order.customer_phone,
                'delivery_instructions': order.delivery_instructions,
                'customer_name': customer_name,
                'created_at': order.created_at,
                'updated_at': order.updated_at,
            },
            items_by_order.get(order.id, []),
        )
        for order, customer_name in orders
    ]


def _load_orders(
    store: OrderStore,
    *,
    tenant_id: str,
    origin: str | None = None,
    order_id: int | None = None,
) -> list[StorefrontOrderView]:
    # The view is an optimization; a missing or drifted view must not take listing down.
    try:
        with store.transaction() as db:
            return _read_view(db, tenant_id=tenant_id, origin=origin, order_id=order_id)
    except (StoreError, ValidationError, ValueError) as exc:
        logger.warning('Reading storefront_orders_for_admin failed, using table fallback: %s', exc)

    with store.transaction() as db:
        return _read_tables(db, tenant_id=tenant_id, origin=origin, order_id=order_id)


def list_storefront_orders(store: OrderStore, *, tenant_id: str, origin: str) -> list[StorefrontOrderView]:
    return _load_orders(store, tenant_id=tenant_id, origin=origin)


def get_storefront_order(store: OrderStore, *, tenant_id: str, order_id: int) -> StorefrontOrderView | None:
    orders = _load_orders(store, tenant_id=tenant_id, order_id=order_id)
    return orders[0] if orders else None

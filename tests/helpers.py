from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.models import Base
from backoffice.services.order_store import OrderStore
from backoffice.services.order_sync_service import OrderSyncService


TENANT_ID = 'tenant-test'
FIXED_NOW = datetime(2026, 3, 14, 10, 30, tzinfo=timezone.utc)

SQLITE_STOREFRONT_ORDERS_VIEW = """
CREATE VIEW storefront_orders_for_admin AS
SELECT
    so.id,
    so.tenant_id,
    so.order_number,
    so.status,
    so.order_date,
    so.total_amount,
    so.payment_method,
    so.order_source,
    so.shipping_address,
    so.shipping_city,
    so.shipping_postal_code,
    so.customer_email,
    so.customer_phone,
    so.delivery_instructions,
    c.name AS customer_name,
    (
        SELECT json_group_array(
            json_object(
                'id', l.id,
                'product_id', l.inventory_item_id,
                'product_name', i.name,
                'sku', i.sku,
                'quantity', l.quantity,
                'unit_price', l.unit_price,
                'total_price', l.total_price,
                'discount', l.discount
            )
        )
        FROM sales_order_lines l
        JOIN inventory_items i ON i.id = l.inventory_item_id
        WHERE l.sales_order_id = so.id
    ) AS order_items,
    so.created_at,
    so.updated_at
FROM sales_orders so
LEFT JOIN customers c ON c.id = so.customer_id
"""

BASE_PAYLOAD = {
    'orderId': 'EXT-1001',
    'customerInfo': {
        'firstName': 'Ada',
        'lastName': 'Lovelace',
        'email': 'a@x.com',
        'phone': '555-0100',
        'address': '12 Analytical Way',
        'city': 'London',
        'state': 'LDN',
        'postalCode': 'N1 9GU',
        'country': 'UK',
    },
    'items': [
        {
            'productId': 'P1',
            'productName': 'Brass Gear',
            'quantity': 2,
            'unitPrice': 500,
            'totalPrice': 1000,
        }
    ],
    'totalAmount': 1000,
    'paymentMethod': 'card',
    'orderDate': '2026-03-14T09:15:00Z',
}


def make_session_factory() -> sessionmaker[Session]:
    engine = create_engine(
        'sqlite+pysqlite:///:memory:',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def make_store() -> tuple[OrderStore, sessionmaker[Session]]:
    session_factory = make_session_factory()
    return OrderStore(session_factory), session_factory


def install_sqlite_view(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as db:
        db.execute(text(SQLITE_STOREFRONT_ORDERS_VIEW))
        db.commit()


def make_service(store: OrderStore, **overrides) -> OrderSyncService:
    values = {
        'tenant_id': TENANT_ID,
        'order_number_prefix': 'WEB',
        'origin': 'storefront',
        'clock': lambda: FIXED_NOW,
    }
    values.update(overrides)
    return OrderSyncService(store=store, **values)


def payload(**changes) -> dict:
    data = deepcopy(BASE_PAYLOAD)
    customer_changes = changes.pop('customer', None)
    if customer_changes:
        data['customerInfo'].update(customer_changes)
    data.update(changes)
    return data

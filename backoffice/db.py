from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from backoffice.config import settings


engine = create_engine(settings.database_url_normalized, echo=settings.database_echo, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


STOREFRONT_ORDERS_VIEW_DDL = """
CREATE OR REPLACE VIEW storefront_orders_for_admin AS
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
    COALESCE(
        (
            SELECT json_agg(
                json_build_object(
                    'id', l.id,
                    'product_id', l.inventory_item_id,
                    'product_name', i.name,
                    'sku', i.sku,
                    'quantity', l.quantity,
                    'unit_price', l.unit_price,
                    'total_price', l.total_price,
                    'discount', l.discount
                )
                ORDER BY l.id
            )
            FROM sales_order_lines l
            JOIN inventory_items i ON i.id = l.inventory_item_id
            WHERE l.sales_order_id = so.id
        ),
        '[]'::json
    ) AS order_items,
    so.created_at,
    so.updated_at
FROM sales_orders so
LEFT JOIN customers c ON c.id = so.customer_id
"""


def get_db() -> Iterator[Session]:
    with SessionLocal() as db:
        yield db


def install_views(bind: Engine | None = None) -> None:
    with (bind or engine).begin() as conn:
        conn.execute(text(STOREFRONT_ORDERS_VIEW_DDL))

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from backoffice.errors import CatalogResolutionError, StoreError
from backoffice.schemas import StorefrontOrderItem
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)

STOREFRONT_CATEGORY = 'Website Products'
STOREFRONT_UNIT = 'units'
CENT = Decimal('0.01')


def infer_unit_cost(unit_price: Decimal, ratio: Decimal) -> Decimal:
    return (Decimal(unit_price) * ratio).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_catalog_items(
    store: OrderStore,
    *,
    tenant_id: str,
    items: list[StorefrontOrderItem],
    default_stock: int,
    reorder_level: int,
    cost_ratio: Decimal,
) -> dict[str, int]:
    """
    Map every line's effective SKU to an inventory item id, creating missing items.

    Existing items are reused as-is; price and cost are never refreshed here.
    Items created before a later line fails are left in place.
    """
    resolved: dict[str, int] = {}
    for item in items:
        sku = item.effective_sku
        if sku in resolved:
            continue
        try:
            item_id = store.find_inventory_item_id_by_sku(tenant_id=tenant_id, sku=sku)
            if item_id is None:
                item_id = store.insert_inventory_item(
                    tenant_id=tenant_id,
                    name=item.product_name or sku,
                    sku=sku,
                    description=f'Storefront product: {item.product_name or sku}',
                    category=STOREFRONT_CATEGORY,
                    unit_of_measure=STOREFRONT_UNIT,
                    unit_price=item.unit_price,
                    unit_cost=infer_unit_cost(item.unit_price, cost_ratio),
                    current_stock=default_stock,
                    reorder_level=reorder_level,
                    active=True,
                    is_storefront_item=True,
                )
                logger.info('Created inventory item %s for SKU %s', item_id, sku)
        except StoreError as exc:
            raise CatalogResolutionError(f'{item.product_name or sku}: {exc}') from exc
        resolved[sku] = item_id
    return resolved

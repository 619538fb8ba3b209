"""Reconciliation facade for orders placed on the storefront.

One call to :meth:`OrderSyncService.handle_checkout_order` runs the whole
pipeline top to bottom::

    customer -> catalog items -> order number -> header + lines + history

Each step reads and writes the record store directly; the service itself only
carries configuration, so a fresh instance can be built for every request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from backoffice.config import Settings, settings
from backoffice.errors import OrderSyncError, PayloadValidationError
from backoffice.schemas import OperationResult, OrderSyncResponse, StorefrontOrderPayload, StorefrontOrderView
from backoffice.services.catalog_resolver_service import resolve_catalog_items
from backoffice.services.customer_resolver_service import resolve_customer
from backoffice.services.order_assembly_service import assemble_order
from backoffice.services.order_deletion_service import delete_order
from backoffice.services.order_number_service import allocate_order_number
from backoffice.services.order_status_service import update_order_status
from backoffice.services.order_store import OrderStore
from backoffice.services.storefront_order_read_service import get_storefront_order, list_storefront_orders
from backoffice.services.sync_event_service import log_sync_event


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def summarize_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get('msg')))
    return '; '.join(parts)


def parse_checkout_payload(raw: Any) -> StorefrontOrderPayload:
    """Validate an inbound checkout body, raising PayloadValidationError with a readable summary."""
    if isinstance(raw, StorefrontOrderPayload):
        return raw
    try:
        return StorefrontOrderPayload.model_validate(raw)
    except ValidationError as exc:
        raise PayloadValidationError(summarize_validation_error(exc)) from exc


@dataclass(frozen=True)
class OrderSyncService:
    store: OrderStore
    tenant_id: str
    order_number_prefix: str = 'WEB'
    origin: str = 'storefront'
    default_stock: int = 1000
    reorder_level: int = 10
    cost_ratio: Decimal = Decimal('0.70')
    ledger_category: str = 'sales'
    clock: Callable[[], datetime] = field(default=_now)

    @classmethod
    def from_settings(cls, store: OrderStore, config: Settings = settings, **overrides) -> OrderSyncService:
        values = {
            'tenant_id': config.storefront_tenant_id,
            'order_number_prefix': config.order_number_prefix,
            'origin': config.storefront_origin,
            'default_stock': config.storefront_default_stock,
            'reorder_level': config.storefront_reorder_level,
            'cost_ratio': config.inferred_cost_ratio,
            'ledger_category': config.sales_ledger_category,
        }
        values.update(overrides)
        return cls(store=store, **values)

    def handle_checkout_order(self, raw: Any) -> OrderSyncResponse:
        try:
            payload = parse_checkout_payload(raw)
        except PayloadValidationError as exc:
            error = exc.describe()
            logger.warning('Rejected storefront order payload: %s', error)
            return OrderSyncResponse(success=False, error=error)
        return self.process_storefront_order(payload)

    def process_storefront_order(self, payload: StorefrontOrderPayload) -> OrderSyncResponse:
        logger.info('Processing storefront order %s', payload.order_id)
        try:
            customer_id = resolve_customer(
                self.store,
                tenant_id=self.tenant_id,
                origin=self.origin,
                customer=payload.customer_info,
            )
            catalog_items = resolve_catalog_items(
                self.store,
                tenant_id=self.tenant_id,
                items=payload.items,
                default_stock=self.default_stock,
                reorder_level=self.reorder_level,
                cost_ratio=self.cost_ratio,
            )
            order_number = allocate_order_number(
                self.store,
                tenant_id=self.tenant_id,
                prefix=self.order_number_prefix,
                on_date=self.clock().date(),
            )
            order_id = assemble_order(
                self.store,
                tenant_id=self.tenant_id,
                origin=self.origin,
                order_number=order_number,
                customer_id=customer_id,
                payload=payload,
                catalog_items=catalog_items,
            )
        except OrderSyncError as exc:
            return self._fail(payload, exc.describe())
        except Exception as exc:
            logger.exception('Unexpected error syncing storefront order %s', payload.order_id)
            return self._fail(payload, str(exc) or exc.__class__.__name__)

        log_sync_event(
            self.store,
            tenant_id=self.tenant_id,
            external_order_id=payload.order_id,
            success=True,
            sales_order_id=order_id,
            order_number=order_number,
            metadata={'item_count': len(payload.items)},
        )
        logger.info('Storefront order %s synced as %s (id %s)', payload.order_id, order_number, order_id)
        return OrderSyncResponse(success=True, order_id=str(order_id), order_number=order_number)

    def _fail(self, payload: StorefrontOrderPayload, error: str) -> OrderSyncResponse:
        logger.warning('Storefront order %s not synced: %s', payload.order_id, error)
        log_sync_event(
            self.store,
            tenant_id=self.tenant_id,
            external_order_id=payload.order_id,
            success=False,
            error=error,
        )
        return OrderSyncResponse(success=False, error=error)

    def update_status(self, order_id: int, external_status: str, reason: str | None = None) -> OperationResult:
        return update_order_status(
            self.store,
            tenant_id=self.tenant_id,
            order_id=order_id,
            status=external_status,
            reason=reason,
            ledger_category=self.ledger_category,
        )

    def delete_order(self, order_id: int) -> OperationResult:
        return delete_order(self.store, tenant_id=self.tenant_id, order_id=order_id, ledger_category=self.ledger_category)

    def list_orders(self) -> list[StorefrontOrderView]:
        return list_storefront_orders(self.store, tenant_id=self.tenant_id, origin=self.origin)

    def get_order(self, order_id: int) -> StorefrontOrderView | None:
        return get_storefront_order(self.store, tenant_id=self.tenant_id, order_id=order_id)

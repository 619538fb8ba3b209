from __future__ import annotations

import logging
from datetime import datetime, timezone

from backoffice.errors import CustomerResolutionError, StoreError
from backoffice.schemas import CustomerInfo
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def compose_display_name(customer: CustomerInfo) -> str:
    return f'{customer.first_name} {customer.last_name}'.strip()


def compose_address(customer: CustomerInfo) -> str:
    region = ' '.join(part for part in (customer.state, customer.postal_code) if part)
    parts = [customer.address, customer.city, region, customer.country]
    return ', '.join(part for part in parts if part)


def resolve_customer(store: OrderStore, *, tenant_id: str, origin: str, customer: CustomerInfo) -> int:
    """Find the tenant's customer by email, creating one on first sight.

    An existing record is returned untouched. A failed insert (including losing
    the race on the tenant/email unique constraint) is a hard failure.
    """
    try:
        existing_id = store.find_customer_id_by_email(tenant_id=tenant_id, email=customer.email)
    except StoreError as exc:
        raise CustomerResolutionError(str(exc)) from exc
    if existing_id is not None:
        return existing_id

    try:
        customer_id = store.insert_customer(
            tenant_id=tenant_id,
            name=compose_display_name(customer),
            email=customer.email,
            phone=customer.phone,
            address=compose_address(customer),
            source=origin,
            registered_at=_now(),
        )
    except StoreError as exc:
        raise CustomerResolutionError(str(exc)) from exc
    logger.info('Created customer %s for %s', customer_id, customer.email)
    return customer_id

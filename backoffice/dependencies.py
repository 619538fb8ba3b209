from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException, status

from backoffice.config import settings
from backoffice.db import SessionLocal
from backoffice.services.order_store import OrderStore
from backoffice.services.order_sync_service import OrderSyncService


API_KEY_HEADER = 'X-Storefront-Api-Key'


def get_order_store() -> OrderStore:
    return OrderStore(SessionLocal)


def get_order_sync_service(store: OrderStore = Depends(get_order_store)) -> OrderSyncService:
    return OrderSyncService.from_settings(store)


def require_storefront_api_key(
    api_key: str | None = Header(default=None, alias=API_KEY_HEADER),
) -> None:
    expected = settings.storefront_api_key
    if not expected:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail='Storefront webhook is not configured')
    if not api_key or not secrets.compare_digest(api_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid storefront API key')

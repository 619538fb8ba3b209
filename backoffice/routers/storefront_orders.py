from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from backoffice.dependencies import get_order_sync_service, require_storefront_api_key
from backoffice.errors import PayloadValidationError, StoreError
from backoffice.schemas import (
    OperationResult,
    OrderSyncResponse,
    StatusUpdateRequest,
    StorefrontOrderView,
)
from backoffice.services.order_status_service import ORDER_NOT_FOUND
from backoffice.services.order_sync_service import OrderSyncService, parse_checkout_payload


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix='/api/storefront/orders',
    tags=['storefront-orders'],
    dependencies=[Depends(require_storefront_api_key)],
)


def _operation_status(result: OperationResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    if result.error == ORDER_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_409_CONFLICT


@router.post(
    '',
    response_model=OrderSyncResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def receive_storefront_order(
    response: Response,
    body: Any = Body(...),
    service: OrderSyncService = Depends(get_order_sync_service),
):
    try:
        payload = parse_checkout_payload(body)
    except PayloadValidationError as exc:
        error = exc.describe()
        logger.warning('Rejected storefront webhook payload: %s', error)
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return OrderSyncResponse(success=False, error=error)

    result = service.process_storefront_order(payload)
    if not result.success:
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.get('', response_model=list[StorefrontOrderView])
def list_orders(service: OrderSyncService = Depends(get_order_sync_service)):
    try:
        return service.list_orders()
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


@router.get('/{order_id}', response_model=StorefrontOrderView)
def get_order(order_id: int, service: OrderSyncService = Depends(get_order_sync_service)):
    try:
        order = service.get_order(order_id)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ORDER_NOT_FOUND)
    return order


@router.patch('/{order_id}/status', response_model=OperationResult, response_model_exclude_none=True)
def update_order_status(
    order_id: int,
    request: StatusUpdateRequest,
    response: Response,
    service: OrderSyncService = Depends(get_order_sync_service),
):
    result = service.update_status(order_id, request.status, request.reason)
    response.status_code = _operation_status(result)
    return result


@router.delete('/{order_id}', response_model=OperationResult, response_model_exclude_none=True)
def delete_order(
    order_id: int,
    response: Response,
    service: OrderSyncService = Depends(get_order_sync_service),
):
    result = service.delete_order(order_id)
    response.status_code = _operation_status(result)
    return result

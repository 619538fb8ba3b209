from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore', str_strip_whitespace=True)


class CustomerInfo(_CamelModel):
    first_name: str
    last_name: str
    email: str = Field(min_length=1)
    phone: str
    address: str
    city: str
    state: str
    postal_code: str
    country: str


class StorefrontOrderItem(_CamelModel):
    product_id: str = Field(min_length=1)
    product_name: str
    sku: str | None = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal = Field(ge=0)

    @property
    def effective_sku(self) -> str:
        return self.sku or self.product_id


class StorefrontOrderPayload(_CamelModel):
    order_id: str = Field(min_length=1)
    customer_info: CustomerInfo
    items: list[StorefrontOrderItem] = Field(min_length=1)
    total_amount: Decimal = Field(ge=0)
    payment_method: str
    order_date: datetime
    notes: str | None = None


class OrderSyncResponse(_CamelModel):
    success: bool
    order_id: str | None = None
    order_number: str | None = None
    error: str | None = None


class OperationResult(BaseModel):
    success: bool
    error: str | None = None


class StatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1)
    reason: str | None = None


class StorefrontOrderItemView(BaseModel):
    id: int | None = None
    product_id: int | None = None
    product_name: str = ''
    sku: str = ''
    quantity: int = 0
    unit_price: Decimal = Decimal('0')
    total_price: Decimal = Decimal('0')
    discount: Decimal = Decimal('0')


class StorefrontOrderView(BaseModel):
    id: int
    order_number: str
    status: str
    order_date: datetime | None = None
    total_amount: Decimal = Decimal('0')
    payment_method: str = ''
    shipping_address: str = ''
    shipping_city: str = ''
    shipping_postal_code: str = ''
    customer_email: str = ''
    customer_phone: str = ''
    delivery_instructions: str = ''
    customer_name: str = 'Unknown Customer'
    user_email: str = ''
    customer_record_name: str = 'Unknown Customer'
    order_items: list[StorefrontOrderItemView] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

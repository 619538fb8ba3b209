from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = BigInteger().with_variant(Integer(), 'sqlite')
Money = Numeric(14, 2)


class Base(DeclarativeBase):
    pass


class OrderStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class LedgerEntryType(str, Enum):
    INCOME = 'income'
    EXPENSE = 'expense'


class OrderSyncStatus(str, Enum):
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'


class Customer(Base):
    __tablename__ = 'customers'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'email', name='customers_tenant_email_uniq'),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str | None] = mapped_column(Text)
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InventoryItem(Base):
    __tablename__ = 'inventory_items'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'sku', name='inventory_items_tenant_sku_uniq'),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sku: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    unit_of_measure: Mapped[str] = mapped_column(Text, nullable=False, default='units', server_default='units')
    unit_cost: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    is_storefront_item: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SalesOrder(Base):
    __tablename__ = 'sales_orders'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'order_number', name='sales_orders_tenant_order_number_uniq'),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False)
    order_number: Mapped[str] = mapped_column(Text, nullable=False)
    customer_id: Mapped[int | None] = mapped_column(IdType, ForeignKey('customers.id', ondelete='SET NULL'))
    external_order_id: Mapped[str | None] = mapped_column(Text)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    # Canonical values from OrderStatus, or a lower-cased passthrough of an unknown label.
    status: Mapped[str] = mapped_column(Text, nullable=False, default=OrderStatus.PENDING.value, server_default='pending')
    payment_method: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    order_source: Mapped[str | None] = mapped_column(Text)
    shipping_address: Mapped[str | None] = mapped_column(Text)
    shipping_city: Mapped[str | None] = mapped_column(Text)
    shipping_postal_code: Mapped[str | None] = mapped_column(Text)
    customer_email: Mapped[str | None] = mapped_column(Text)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    delivery_instructions: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SalesOrderLine(Base):
    __tablename__ = 'sales_order_lines'

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    sales_order_id: Mapped[int] = mapped_column(IdType, ForeignKey('sales_orders.id', ondelete='CASCADE'), nullable=False)
    inventory_item_id: Mapped[int] = mapped_column(IdType, ForeignKey('inventory_items.id'), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SalesOrderStatusHistory(Base):
    __tablename__ = 'sales_order_status_history'

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    sales_order_id: Mapped[int] = mapped_column(IdType, ForeignKey('sales_orders.id', ondelete='CASCADE'), nullable=False)
    previous_status: Mapped[str | None] = mapped_column(Text)
    new_status: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class FinancialTransaction(Base):
    __tablename__ = 'financial_transactions'

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[LedgerEntryType] = mapped_column(SQLEnum(LedgerEntryType, name='ledger_entry_type'), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    reference_number: Mapped[str | None] = mapped_column(Text)
    payment_method: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class OrderSyncEvent(Base):
    __tablename__ = 'order_sync_events'

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False)
    external_order_id: Mapped[str | None] = mapped_column(Text)
    status: Mapped[OrderSyncStatus] = mapped_column(SQLEnum(OrderSyncStatus, name='order_sync_status'), nullable=False)
    sales_order_id: Mapped[int | None] = mapped_column(IdType, ForeignKey('sales_orders.id', ondelete='SET NULL'))
    order_number: Mapped[str | None] = mapped_column(Text)
    error_text: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


# Read-only view; kept off Base.metadata so create_all never touches it.
view_metadata = MetaData()

storefront_orders_view = Table(
    'storefront_orders_for_admin',
    view_metadata,
    Column('id', IdType, primary_key=True),
    Column('tenant_id', Text),
    Column('order_number', Text),
    Column('status', Text),
    Column('order_date', DateTime(timezone=True)),
    Column('total_amount', Money),
    Column('payment_method', Text),
    Column('order_source', Text),
    Column('shipping_address', Text),
    Column('shipping_city', Text),
    Column('shipping_postal_code', Text),
    Column('customer_email', Text),
    Column('customer_phone', Text),
    Column('delivery_instructions', Text),
    Column('customer_name', Text),
    Column('order_items', JSON),
    Column('created_at', DateTime(timezone=True)),
    Column('updated_at', DateTime(timezone=True)),
)

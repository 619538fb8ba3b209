from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backoffice.errors import StoreError
from backoffice.models import (
    Customer,
    FinancialTransaction,
    InventoryItem,
    SalesOrder,
    SalesOrderLine,
    SalesOrderStatusHistory,
)


def _describe(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        message = str(exc.orig)
    else:
        message = str(exc)
    return message.strip().splitlines()[0] if message.strip() else exc.__class__.__name__


class OrderStore:
    """Tenant-scoped record store for the storefront order pipeline.

    Every public method runs in its own session and commits before returning,
    so a failure in a later call never rolls back an earlier one. Callers that
    need several writes to land together use :meth:`transaction`.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        try:
            with self._session_factory() as db:
                yield db
                db.commit()
        except SQLAlchemyError as exc:
            raise StoreError(_describe(exc)) from exc

    # customers

    def find_customer_id_by_email(self, *, tenant_id: str, email: str) -> int | None:
        with self.transaction() as db:
            return db.execute(
                select(Customer.id).where(Customer.tenant_id == tenant_id, Customer.email == email)
            ).scalar_one_or_none()

    def insert_customer(self, *, tenant_id: str, **fields) -> int:
        with self.transaction() as db:
            customer = Customer(tenant_id=tenant_id, **fields)
            db.add(customer)
            db.flush()
            return customer.id

    # catalog

    def find_inventory_item_id_by_sku(self, *, tenant_id: str, sku: str) -> int | None:
        with self.transaction() as db:
            return db.execute(
                select(InventoryItem.id).where(InventoryItem.tenant_id == tenant_id, InventoryItem.sku == sku)
            ).scalar_one_or_none()

    def insert_inventory_item(self, *, tenant_id: str, **fields) -> int:
        with self.transaction() as db:
            item = InventoryItem(tenant_id=tenant_id, **fields)
            db.add(item)
            db.flush()
            return item.id

    # order headers and lines

    def latest_order_number_with_prefix(self, *, tenant_id: str, prefix: str) -> str | None:
        with self.transaction() as db:
            return db.execute(
                select(SalesOrder.order_number)
                .where(
                    SalesOrder.tenant_id == tenant_id,
                    SalesOrder.order_number.startswith(prefix, autoescape=True),
                )
                .order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc())
                .limit(1)
            ).scalar_one_or_none()

    def get_order_number(self, *, tenant_id: str, order_id: int) -> str | None:
        with self.transaction() as db:
            return db.execute(
                select(SalesOrder.order_number).where(SalesOrder.tenant_id == tenant_id, SalesOrder.id == order_id)
            ).scalar_one_or_none()

    def insert_sales_order(self, *, tenant_id: str, **fields) -> int:
        with self.transaction() as db:
            order = SalesOrder(tenant_id=tenant_id, **fields)
            db.add(order)
            db.flush()
            return order.id

    def insert_order_lines(self, rows: list[dict]) -> None:
        if not rows:
            return
        with self.transaction() as db:
            db.execute(insert(SalesOrderLine), rows)

    def delete_order_lines(self, *, order_id: int) -> int:
        with self.transaction() as db:
            result = db.execute(delete(SalesOrderLine).where(SalesOrderLine.sales_order_id == order_id))
            return result.rowcount or 0

    def delete_sales_order(self, *, tenant_id: str, order_id: int) -> int:
        with self.transaction() as db:
            result = db.execute(
                delete(SalesOrder).where(SalesOrder.tenant_id == tenant_id, SalesOrder.id == order_id)
            )
            return result.rowcount or 0

    def insert_status_history(
        self,
        *,
        order_id: int,
        new_status: str,
        reason: str | None,
        previous_status: str | None = None,
    ) -> None:
        with self.transaction() as db:
            db.add(
                SalesOrderStatusHistory(
                    sales_order_id=order_id,
                    previous_status=previous_status,
                    new_status=new_status,
                    reason=reason,
                )
            )

    # ledger

    def delete_ledger_entries(self, *, tenant_id: str, reference_number: str, category: str) -> int:
        with self.transaction() as db:
            result = db.execute(
                delete(FinancialTransaction).where(
                    FinancialTransaction.tenant_id == tenant_id,
                    FinancialTransaction.reference_number == reference_number,
                    FinancialTransaction.category == category,
                )
            )
            return result.rowcount or 0

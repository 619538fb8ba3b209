from __future__ import annotations

import unittest
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy import func, select

from backoffice.errors import CatalogResolutionError, CustomerResolutionError, StoreError
from backoffice.models import Customer, InventoryItem
from backoffice.schemas import CustomerInfo, StorefrontOrderItem
from backoffice.services.catalog_resolver_service import infer_unit_cost, resolve_catalog_items
from backoffice.services.customer_resolver_service import compose_address, resolve_customer
from helpers import BASE_PAYLOAD, TENANT_ID, make_store


def _customer(**changes) -> CustomerInfo:
    data = dict(BASE_PAYLOAD['customerInfo'])
    data.update(changes)
    return CustomerInfo.model_validate(data)


def _item(**changes) -> StorefrontOrderItem:
    data = {'productId': 'P1', 'productName': 'Brass Gear', 'quantity': 1, 'unitPrice': 500, 'totalPrice': 500}
    data.update(changes)
    return StorefrontOrderItem.model_validate(data)


class CustomerResolverServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store, self.session_factory = make_store()

    def test_creates_customer_with_composed_identity(self) -> None:
        customer_id = resolve_customer(self.store, tenant_id=TENANT_ID, origin='storefront', customer=_customer())

        with self.session_factory() as db:
            customer = db.get(Customer, customer_id)
        self.assertEqual(customer.name, 'Ada Lovelace')
        self.assertEqual(customer.address, '12 Analytical Way, London, LDN N1 9GU, UK')
        self.assertEqual(customer.source, 'storefront')
        self.assertEqual(customer.tenant_id, TENANT_ID)

    def test_existing_customer_is_reused_without_update(self) -> None:
        first_id = resolve_customer(self.store, tenant_id=TENANT_ID, origin='storefront', customer=_customer())
        second_id = resolve_customer(
            self.store,
            tenant_id=TENANT_ID,
            origin='storefront',
            customer=_customer(firstName='Augusta', phone='555-9999'),
        )

        self.assertEqual(first_id, second_id)
        with self.session_factory() as db:
            customer = db.get(Customer, first_id)
            count = db.execute(select(func.count(Customer.id))).scalar_one()
        self.assertEqual(count, 1)
        self.assertEqual(customer.name, 'Ada Lovelace')
        self.assertEqual(customer.phone, '555-0100')

    def test_same_email_in_other_tenant_is_a_new_customer(self) -> None:
        first_id = resolve_customer(self.store, tenant_id=TENANT_ID, origin='storefront', customer=_customer())
        other_id = resolve_customer(self.store, tenant_id='other-tenant', origin='storefront', customer=_customer())
        self.assertNotEqual(first_id, other_id)

    def test_insert_failure_is_a_hard_failure(self) -> None:
        with patch.object(self.store, 'insert_customer', side_effect=StoreError('duplicate key value')):
            with self.assertRaises(CustomerResolutionError) as ctx:
                resolve_customer(self.store, tenant_id=TENANT_ID, origin='storefront', customer=_customer())
        self.assertIn('duplicate key value', ctx.exception.describe())

    def test_compose_address_skips_blank_parts(self) -> None:
        customer = _customer(state='', postalCode='', country='UK')
        self.assertEqual(compose_address(customer), '12 Analytical Way, London, UK')


class CatalogResolverServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store, self.session_factory = make_store()

    def _resolve(self, items):
        return resolve_catalog_items(
            self.store,
            tenant_id=TENANT_ID,
            items=items,
            default_stock=1000,
            reorder_level=10,
            cost_ratio=Decimal('0.70'),
        )

    def test_creates_storefront_item_with_inferred_cost(self) -> None:
        resolved = self._resolve([_item(sku='GEAR-1')])

        with self.session_factory() as db:
            item = db.get(InventoryItem, resolved['GEAR-1'])
        self.assertEqual(item.unit_price, Decimal('500'))
        self.assertEqual(item.unit_cost, Decimal('350'))
        self.assertEqual(item.current_stock, 1000)
        self.assertTrue(item.is_storefront_item)
        self.assertTrue(item.active)

    def test_product_id_is_the_sku_when_none_given(self) -> None:
        resolved = self._resolve([_item(productId='P-77')])
        self.assertEqual(list(resolved), ['P-77'])
        with self.session_factory() as db:
            self.assertEqual(db.get(InventoryItem, resolved['P-77']).sku, 'P-77')

    def test_existing_item_keeps_price_and_cost(self) -> None:
        first = self._resolve([_item(sku='GEAR-1')])
        second = self._resolve([_item(sku='GEAR-1', unitPrice=900, totalPrice=900)])

        self.assertEqual(first, second)
        with self.session_factory() as db:
            item = db.get(InventoryItem, first['GEAR-1'])
            count = db.execute(select(func.count(InventoryItem.id))).scalar_one()
        self.assertEqual(count, 1)
        self.assertEqual(item.unit_price, Decimal('500'))
        self.assertEqual(item.unit_cost, Decimal('350'))

    def test_repeated_sku_in_one_order_creates_one_item(self) -> None:
        resolved = self._resolve([_item(sku='GEAR-1'), _item(productId='P2', sku='GEAR-1')])
        self.assertEqual(len(resolved), 1)

    def test_failure_aborts_and_keeps_earlier_items(self) -> None:
        real_insert = self.store.insert_inventory_item

        def fail_second(**fields):
            if fields['sku'] == 'GEAR-2':
                raise StoreError('value too long')
            return real_insert(**fields)

        with patch.object(self.store, 'insert_inventory_item', side_effect=fail_second):
            with self.assertRaises(CatalogResolutionError) as ctx:
                self._resolve([_item(sku='GEAR-1'), _item(productId='P2', productName='Cog', sku='GEAR-2')])

        self.assertIn('Cog', str(ctx.exception))
        with self.session_factory() as db:
            skus = db.execute(select(InventoryItem.sku)).scalars().all()
        self.assertEqual(skus, ['GEAR-1'])

    def test_infer_unit_cost_rounds_to_cents(self) -> None:
        self.assertEqual(infer_unit_cost(Decimal('9.99'), Decimal('0.70')), Decimal('6.99'))


if __name__ == '__main__':
    unittest.main()

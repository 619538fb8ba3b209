from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import Mock

from backoffice.errors import StoreError
from backoffice.services.order_number_service import allocate_order_number, parse_sequence
from backoffice.services.order_store import OrderStore


DAY = date(2026, 3, 14)


def _store_returning(last_number):
    store = Mock(spec=OrderStore)
    store.latest_order_number_with_prefix.return_value = last_number
    return store


class OrderNumberServiceTests(unittest.TestCase):
    def test_first_order_of_day_starts_at_001(self) -> None:
        store = _store_returning(None)
        number = allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY)
        self.assertEqual(number, 'WEB20260314001')
        store.latest_order_number_with_prefix.assert_called_once_with(tenant_id='t1', prefix='WEB20260314')

    def test_increments_latest_suffix(self) -> None:
        store = _store_returning('WEB20260314007')
        self.assertEqual(allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY), 'WEB20260314008')

    def test_suffix_grows_past_three_digits(self) -> None:
        store = _store_returning('WEB20260314999')
        self.assertEqual(allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY), 'WEB202603141000')

        store = _store_returning('WEB202603141000')
        self.assertEqual(allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY), 'WEB202603141001')

    def test_lookup_failure_falls_back_to_001(self) -> None:
        store = Mock(spec=OrderStore)
        store.latest_order_number_with_prefix.side_effect = StoreError('connection refused')
        with self.assertLogs('backoffice.services.order_number_service', level='WARNING'):
            number = allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY)
        self.assertEqual(number, 'WEB20260314001')

    def test_malformed_suffix_falls_back_to_001(self) -> None:
        store = _store_returning('WEB20260314A7')
        with self.assertLogs('backoffice.services.order_number_service', level='WARNING'):
            number = allocate_order_number(store, tenant_id='t1', prefix='WEB', on_date=DAY)
        self.assertEqual(number, 'WEB20260314001')

    def test_parse_sequence_requires_matching_day(self) -> None:
        self.assertEqual(parse_sequence('WEB20260314012', prefix='WEB', on_date=DAY), 12)
        self.assertIsNone(parse_sequence('WEB20260313012', prefix='WEB', on_date=DAY))
        self.assertIsNone(parse_sequence('WEB2026031412', prefix='WEB', on_date=DAY))


if __name__ == '__main__':
    unittest.main()

from __future__ import annotations

import logging
import re
from datetime import date

from backoffice.errors import StoreError
from backoffice.services.order_store import OrderStore


logger = logging.getLogger(__name__)

MIN_SUFFIX_WIDTH = 3


def day_prefix(prefix: str, on_date: date) -> str:
    return f'{prefix}{on_date:%Y%m%d}'


def format_order_number(prefix: str, on_date: date, sequence: int) -> str:
    return f'{day_prefix(prefix, on_date)}{sequence:0{MIN_SUFFIX_WIDTH}d}'


def parse_sequence(order_number: str, *, prefix: str, on_date: date) -> int | None:
    match = re.fullmatch(re.escape(day_prefix(prefix, on_date)) + r'(\d{%d,})' % MIN_SUFFIX_WIDTH, order_number)
    if not match:
        return None
    return int(match.group(1))


def allocate_order_number(store: OrderStore, *, tenant_id: str, prefix: str, on_date: date) -> str:
    """
    Return the next ``<PREFIX><YYYYMMDD><NNN>`` number for the tenant and day.

    Best effort only: a failed lookup or an unreadable historical suffix restarts
    the day at 001, and concurrent callers can compute the same value. The
    (tenant_id, order_number) unique constraint rejects the loser's header insert.
    """
    today_prefix = day_prefix(prefix, on_date)
    try:
        last_number = store.latest_order_number_with_prefix(tenant_id=tenant_id, prefix=today_prefix)
    except StoreError as exc:
        logger.warning('Order number lookup failed for %s, starting at 001: %s', today_prefix, exc)
        return format_order_number(prefix, on_date, 1)

    if last_number is None:
        return format_order_number(prefix, on_date, 1)

    sequence = parse_sequence(last_number, prefix=prefix, on_date=on_date)
    if sequence is None:
        logger.warning('Unparseable order number %r for %s, starting at 001', last_number, today_prefix)
        return format_order_number(prefix, on_date, 1)
    return format_order_number(prefix, on_date, sequence + 1)

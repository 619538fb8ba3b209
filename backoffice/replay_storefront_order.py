from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from backoffice.config import settings
from backoffice.db import SessionLocal
from backoffice.errors import PayloadValidationError
from backoffice.services.order_store import OrderStore
from backoffice.services.order_sync_service import OrderSyncService, parse_checkout_payload


def load_payload(path: str) -> dict:
    raw = sys.stdin.read() if path == '-' else Path(path).read_text(encoding='utf-8')
    return json.loads(raw)


def replay(payload: dict, *, validate_only: bool = False) -> dict:
    if validate_only:
        try:
            parse_checkout_payload(payload)
        except PayloadValidationError as exc:
            return {'success': False, 'error': exc.describe()}
        return {'success': True}

    service = OrderSyncService.from_settings(OrderStore(SessionLocal))
    result = service.handle_checkout_order(payload)
    return result.model_dump(by_alias=True, exclude_none=True)


def main() -> None:
    parser = argparse.ArgumentParser(description='Reconcile one storefront order payload into the back office.')
    parser.add_argument('payload', help='Path to a JSON order payload, or - to read stdin.')
    parser.add_argument(
        '--validate-only',
        action='store_true',
        help='Check the payload shape without touching the database.',
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format='%(levelname)s %(name)s: %(message)s')
    result = replay(load_payload(args.payload), validate_only=args.validate_only)
    print(json.dumps(result))
    if not result.get('success'):
        raise SystemExit(1)


if __name__ == '__main__':
    main()

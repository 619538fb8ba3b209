from __future__ import annotations

import argparse

from backoffice.db import engine, install_views
from backoffice.models import Base


def init_db(*, with_views: bool = True) -> None:
    Base.metadata.create_all(engine)
    if with_views:
        install_views(engine)


def main() -> None:
    parser = argparse.ArgumentParser(description='Create back office tables and the storefront orders view.')
    parser.add_argument('--skip-views', action='store_true', help='Only create tables.')
    args = parser.parse_args()

    init_db(with_views=not args.skip_views)
    print('Schema created/verified.')


if __name__ == '__main__':
    main()

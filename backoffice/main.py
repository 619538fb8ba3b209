import logging

from fastapi import FastAPI

from backoffice.config import settings
from backoffice.routers import storefront_orders
from backoffice.security.headers import install_security_headers


logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='Back Office')

install_security_headers(app)

app.include_router(storefront_orders.router)


@app.get('/healthz')
def healthz() -> dict:
    return {'status': 'ok'}

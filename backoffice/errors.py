"""Exceptions raised inside the storefront order pipeline.

Store-level failures are wrapped in :class:`StoreError`. Pipeline steps raise
:class:`OrderSyncError` subclasses, which the reconciliation facade converts
into an ``OrderSyncResponse``; nothing else in the pipeline builds the
outbound result.
"""

from __future__ import annotations


class StoreError(RuntimeError):
    """A record-store call failed (connection, constraint, missing relation)."""


class OrderSyncError(Exception):
    """Base class for failures that abort one reconciliation run."""

    stage = 'sync order'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        return f'Failed to {self.stage}: {self.message}'


class PayloadValidationError(OrderSyncError):
    stage = 'validate order'

    def describe(self) -> str:
        return f'Invalid order data: {self.message}'


class CustomerResolutionError(OrderSyncError):
    stage = 'create customer'


class CatalogResolutionError(OrderSyncError):
    stage = 'process inventory items'


class OrderAssemblyError(OrderSyncError):
    stage = 'create sales order'


class OrderLineMappingError(LookupError):
    """An order line has no resolved catalog item; the resolver contract was broken."""

"""Marketplace bounded context: produce listings, stock and orders.

Farmers list produce with a tracked available quantity (CQRS Product
aggregate). Customers place single-seller orders that reserve stock through
the inventory ledger, and the order lifecycle releases that stock again when
an order is cancelled.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)

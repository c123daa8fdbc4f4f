"""Inventory ledger: the only way stock quantities change.

The order builder and the order lifecycle call these functions directly
instead of touching ``Product`` themselves. Each call is one stock command in
its own unit of work:

* the product is read, checked and written back as a single versioned write;
  storage rejects the write if another movement committed first, and
* a rejected write is retried from a fresh read, first by the command
  handler's own version retry and then by the bounded loop below.

So a reservation either decrements stock that was really there at commit
time, or fails with ``InsufficientStock``. Persistent contention past the
retry budget surfaces as ``StockContention``.
"""

import random
import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from marketplace.inventory.stock import ReleaseStock, ReplenishStock, ReserveStock
from marketplace.shared.errors import StockContention

logger = structlog.get_logger(__name__)

MAX_WRITE_ATTEMPTS = 20
_BACKOFF_SECONDS = 0.005


@dataclass(frozen=True)
class Reservation:
    """Stock taken for one order line, priced at the moment of reservation."""

    product_id: str
    seller_id: str
    name: str
    unit: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price


def _submit(command_cls, **payload):
    """Process a stock command, retrying versioned-write conflicts."""
    for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
        try:
            return current_domain.process(command_cls(**payload), asynchronous=False)
        except ExpectedVersionError:
            logger.debug(
                "ledger.write_conflict",
                command=command_cls.__name__,
                product_id=payload.get("product_id"),
                attempt=attempt,
            )
            time.sleep(random.uniform(0, _BACKOFF_SECONDS * attempt))

    logger.warning(
        "ledger.contention_exhausted",
        command=command_cls.__name__,
        product_id=payload.get("product_id"),
        attempts=MAX_WRITE_ATTEMPTS,
    )
    raise StockContention()


def check_and_reserve(product_id, quantity, order_id) -> Reservation:
    """Reserve ``quantity`` units of a product for an order.

    Raises ``ProductNotFound``, ``ProductUnavailable``, ``InsufficientStock``
    or ``InvalidQuantity`` without changing stock.
    """
    result = _submit(ReserveStock, product_id=str(product_id), order_id=str(order_id), quantity=quantity)
    logger.info(
        "ledger.reserved",
        product_id=str(product_id),
        order_id=str(order_id),
        quantity=quantity,
    )
    return Reservation(**result)


def release(product_id, quantity, order_id) -> int:
    """Return an order's reserved stock of a product to the available pool.

    Releasing an order that holds nothing on the product (already released,
    or never reserved) changes nothing. Returns the quantity put back.
    """
    released = _submit(ReleaseStock, product_id=str(product_id), order_id=str(order_id))

    if not released:
        logger.info(
            "ledger.release_skipped",
            product_id=str(product_id),
            order_id=str(order_id),
            reason="no_active_reservation",
        )
    elif released != quantity:
        logger.warning(
            "ledger.release_quantity_mismatch",
            product_id=str(product_id),
            order_id=str(order_id),
            expected=quantity,
            released=released,
        )
    else:
        logger.info("ledger.released", product_id=str(product_id), order_id=str(order_id), quantity=released)

    return released


def replenish(product_id, quantity, actor) -> int:
    """Add stock to a product on behalf of its seller or an administrator.

    Returns the new available quantity.
    """
    available = _submit(
        ReplenishStock,
        actor_id=actor.id,
        actor_role=actor.role.value,
        product_id=str(product_id),
        quantity=quantity,
    )
    logger.info("ledger.replenished", product_id=str(product_id), quantity=quantity, available=available)
    return available

"""Order builder: turns a submitted cart into a pending order.

Placing an order touches several aggregates: one ``Product`` per line and the
new ``Order``. Each of those writes commits on its own, so the builder runs
outside any unit of work and keeps an explicit list of the reservations it
has made. If a later line fails, or the order itself cannot be recorded,
every reservation in that list is released before the error propagates.
"""

import json
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.inventory import ledger
from marketplace.inventory.product import Product
from marketplace.order.creation import PlaceOrder
from marketplace.order.order import DeliveryAddress, Order
from marketplace.shared.errors import (
    EmptyCart,
    Forbidden,
    InvalidDeliveryAddress,
    InvalidInput,
    InvalidQuantity,
    MultiSellerCart,
)

logger = structlog.get_logger(__name__)


class OrderBuilder:
    """Validates a cart, reserves its stock and records the order."""

    def __init__(self, customer, items, delivery_address, payment_method, delivery_instructions=None):
        self.customer = customer
        self.items = items
        self.delivery_address = delivery_address
        self.payment_method = payment_method
        self.delivery_instructions = delivery_instructions
        self.order_id = str(uuid4())
        self.reservations = []
        self.seller_id = None

    # -------------------------------------------------------------------
    # Validation (nothing reserved yet)
    # -------------------------------------------------------------------
    def _validate(self):
        if not self.customer.is_customer:
            raise Forbidden("Only customers can place orders")

        if not self.items:
            raise EmptyCart()

        for item in self.items:
            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                raise InvalidQuantity()
            if not item.get("product_id"):
                raise InvalidInput("Every order item needs a product")

        if not self.payment_method:
            raise InvalidInput("Payment method is required")

        address = dict(self.delivery_address or {})
        if address.get("country") is None:
            address.pop("country", None)
        try:
            DeliveryAddress(**address)
        except ValidationError as exc:
            missing = ", ".join(sorted(exc.messages)) if isinstance(exc.messages, dict) else ""
            raise InvalidDeliveryAddress(f"Delivery address is incomplete: {missing}" if missing else None) from exc
        self.delivery_address = address

    def _merged_lines(self):
        """Cart lines keyed by product, quantities of repeated products summed."""
        merged = {}
        for item in self.items:
            product_id = str(item["product_id"])
            merged[product_id] = merged.get(product_id, 0) + item["quantity"]
        return list(merged.items())

    # -------------------------------------------------------------------
    # Reservation
    # -------------------------------------------------------------------
    def _reserve(self, product_id, quantity):
        product = current_domain.repository_for(Product).fetch(product_id)

        # The first product fixes the seller; checked before reserving so
        # another seller's stock is never touched.
        if self.seller_id is None:
            self.seller_id = str(product.seller_id)
        elif str(product.seller_id) != self.seller_id:
            raise MultiSellerCart()

        reservation = ledger.check_and_reserve(product_id, quantity, self.order_id)
        self.reservations.append(reservation)

    def _rollback(self):
        for reservation in reversed(self.reservations):
            try:
                ledger.release(reservation.product_id, reservation.quantity, self.order_id)
            except Exception:
                logger.exception(
                    "order.rollback_release_failed",
                    order_id=self.order_id,
                    product_id=reservation.product_id,
                    quantity=reservation.quantity,
                )
        self.reservations = []

    # -------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------
    def build(self):
        """Reserve every line and persist the order. Returns the ``Order``."""
        self._validate()

        try:
            for product_id, quantity in self._merged_lines():
                self._reserve(product_id, quantity)

            lines = [
                {
                    "product_id": reservation.product_id,
                    "product_name": reservation.name,
                    "unit": reservation.unit,
                    "quantity": reservation.quantity,
                    "unit_price": reservation.unit_price,
                }
                for reservation in self.reservations
            ]
            current_domain.process(
                PlaceOrder(
                    order_id=self.order_id,
                    customer_id=self.customer.id,
                    seller_id=self.seller_id,
                    items=json.dumps(lines),
                    delivery_address=json.dumps(self.delivery_address),
                    payment_method=self.payment_method,
                    delivery_instructions=self.delivery_instructions,
                ),
                asynchronous=False,
            )
        except Exception as exc:
            logger.info(
                "order.build_failed",
                order_id=self.order_id,
                customer_id=self.customer.id,
                reservations_released=len(self.reservations),
                error=type(exc).__name__,
            )
            self._rollback()
            raise

        logger.info(
            "order.placed",
            order_id=self.order_id,
            customer_id=self.customer.id,
            seller_id=self.seller_id,
            item_count=len(self.reservations),
        )
        return current_domain.repository_for(Order).fetch(self.order_id)


def create_order(customer, items, delivery_address, payment_method, delivery_instructions=None):
    """Place an order for ``customer`` from a list of ``{product_id, quantity}`` items."""
    builder = OrderBuilder(
        customer=customer,
        items=items,
        delivery_address=delivery_address,
        payment_method=payment_method,
        delivery_instructions=delivery_instructions,
    )
    return builder.build()

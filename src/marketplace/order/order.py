"""Order aggregate (CQRS): a customer's purchase from a single farmer.

Orders are created by the order builder once every line has reserved stock,
and are never deleted: they end in ``delivered`` or ``cancelled``.

Status model:
    pending → accepted | rejected | processing | ready_for_pickup |
              in_transit | delivered | cancelled
    Any non-terminal status may move to any status except ``pending`` and
    ``cancelled``; only a pending order can be cancelled, and only through
    ``cancel`` so its stock is released. ``delivered`` and ``cancelled`` are
    terminal, except that marking a delivered order delivered again refreshes
    the delivery timestamp.

Payment status (pending → completed | failed) is tracked independently.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.order.events import (
    DeliveryScheduled,
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from marketplace.shared.errors import Forbidden, InvalidTransition


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PROCESSING = "processing"
    READY_FOR_PICKUP = "ready_for_pickup"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Statuses a seller can move an order into
_PROGRESSION = {
    OrderStatus.ACCEPTED,
    OrderStatus.REJECTED,
    OrderStatus.PROCESSING,
    OrderStatus.READY_FOR_PICKUP,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
}

# State machine transition map
_ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: _PROGRESSION | {OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: _PROGRESSION,
    OrderStatus.REJECTED: _PROGRESSION,
    OrderStatus.PROCESSING: _PROGRESSION,
    OrderStatus.READY_FOR_PICKUP: _PROGRESSION,
    OrderStatus.IN_TRANSIT: _PROGRESSION,
    OrderStatus.DELIVERED: {OrderStatus.DELIVERED},  # Re-stamps delivery time
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current, target):
    """Whether an order in ``current`` status may move to ``target``."""
    return target in _ALLOWED_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class DeliveryAddress:
    """Where the produce is delivered, captured when the order is placed."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="Kenya")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order", limit=None)
class OrderLineItem:
    """One product line, priced at the moment its stock was reserved."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=100)
    unit = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    subtotal = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    customer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    items = HasMany(OrderLineItem)
    total_amount = Float(required=True, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, max_length=50)
    delivery_address = ValueObject(DeliveryAddress)
    delivery_instructions = Text()
    expected_delivery_date = DateTime()
    actual_delivery_date = DateTime()
    cancelled_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_line_items(self):
        if not self.items:
            return

        expected = sum(item.subtotal for item in self.items)
        if abs(expected - (self.total_amount or 0.0)) > 1e-6:
            raise ValidationError({"total_amount": ["Order total does not match its line items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_id,
        customer_id,
        seller_id,
        lines,
        delivery_address,
        payment_method,
        delivery_instructions=None,
    ):
        """Create a pending order from reserved lines.

        Args:
            order_id: Identity chosen before stock was reserved, so that
                      reservations already reference this order.
            lines: Dicts with product_id, product_name, unit, quantity,
                   unit_price.
            delivery_address: Dict with street, city, state, postal_code and
                              optionally country.
        """
        now = datetime.now(UTC)
        items = [
            OrderLineItem(
                product_id=line["product_id"],
                product_name=line["product_name"],
                unit=line.get("unit"),
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                subtotal=line["quantity"] * line["unit_price"],
            )
            for line in lines
        ]
        total_amount = sum(item.subtotal for item in items)

        order = cls(
            id=order_id,
            customer_id=customer_id,
            seller_id=seller_id,
            items=items,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            delivery_address=DeliveryAddress(**delivery_address),
            delivery_instructions=delivery_instructions,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                seller_id=str(seller_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                            "subtotal": item.subtotal,
                        }
                        for item in items
                    ]
                ),
                item_count=len(items),
                total_amount=total_amount,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Access rules
    # -------------------------------------------------------------------
    def is_participant(self, actor):
        return actor.id in (str(self.customer_id), str(self.seller_id))

    def assert_visible_to(self, actor):
        if not (actor.is_admin or self.is_participant(actor)):
            raise Forbidden("Not authorized to access this order")

    def _assert_managed_by(self, actor):
        if str(self.seller_id) != actor.id and not actor.is_admin:
            raise Forbidden("Not authorized to update this order")

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def delivery_status(self):
        status = OrderStatus(self.status)
        if status == OrderStatus.DELIVERED:
            return "Delivered"
        if status == OrderStatus.IN_TRANSIT:
            return "In Transit"
        if status == OrderStatus.READY_FOR_PICKUP:
            return "Ready for Pickup"
        return "Processing"

    @property
    def is_terminal(self):
        return OrderStatus(self.status) in TERMINAL_STATUSES

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def change_status(self, new_status, actor):
        """Move the order along on behalf of its seller or an administrator."""
        self._assert_managed_by(actor)

        current = OrderStatus(self.status)
        if new_status == OrderStatus.CANCELLED:
            raise InvalidTransition("Orders are cancelled through order cancellation, not a status update")
        if not can_transition(current, new_status):
            raise InvalidTransition(f"Cannot move order from {current.value} to {new_status.value}")

        now = datetime.now(UTC)
        self.status = new_status.value
        if new_status == OrderStatus.DELIVERED:
            self.actual_delivery_date = now
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=new_status.value,
                changed_by=actor.id,
                actual_delivery_date=self.actual_delivery_date,
                changed_at=now,
            )
        )

    def cancel(self, actor):
        """Cancel a pending order on behalf of its customer or an administrator."""
        if str(self.customer_id) != actor.id and not actor.is_admin:
            raise Forbidden("Not authorized to cancel this order")

        current = OrderStatus(self.status)
        if not can_transition(current, OrderStatus.CANCELLED):
            raise InvalidTransition("Order cannot be cancelled at this stage")

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_by = actor.id
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                cancelled_by=actor.id,
                items=json.dumps(
                    [{"product_id": str(item.product_id), "quantity": item.quantity} for item in self.items]
                ),
                cancelled_at=now,
            )
        )

    def change_payment_status(self, new_status):
        current = PaymentStatus(self.payment_status)
        now = datetime.now(UTC)
        self.payment_status = new_status.value
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=new_status.value,
                changed_at=now,
            )
        )

    def schedule_delivery(self, expected_delivery_date, actor):
        self._assert_managed_by(actor)
        if self.is_terminal:
            raise InvalidTransition(f"Cannot schedule delivery for a {self.status} order")

        now = datetime.now(UTC)
        self.expected_delivery_date = expected_delivery_date
        self.updated_at = now

        self.raise_(
            DeliveryScheduled(
                order_id=str(self.id),
                expected_delivery_date=expected_delivery_date,
                scheduled_at=now,
            )
        )

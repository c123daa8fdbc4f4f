"""Order listing: one lightweight row per order for dashboards and history."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from marketplace.order.order import Order
from marketplace.shared.principal import Role


@marketplace.projection
class OrderListing:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True)
    payment_status = String(required=True)
    item_count = Integer(default=0)
    total_amount = Float()
    placed_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=OrderListing, aggregates=[Order])
class OrderListingProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderListing).add(
            OrderListing(
                order_id=event.order_id,
                customer_id=event.customer_id,
                seller_id=event.seller_id,
                status="pending",
                payment_status="pending",
                item_count=event.item_count,
                total_amount=event.total_amount,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update(self, order_id, updated_at, **changes):
        repo = current_domain.repository_for(OrderListing)
        listing = repo.get(order_id)
        for field_name, value in changes.items():
            setattr(listing, field_name, value)
        listing.updated_at = updated_at
        repo.add(listing)

    @on(OrderStatusChanged)
    def on_status_changed(self, event):
        self._update(event.order_id, event.changed_at, status=event.new_status)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event.order_id, event.cancelled_at, status="cancelled")

    @on(PaymentStatusChanged)
    def on_payment_status_changed(self, event):
        self._update(event.order_id, event.changed_at, payment_status=event.new_status)


def order_listing(actor) -> list[OrderListing]:
    """Listing rows visible to the principal, newest first."""
    query = current_domain.repository_for(OrderListing)._dao.query
    if actor.role == Role.CUSTOMER:
        query = query.filter(customer_id=actor.id)
    elif actor.role == Role.FARMER:
        query = query.filter(seller_id=actor.id)
    return query.order_by("-placed_at").limit(None).all().items

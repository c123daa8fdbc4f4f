"""Order store: persistence of orders and role-scoped lookups."""

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.shared.errors import OrderNotFound
from marketplace.shared.principal import Role


@marketplace.repository(part_of=Order)
class OrderRepository:
    def fetch(self, order_id) -> Order:
        """Load an order or raise ``OrderNotFound``."""
        order = self.get_or_none(order_id)
        if order is None:
            raise OrderNotFound()
        return order

    def for_customer(self, customer_id) -> list[Order]:
        return self.query.filter(customer_id=str(customer_id)).order_by("-created_at").limit(None).all().items

    def for_seller(self, seller_id) -> list[Order]:
        return self.query.filter(seller_id=str(seller_id)).order_by("-created_at").limit(None).all().items

    def visible_to(self, actor) -> list[Order]:
        """Orders the principal may see, newest first.

        Customers see the orders they placed, farmers the orders for their
        produce, administrators every order.
        """
        if actor.role == Role.CUSTOMER:
            return self.for_customer(actor.id)
        if actor.role == Role.FARMER:
            return self.for_seller(actor.id)
        return self.query.order_by("-created_at").limit(None).all().items

"""Order placement: command and handler.

The command is issued by the order builder after every line's stock has been
reserved; it only records the order. Reservation and rollback live in
``marketplace.order.builder``.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, product_name, unit, quantity, unit_price}
    delivery_address = Text(required=True)  # JSON: {street, city, state, postal_code, country}
    payment_method = String(required=True, max_length=50)
    delivery_instructions = Text()


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            order_id=command.order_id,
            customer_id=command.customer_id,
            seller_id=command.seller_id,
            lines=json.loads(command.items),
            delivery_address=json.loads(command.delivery_address),
            payment_method=command.payment_method,
            delivery_instructions=command.delivery_instructions,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)

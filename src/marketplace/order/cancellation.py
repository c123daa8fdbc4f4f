"""Order cancellation: command and handler.

The handler only records the cancellation. Returning the reserved stock is a
separate step run by ``marketplace.order.lifecycle.cancel`` once this command
has committed, one ledger release per line item.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.shared.principal import Principal


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.cancel(actor)
        repo.add(order)

        return [(str(item.product_id), item.quantity) for item in order.items]

"""Order progression: commands and handler for seller-driven changes."""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.principal import Principal


@marketplace.command(part_of="Order")
class ChangeOrderStatus:
    """Move an order to a new status (seller or administrator)."""

    order_id = Identifier(required=True)
    new_status = String(required=True, choices=OrderStatus)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command(part_of="Order")
class ScheduleDelivery:
    order_id = Identifier(required=True)
    expected_delivery_date = DateTime(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True)


@marketplace.command_handler(part_of=Order)
class OrderProgressHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.change_status(OrderStatus(command.new_status), actor)
        repo.add(order)

    @handle(ScheduleDelivery)
    def schedule_delivery(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.schedule_delivery(command.expected_delivery_date, actor)
        repo.add(order)

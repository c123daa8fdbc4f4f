"""Payment status: command and handler.

Payment status is a label maintained by administrators; no gateway is
involved.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, PaymentStatus


@marketplace.command(part_of="Order")
class ChangePaymentStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=PaymentStatus)


@marketplace.command_handler(part_of=Order)
class PaymentStatusHandler:
    @handle(ChangePaymentStatus)
    def change_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.change_payment_status(PaymentStatus(command.new_status))
        repo.add(order)

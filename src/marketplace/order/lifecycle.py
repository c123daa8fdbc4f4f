"""Order lifecycle: status, payment and cancellation on behalf of a principal.

Input checks that need no stored state happen here, before a command is
issued; ownership and transition rules are enforced by the ``Order``
aggregate inside the command handlers.

Cancellation is two steps. The cancelled status is committed first, then
each line item's stock goes back through the inventory ledger. A failing
release is logged and the remaining items are still attempted; the
cancellation itself stands.
"""

import structlog
from protean.utils.globals import current_domain

from marketplace.inventory import ledger
from marketplace.order.cancellation import CancelOrder
from marketplace.order.order import Order, OrderStatus, PaymentStatus
from marketplace.order.payment import ChangePaymentStatus
from marketplace.order.status import ChangeOrderStatus, ScheduleDelivery
from marketplace.shared.errors import Forbidden, InvalidStatus

logger = structlog.get_logger(__name__)


def _parse(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise InvalidStatus(f"Invalid status '{value}'") from exc


def get_order(order_id, actor) -> Order:
    order = current_domain.repository_for(Order).fetch(order_id)
    order.assert_visible_to(actor)
    return order


def list_orders(actor) -> list[Order]:
    return current_domain.repository_for(Order).visible_to(actor)


def set_status(order_id, new_status, actor) -> Order:
    status = _parse(OrderStatus, new_status)
    current_domain.process(
        ChangeOrderStatus(
            order_id=str(order_id),
            new_status=status.value,
            actor_id=actor.id,
            actor_role=actor.role.value,
        ),
        asynchronous=False,
    )
    logger.info("order.status_changed", order_id=str(order_id), new_status=status.value, actor_id=actor.id)
    return current_domain.repository_for(Order).fetch(order_id)


def set_payment_status(order_id, new_status, actor) -> Order:
    if not actor.is_admin:
        raise Forbidden("Only administrators can update payment status")

    status = _parse(PaymentStatus, new_status)
    current_domain.process(
        ChangePaymentStatus(order_id=str(order_id), new_status=status.value),
        asynchronous=False,
    )
    logger.info("order.payment_status_changed", order_id=str(order_id), new_status=status.value)
    return current_domain.repository_for(Order).fetch(order_id)


def schedule_delivery(order_id, expected_delivery_date, actor) -> Order:
    current_domain.process(
        ScheduleDelivery(
            order_id=str(order_id),
            expected_delivery_date=expected_delivery_date,
            actor_id=actor.id,
            actor_role=actor.role.value,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Order).fetch(order_id)


def cancel(order_id, actor) -> Order:
    """Cancel a pending order and return its stock to the ledger."""
    lines = current_domain.process(
        CancelOrder(order_id=str(order_id), actor_id=actor.id, actor_role=actor.role.value),
        asynchronous=False,
    )
    logger.info("order.cancelled", order_id=str(order_id), cancelled_by=actor.id)

    failures = 0
    for product_id, quantity in lines:
        try:
            ledger.release(product_id, quantity, order_id)
        except Exception:
            failures += 1
            logger.exception(
                "order.cancel_release_failed",
                order_id=str(order_id),
                product_id=product_id,
                quantity=quantity,
            )

    if failures:
        logger.warning("order.cancel_incomplete_release", order_id=str(order_id), failed_items=failures)

    return current_domain.repository_for(Order).fetch(order_id)

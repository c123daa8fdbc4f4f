"""Stock movements: commands and handler.

Every command here loads the product, applies one movement and saves it in
its own unit of work. The save is a versioned write, so two movements racing
on the same product cannot both commit against the same starting quantity.
Callers go through ``marketplace.inventory.ledger`` rather than processing
these commands directly.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.inventory.product import Product
from marketplace.shared.principal import Principal


@marketplace.command(part_of="Product")
class ReserveStock:
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command(part_of="Product")
class ReleaseStock:
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)


@marketplace.command(part_of="Product")
class ReplenishStock:
    """Add newly harvested stock to a product's available quantity."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.command_handler(part_of=Product)
class StockHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.fetch(command.product_id)
        reservation = product.reserve(order_id=command.order_id, quantity=command.quantity)
        repo.add(product)

        return {
            "product_id": str(product.id),
            "seller_id": str(product.seller_id),
            "name": product.name,
            "unit": product.unit,
            "quantity": reservation.quantity,
            "unit_price": reservation.unit_price,
        }

    @handle(ReleaseStock)
    def release_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.fetch(command.product_id)
        released = product.release(order_id=command.order_id)
        if released:
            repo.add(product)
        return released

    @handle(ReplenishStock)
    def replenish_stock(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Product)
        product = repo.fetch(command.product_id)
        product.assert_manageable_by(actor)
        product.replenish(command.quantity)
        repo.add(product)
        return product.available_quantity

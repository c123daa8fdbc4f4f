"""Product listing: commands and handler.

Farmers list produce; the owning farmer or an administrator maintains the
listing afterwards. Available quantity is set once at listing time and then
moves only through the inventory ledger.
"""

import json

from protean import handle
from protean.fields import Boolean, Date, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.inventory.product import Product
from marketplace.shared.errors import Forbidden
from marketplace.shared.principal import Principal


@marketplace.command(part_of="Product")
class ListProduct:
    """Put a new product up for sale."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True)
    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=0)
    unit = String(required=True)
    category = String(required=True)
    location = String(required=True, max_length=255)
    images = Text()  # JSON array of image URLs
    harvested_date = Date()
    expiry_date = Date()


@marketplace.command(part_of="Product")
class UpdateProductDetails:
    """Edit the descriptive fields or price of a product."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True)
    product_id = Identifier(required=True)
    name = String(max_length=100)
    description = Text()
    price = Float(min_value=0.0)
    unit = String()
    category = String()
    location = String(max_length=255)
    images = Text()  # JSON array of image URLs
    harvested_date = Date()
    expiry_date = Date()


@marketplace.command(part_of="Product")
class SetProductAvailability:
    actor_id = Identifier(required=True)
    actor_role = String(required=True)
    product_id = Identifier(required=True)
    is_available = Boolean(required=True)


@marketplace.command_handler(part_of=Product)
class ProductListingHandler:
    @handle(ListProduct)
    def list_product(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        if not actor.is_farmer:
            raise Forbidden("Only farmers can create products")

        product = Product.list_for_sale(
            seller_id=actor.id,
            name=command.name,
            description=command.description,
            price=command.price,
            quantity=command.quantity,
            unit=command.unit,
            category=command.category,
            location=command.location,
            images=json.loads(command.images) if command.images else [],
            harvested_date=command.harvested_date,
            expiry_date=command.expiry_date,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProductDetails)
    def update_details(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Product)
        product = repo.fetch(command.product_id)
        product.assert_manageable_by(actor)

        product.update_details(
            name=command.name,
            description=command.description,
            price=command.price,
            unit=command.unit,
            category=command.category,
            location=command.location,
            images=json.loads(command.images) if command.images else None,
            harvested_date=command.harvested_date,
            expiry_date=command.expiry_date,
        )
        repo.add(product)

    @handle(SetProductAvailability)
    def set_availability(self, command):
        actor = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Product)
        product = repo.fetch(command.product_id)
        product.assert_manageable_by(actor)
        product.set_availability(command.is_available)
        repo.add(product)

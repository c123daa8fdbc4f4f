"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductListed:
    """A farmer put a new product up for sale."""

    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    available_quantity = Integer(required=True)
    unit = String(required=True)
    category = String(required=True)
    listed_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductDetailsUpdated:
    """Descriptive fields or the price of a product changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    changed_fields = String(required=True)  # Comma-separated field names
    price = Float()
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductAvailabilityChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    is_available = Boolean(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReserved:
    """Stock was taken out of the available pool for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)
    reserved_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReleased:
    """An order's reserved stock went back into the available pool."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)
    released_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReplenished:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)
    replenished_at = DateTime(required=True)

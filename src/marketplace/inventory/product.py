"""Product aggregate (CQRS): a farmer's produce listing and its available stock.

The product is the unit the inventory ledger reserves against. Its available
quantity only changes through ``reserve``, ``release`` and ``replenish``, and
every change bumps the aggregate version so concurrent writers are rejected
at commit time rather than overselling.

Each open hold is kept as a child entity so a release can be matched to the
order that made it. Releasing removes the hold, so the aggregate only ever
carries active reservations and a repeated release for the same order is a
no-op.
"""

import json
from datetime import UTC, date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from marketplace.domain import marketplace
from marketplace.inventory.events import (
    ProductAvailabilityChanged,
    ProductDetailsUpdated,
    ProductListed,
    StockReleased,
    StockReplenished,
    StockReserved,
)
from marketplace.shared.errors import (
    Forbidden,
    InsufficientStock,
    InvalidQuantity,
    ProductUnavailable,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ProductUnit(Enum):
    KG = "kg"
    G = "g"
    PIECE = "piece"
    BUNCH = "bunch"
    CRATE = "crate"


class ProductCategory(Enum):
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    HERBS = "herbs"
    TUBERS = "tubers"
    CEREALS = "cereals"
    OTHER = "other"


# Fields a seller may edit after listing. Stock moves through the ledger only.
_EDITABLE_FIELDS = (
    "name",
    "description",
    "price",
    "unit",
    "category",
    "location",
    "harvested_date",
    "expiry_date",
)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Product", limit=None)
class StockReservation:
    """Stock held for one order, priced at the moment it was taken."""

    order_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    reserved_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Product:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.0)
    available_quantity = Integer(required=True, min_value=0)
    unit = String(required=True, choices=ProductUnit)
    category = String(required=True, choices=ProductCategory)
    images = Text()  # JSON array of image URLs
    is_available = Boolean(default=True)
    location = String(required=True, max_length=255)
    harvested_date = Date()
    expiry_date = Date()
    reservations = HasMany(StockReservation)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def expiry_cannot_precede_harvest(self):
        if self.harvested_date and self.expiry_date and self.expiry_date < self.harvested_date:
            raise ValidationError({"expiry_date": ["Expiry date cannot be before the harvest date"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def list_for_sale(
        cls,
        seller_id,
        name,
        price,
        quantity,
        unit,
        category,
        location,
        description=None,
        images=None,
        harvested_date=None,
        expiry_date=None,
    ):
        now = datetime.now(UTC)
        product = cls(
            seller_id=seller_id,
            name=name,
            description=description,
            price=price,
            available_quantity=quantity,
            unit=unit,
            category=category,
            location=location,
            images=json.dumps(images or []),
            harvested_date=harvested_date,
            expiry_date=expiry_date,
            is_available=True,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductListed(
                product_id=str(product.id),
                seller_id=str(seller_id),
                name=name,
                price=price,
                available_quantity=quantity,
                unit=product.unit,
                category=product.category,
                listed_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_fresh(self):
        return self.expiry_date is None or self.expiry_date > date.today()

    @property
    def image_urls(self):
        return json.loads(self.images) if self.images else []

    def assert_manageable_by(self, actor):
        """Only the listing farmer or an administrator may change a product."""
        if str(self.seller_id) != actor.id and not actor.is_admin:
            raise Forbidden("Not authorized to update this product")

    # -------------------------------------------------------------------
    # Listing management
    # -------------------------------------------------------------------
    def update_details(self, **changes):
        changed = []
        for field_name in _EDITABLE_FIELDS:
            if field_name in changes and changes[field_name] is not None:
                setattr(self, field_name, changes[field_name])
                changed.append(field_name)

        if "images" in changes and changes["images"] is not None:
            self.images = json.dumps(changes["images"])
            changed.append("images")

        if not changed:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                changed_fields=",".join(changed),
                price=self.price,
                updated_at=now,
            )
        )

    def set_availability(self, is_available):
        if bool(is_available) == bool(self.is_available):
            return

        now = datetime.now(UTC)
        self.is_available = bool(is_available)
        self.updated_at = now
        self.raise_(
            ProductAvailabilityChanged(
                product_id=str(self.id),
                is_available=self.is_available,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def reserve(self, order_id, quantity):
        """Take ``quantity`` out of available stock for ``order_id``.

        Returns the new reservation. The price on the reservation is the
        product's price right now, which becomes the order line's snapshot.
        """
        if quantity is None or quantity < 1:
            raise InvalidQuantity()

        if not self.is_available:
            raise ProductUnavailable(f"{self.name} is not available")

        available = self.available_quantity
        if available < quantity:
            raise InsufficientStock(f"Insufficient stock for {self.name}. Available: {available}")

        now = datetime.now(UTC)
        reservation = StockReservation(
            order_id=order_id,
            quantity=quantity,
            unit_price=self.price,
            reserved_at=now,
        )
        self.add_reservations(reservation)
        self.available_quantity = available - quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                unit_price=self.price,
                previous_available=available,
                new_available=self.available_quantity,
                reserved_at=now,
            )
        )
        return reservation

    def release(self, order_id):
        """Return every reservation held by ``order_id`` to stock.

        Returns the quantity released, which is zero when the order holds no
        reservation here (already released, or never reserved).
        """
        held = [r for r in self.reservations if str(r.order_id) == str(order_id)]
        if not held:
            return 0

        now = datetime.now(UTC)
        quantity = sum(r.quantity for r in held)
        self.remove_reservations(held)

        available = self.available_quantity
        self.available_quantity = available + quantity
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                previous_available=available,
                new_available=self.available_quantity,
                released_at=now,
            )
        )
        return quantity

    def replenish(self, quantity):
        if quantity is None or quantity < 1:
            raise InvalidQuantity()

        now = datetime.now(UTC)
        available = self.available_quantity
        self.available_quantity = available + quantity
        self.updated_at = now

        self.raise_(
            StockReplenished(
                product_id=str(self.id),
                quantity=quantity,
                previous_available=available,
                new_available=self.available_quantity,
                replenished_at=now,
            )
        )

"""Tests for the Product aggregate: listing, stock movements and ownership."""

from datetime import date, timedelta

import pytest
from protean.exceptions import ValidationError

from marketplace.inventory.events import (
    ProductAvailabilityChanged,
    ProductListed,
    StockReleased,
    StockReplenished,
    StockReserved,
)
from marketplace.inventory.product import Product
from marketplace.shared.errors import (
    Forbidden,
    InsufficientStock,
    InvalidQuantity,
    ProductUnavailable,
)
from marketplace.shared.principal import Principal, Role


def _make_product(quantity=10, price=100.0, **extra):
    return Product.list_for_sale(
        seller_id="farmer-001",
        name="Tomatoes",
        price=price,
        quantity=quantity,
        unit="kg",
        category="vegetables",
        location="Kiambu",
        **extra,
    )


class TestListing:
    def test_new_product_is_available(self):
        product = _make_product()
        assert product.is_available is True
        assert product.available_quantity == 10
        assert product.created_at is not None

    def test_listing_raises_event(self):
        product = _make_product()
        assert len(product._events) == 1
        event = product._events[0]
        assert isinstance(event, ProductListed)
        assert event.seller_id == "farmer-001"
        assert event.available_quantity == 10

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(price=-1.0)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(quantity=-1)

    def test_unknown_unit_rejected(self):
        with pytest.raises(ValidationError):
            Product.list_for_sale(
                seller_id="farmer-001",
                name="Tomatoes",
                price=10.0,
                quantity=1,
                unit="tonne",
                category="vegetables",
                location="Kiambu",
            )

    def test_expiry_before_harvest_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(harvested_date=date(2024, 5, 10), expiry_date=date(2024, 5, 1))

    def test_images_are_kept_in_order(self):
        product = _make_product(images=["a.jpg", "b.jpg"])
        assert product.image_urls == ["a.jpg", "b.jpg"]


class TestFreshness:
    def test_fresh_without_expiry(self):
        assert _make_product().is_fresh is True

    def test_fresh_before_expiry(self):
        product = _make_product(expiry_date=date.today() + timedelta(days=3))
        assert product.is_fresh is True

    def test_stale_after_expiry(self):
        product = _make_product(
            harvested_date=date.today() - timedelta(days=10),
            expiry_date=date.today() - timedelta(days=1),
        )
        assert product.is_fresh is False


class TestReserve:
    def test_reserve_decrements_available(self):
        product = _make_product(quantity=10)
        product.reserve(order_id="ord-1", quantity=3)
        assert product.available_quantity == 7

    def test_reserve_snapshots_price(self):
        product = _make_product(price=80.0)
        reservation = product.reserve(order_id="ord-1", quantity=2)
        product.price = 120.0
        assert reservation.unit_price == 80.0

    def test_reserve_records_active_reservation(self):
        product = _make_product()
        product.reserve(order_id="ord-1", quantity=2)
        assert len(product.reservations) == 1
        assert product.reservations[0].order_id == "ord-1"

    def test_reserve_exact_stock(self):
        product = _make_product(quantity=4)
        product.reserve(order_id="ord-1", quantity=4)
        assert product.available_quantity == 0

    def test_reserve_more_than_available(self):
        product = _make_product(quantity=2)
        with pytest.raises(InsufficientStock) as exc:
            product.reserve(order_id="ord-1", quantity=3)
        assert "Available: 2" in exc.value.message
        assert product.available_quantity == 2
        assert product.reservations == []

    def test_reserve_unavailable_product(self):
        product = _make_product()
        product.set_availability(False)
        with pytest.raises(ProductUnavailable):
            product.reserve(order_id="ord-1", quantity=1)
        assert product.available_quantity == 10

    def test_reserve_zero_quantity(self):
        product = _make_product()
        with pytest.raises(InvalidQuantity):
            product.reserve(order_id="ord-1", quantity=0)

    def test_reserve_raises_event(self):
        product = _make_product(quantity=5)
        product._events.clear()
        product.reserve(order_id="ord-1", quantity=2)
        event = product._events[0]
        assert isinstance(event, StockReserved)
        assert event.previous_available == 5
        assert event.new_available == 3


class TestRelease:
    def test_release_restores_stock(self):
        product = _make_product(quantity=10)
        product.reserve(order_id="ord-1", quantity=3)
        released = product.release(order_id="ord-1")
        assert released == 3
        assert product.available_quantity == 10

    def test_release_drops_the_hold(self):
        product = _make_product()
        product.reserve(order_id="ord-1", quantity=3)
        product.release(order_id="ord-1")
        assert product.reservations == []

    def test_holds_do_not_accumulate_across_orders(self):
        product = _make_product(quantity=10)
        for n in range(50):
            product.reserve(order_id=f"ord-{n}", quantity=2)
            product.release(order_id=f"ord-{n}")
        product.reserve(order_id="ord-open", quantity=1)

        assert [r.order_id for r in product.reservations] == ["ord-open"]
        assert product.available_quantity == 9

    def test_second_release_is_noop(self):
        product = _make_product(quantity=10)
        product.reserve(order_id="ord-1", quantity=3)
        product.release(order_id="ord-1")
        product._events.clear()

        assert product.release(order_id="ord-1") == 0
        assert product.available_quantity == 10
        assert product._events == []

    def test_release_only_touches_that_order(self):
        product = _make_product(quantity=10)
        product.reserve(order_id="ord-1", quantity=3)
        product.reserve(order_id="ord-2", quantity=4)
        product.release(order_id="ord-1")
        assert product.available_quantity == 6
        assert [r.order_id for r in product.reservations] == ["ord-2"]

    def test_release_raises_event(self):
        product = _make_product()
        product.reserve(order_id="ord-1", quantity=3)
        product._events.clear()
        product.release(order_id="ord-1")
        assert isinstance(product._events[0], StockReleased)
        assert product._events[0].quantity == 3


class TestReplenish:
    def test_replenish_adds_stock(self):
        product = _make_product(quantity=1)
        product.replenish(9)
        assert product.available_quantity == 10
        assert isinstance(product._events[-1], StockReplenished)

    def test_replenish_requires_positive_quantity(self):
        product = _make_product()
        with pytest.raises(InvalidQuantity):
            product.replenish(0)


class TestListingManagement:
    def test_update_details(self):
        product = _make_product()
        product.update_details(name="Cherry Tomatoes", price=150.0)
        assert product.name == "Cherry Tomatoes"
        assert product.price == 150.0

    def test_update_details_ignores_unset_fields(self):
        product = _make_product()
        product._events.clear()
        product.update_details(name=None, price=None)
        assert product.name == "Tomatoes"
        assert product._events == []

    def test_update_details_cannot_change_stock(self):
        product = _make_product(quantity=10)
        product.update_details(available_quantity=500)
        assert product.available_quantity == 10

    def test_availability_toggle_raises_event_once(self):
        product = _make_product()
        product._events.clear()
        product.set_availability(False)
        product.set_availability(False)
        assert len(product._events) == 1
        assert isinstance(product._events[0], ProductAvailabilityChanged)

    def test_owner_can_manage(self):
        _make_product().assert_manageable_by(Principal(id="farmer-001", role=Role.FARMER))

    def test_admin_can_manage(self):
        _make_product().assert_manageable_by(Principal(id="admin-001", role=Role.ADMIN))

    def test_other_farmer_cannot_manage(self):
        with pytest.raises(Forbidden):
            _make_product().assert_manageable_by(Principal(id="farmer-999", role=Role.FARMER))

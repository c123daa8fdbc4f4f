"""Tests for listing, editing and browsing products."""

import json
from datetime import date

import pytest
from protean import current_domain

from marketplace.inventory.listing import ListProduct, SetProductAvailability, UpdateProductDetails
from marketplace.inventory.product import Product
from marketplace.shared.errors import Forbidden, ProductNotFound


def _repo():
    return current_domain.repository_for(Product)


class TestListProduct:
    def test_farmer_lists_product(self, farmer, list_product):
        product_id = list_product(farmer, name="Sukuma Wiki", price=40.0, quantity=120, unit="bunch")

        product = _repo().fetch(product_id)
        assert product.seller_id == farmer.id
        assert product.name == "Sukuma Wiki"
        assert product.available_quantity == 120
        assert product.is_available is True

    def test_images_round_trip_through_command(self, farmer, list_product):
        product_id = list_product(farmer, images=json.dumps(["a.jpg", "b.jpg"]))
        assert _repo().fetch(product_id).image_urls == ["a.jpg", "b.jpg"]

    @pytest.mark.parametrize("role", ["customer", "admin"])
    def test_only_farmers_list(self, role, request, list_product):
        with pytest.raises(Forbidden):
            list_product(request.getfixturevalue(role))


class TestUpdateProduct:
    def test_owner_updates_price(self, farmer, list_product):
        product_id = list_product(farmer, price=100.0)

        current_domain.process(
            UpdateProductDetails(actor_id=farmer.id, actor_role="farmer", product_id=product_id, price=120.0),
            asynchronous=False,
        )

        product = _repo().fetch(product_id)
        assert product.price == 120.0
        assert product.name == "Tomatoes"

    def test_other_farmer_is_forbidden(self, farmer, other_farmer, list_product):
        product_id = list_product(farmer)
        with pytest.raises(Forbidden):
            current_domain.process(
                UpdateProductDetails(
                    actor_id=other_farmer.id, actor_role="farmer", product_id=product_id, price=1.0
                ),
                asynchronous=False,
            )
        assert _repo().fetch(product_id).price == 100.0

    def test_admin_sets_availability(self, farmer, admin, list_product):
        product_id = list_product(farmer)
        current_domain.process(
            SetProductAvailability(actor_id=admin.id, actor_role="admin", product_id=product_id, is_available=False),
            asynchronous=False,
        )
        assert _repo().fetch(product_id).is_available is False

    def test_unknown_product(self, farmer):
        with pytest.raises(ProductNotFound):
            current_domain.process(
                UpdateProductDetails(actor_id=farmer.id, actor_role="farmer", product_id="missing", price=1.0),
                asynchronous=False,
            )

    def test_price_change_does_not_touch_existing_order_lines(self, farmer, customer, address, list_product):
        from marketplace.order.builder import create_order

        product_id = list_product(farmer, price=100.0)
        order = create_order(customer, [{"product_id": product_id, "quantity": 2}], address, "mpesa")

        current_domain.process(
            UpdateProductDetails(actor_id=farmer.id, actor_role="farmer", product_id=product_id, price=150.0),
            asynchronous=False,
        )

        from marketplace.order.order import Order

        stored = current_domain.repository_for(Order).fetch(order.id)
        assert stored.items[0].unit_price == 100.0
        assert stored.total_amount == 200.0


class TestBrowse:
    @pytest.fixture
    def catalogue(self, farmer, other_farmer, list_product):
        return {
            "tomatoes": list_product(farmer, price=100.0, category="vegetables", location="Kiambu"),
            "mangoes": list_product(farmer, name="Mangoes", price=30.0, unit="piece", category="fruits", location="Machakos"),
            "kale": list_product(other_farmer, name="Kale", price=40.0, unit="bunch", category="vegetables", location="Nakuru"),
        }

    def test_filter_by_category(self, catalogue):
        products, total = _repo().browse(category="vegetables")
        assert total == 2
        assert {p.id for p in products} == {catalogue["tomatoes"], catalogue["kale"]}

    def test_filter_by_price_range(self, catalogue):
        products, total = _repo().browse(min_price=35.0, max_price=100.0)
        assert {p.id for p in products} == {catalogue["tomatoes"], catalogue["kale"]}

    def test_filter_by_location_is_case_insensitive(self, catalogue):
        products, _ = _repo().browse(location="machakos")
        assert [p.id for p in products] == [catalogue["mangoes"]]

    def test_pagination(self, catalogue):
        first, total = _repo().browse(page=1, limit=2)
        second, _ = _repo().browse(page=2, limit=2)
        assert total == 3
        assert len(first) == 2
        assert len(second) == 1
        assert {p.id for p in first + second} == set(catalogue.values())

    def test_products_by_seller(self, catalogue, other_farmer):
        assert [p.id for p in _repo().by_seller(other_farmer.id)] == [catalogue["kale"]]

    @pytest.mark.slow
    def test_products_by_seller_is_not_truncated(self, other_farmer, list_product):
        listed = {list_product(other_farmer, name=f"Crate {n}") for n in range(105)}
        assert {p.id for p in _repo().by_seller(other_farmer.id)} == listed


class TestDates:
    def test_expiry_before_harvest_rejected(self, farmer, list_product):
        from protean.exceptions import ValidationError

        with pytest.raises(ValidationError):
            list_product(farmer, harvested_date=date(2024, 5, 10), expiry_date=date(2024, 5, 1))

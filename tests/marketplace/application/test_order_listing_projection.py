import pytest

from marketplace.order import lifecycle
from marketplace.order.builder import create_order
from marketplace.projections.order_listing import order_listing


@pytest.fixture
def placed(farmer, customer, address, list_product):
    product_id = list_product(farmer, price=100.0, quantity=10)
    return create_order(customer, [{"product_id": product_id, "quantity": 2}], address, "mpesa")


class TestOrderListing:
    def test_row_created_when_order_placed(self, placed, customer):
        [row] = order_listing(customer)
        assert row.order_id == placed.id
        assert row.status == "pending"
        assert row.payment_status == "pending"
        assert row.item_count == 1
        assert row.total_amount == 200.0

    def test_status_change_updates_row(self, placed, farmer):
        lifecycle.set_status(placed.id, "accepted", farmer)
        [row] = order_listing(farmer)
        assert row.status == "accepted"

    def test_cancellation_updates_row(self, placed, customer):
        lifecycle.cancel(placed.id, customer)
        [row] = order_listing(customer)
        assert row.status == "cancelled"

    def test_payment_updates_row(self, placed, admin):
        lifecycle.set_payment_status(placed.id, "completed", admin)
        [row] = order_listing(admin)
        assert row.payment_status == "completed"

    def test_rows_scoped_to_participants(self, placed, other_customer, other_farmer):
        assert order_listing(other_customer) == []
        assert order_listing(other_farmer) == []

    @pytest.mark.slow
    def test_long_history_is_not_truncated(self, farmer, customer, address, list_product):
        product_id = list_product(farmer, quantity=200)
        placed = {
            create_order(customer, [{"product_id": product_id, "quantity": 1}], address, "mpesa").id
            for _ in range(105)
        }
        assert {row.order_id for row in order_listing(customer)} == placed

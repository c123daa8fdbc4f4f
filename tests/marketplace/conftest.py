import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture
def farmer():
    from marketplace.shared.principal import Principal, Role

    return Principal(id="farmer-001", role=Role.FARMER)


@pytest.fixture
def other_farmer():
    from marketplace.shared.principal import Principal, Role

    return Principal(id="farmer-002", role=Role.FARMER)


@pytest.fixture
def customer():
    from marketplace.shared.principal import Principal, Role

    return Principal(id="cust-001", role=Role.CUSTOMER)


@pytest.fixture
def other_customer():
    from marketplace.shared.principal import Principal, Role

    return Principal(id="cust-002", role=Role.CUSTOMER)


@pytest.fixture
def admin():
    from marketplace.shared.principal import Principal, Role

    return Principal(id="admin-001", role=Role.ADMIN)


@pytest.fixture
def address():
    return {
        "street": "12 Moi Avenue",
        "city": "Nairobi",
        "state": "Nairobi County",
        "postal_code": "00100",
        "country": "Kenya",
    }


@pytest.fixture
def list_product():
    """Factory: list a product through the command pipeline, return its id."""
    from protean import current_domain

    from marketplace.inventory.listing import ListProduct

    def _list(seller, name="Tomatoes", price=100.0, quantity=10, unit="kg", category="vegetables", **extra):
        return current_domain.process(
            ListProduct(
                actor_id=seller.id,
                actor_role=seller.role.value,
                name=name,
                price=price,
                quantity=quantity,
                unit=unit,
                category=category,
                location=extra.pop("location", "Kiambu"),
                **extra,
            ),
            asynchronous=False,
        )

    return _list


@pytest.fixture
def stock_of():
    """Current available quantity of a product."""
    from protean import current_domain

    from marketplace.inventory.product import Product

    def _stock(product_id):
        return current_domain.repository_for(Product).get(product_id).available_quantity

    return _stock

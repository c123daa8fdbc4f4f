"""Product repository with catalogue queries."""

from marketplace.domain import marketplace
from marketplace.inventory.product import Product
from marketplace.shared.errors import ProductNotFound


@marketplace.repository(part_of=Product)
class ProductRepository:
    def fetch(self, product_id) -> Product:
        """Load a product or raise ``ProductNotFound``."""
        product = self.get_or_none(product_id)
        if product is None:
            raise ProductNotFound()
        return product

    def by_seller(self, seller_id) -> list[Product]:
        return self.query.filter(seller_id=str(seller_id)).order_by("-created_at").limit(None).all().items

    def browse(
        self,
        category=None,
        min_price=None,
        max_price=None,
        location=None,
        available=None,
        page=1,
        limit=10,
    ):
        """Filtered, paginated product listing, newest first.

        Returns ``(products, total)``.
        """
        query = self.query
        if category:
            query = query.filter(category=category)
        if min_price is not None:
            query = query.filter(price__gte=min_price)
        if max_price is not None:
            query = query.filter(price__lte=max_price)
        if location:
            query = query.filter(location__icontains=location)
        if available is not None:
            query = query.filter(is_available=available)

        page = max(page, 1)
        results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return results.items, results.total

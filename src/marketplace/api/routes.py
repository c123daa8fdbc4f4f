"""FastAPI routes for the Marketplace domain: products and orders.

The acting principal comes from the ``X-Principal-Id`` and
``X-Principal-Role`` headers set by the identity collaborator in front of
this service, and is passed explicitly into every operation.

Handlers are plain functions so FastAPI runs them in its threadpool: stock
movements can sleep between write retries and must not block the event loop.
"""

import json
import math

from fastapi import APIRouter, Depends, Header
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    CreateOrderRequest,
    CreateProductRequest,
    Envelope,
    OrderListingResponse,
    OrderResponse,
    ProductAvailabilityRequest,
    ProductPage,
    ProductResponse,
    RestockRequest,
    RestockResponse,
    ScheduleDeliveryRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    UpdateProductRequest,
)
from marketplace.inventory import ledger
from marketplace.inventory.listing import ListProduct, SetProductAvailability, UpdateProductDetails
from marketplace.inventory.product import Product
from marketplace.order import lifecycle
from marketplace.order.builder import create_order
from marketplace.projections.order_listing import order_listing
from marketplace.shared.principal import Principal
from marketplace.utils.logging import add_context


def current_principal(
    x_principal_id: str | None = Header(default=None),
    x_principal_role: str | None = Header(default=None),
) -> Principal:
    principal = Principal.of(x_principal_id, x_principal_role)
    add_context(principal_id=principal.id, principal_role=principal.role.value)
    return principal


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=Envelope[ProductResponse])
def list_product(
    body: CreateProductRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[ProductResponse]:
    command = ListProduct(
        actor_id=principal.id,
        actor_role=principal.role.value,
        name=body.name,
        description=body.description,
        price=body.price,
        quantity=body.quantity,
        unit=body.unit,
        category=body.category,
        location=body.location,
        images=json.dumps(body.images),
        harvested_date=body.harvested_date,
        expiry_date=body.expiry_date,
    )
    product_id = current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).fetch(product_id)
    return Envelope(data=ProductResponse.from_product(product))


@product_router.get("", response_model=Envelope[ProductPage])
def browse_products(
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    location: str | None = None,
    available: bool | None = None,
    page: int = 1,
    limit: int = 10,
) -> Envelope[ProductPage]:
    limit = min(max(limit, 1), 100)
    products, total = current_domain.repository_for(Product).browse(
        category=category,
        min_price=min_price,
        max_price=max_price,
        location=location,
        available=available,
        page=page,
        limit=limit,
    )
    return Envelope(
        data=ProductPage(
            products=[ProductResponse.from_product(p) for p in products],
            page=max(page, 1),
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        )
    )


@product_router.get("/seller/{seller_id}", response_model=Envelope[list[ProductResponse]])
def products_by_seller(seller_id: str) -> Envelope[list[ProductResponse]]:
    products = current_domain.repository_for(Product).by_seller(seller_id)
    return Envelope(data=[ProductResponse.from_product(p) for p in products])


@product_router.get("/{product_id}", response_model=Envelope[ProductResponse])
def get_product(product_id: str) -> Envelope[ProductResponse]:
    product = current_domain.repository_for(Product).fetch(product_id)
    return Envelope(data=ProductResponse.from_product(product))


@product_router.put("/{product_id}", response_model=Envelope[ProductResponse])
def update_product(
    product_id: str,
    body: UpdateProductRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[ProductResponse]:
    command = UpdateProductDetails(
        actor_id=principal.id,
        actor_role=principal.role.value,
        product_id=product_id,
        name=body.name,
        description=body.description,
        price=body.price,
        unit=body.unit,
        category=body.category,
        location=body.location,
        images=json.dumps(body.images) if body.images is not None else None,
        harvested_date=body.harvested_date,
        expiry_date=body.expiry_date,
    )
    current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).fetch(product_id)
    return Envelope(data=ProductResponse.from_product(product))


@product_router.patch("/{product_id}/availability", response_model=Envelope[ProductResponse])
def set_product_availability(
    product_id: str,
    body: ProductAvailabilityRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[ProductResponse]:
    command = SetProductAvailability(
        actor_id=principal.id,
        actor_role=principal.role.value,
        product_id=product_id,
        is_available=body.is_available,
    )
    current_domain.process(command, asynchronous=False)
    product = current_domain.repository_for(Product).fetch(product_id)
    return Envelope(data=ProductResponse.from_product(product))


@product_router.post("/{product_id}/restock", response_model=Envelope[RestockResponse])
def restock_product(
    product_id: str,
    body: RestockRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[RestockResponse]:
    available = ledger.replenish(product_id, body.quantity, principal)
    return Envelope(data=RestockResponse(product_id=product_id, available_quantity=available))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=Envelope[OrderResponse])
def place_order(
    body: CreateOrderRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[OrderResponse]:
    order = create_order(
        customer=principal,
        items=[item.model_dump() for item in body.items] if body.items else [],
        delivery_address=body.delivery_address.model_dump(exclude_none=True),
        payment_method=body.payment_method,
        delivery_instructions=body.delivery_instructions,
    )
    return Envelope(data=OrderResponse.from_order(order))


@order_router.get("", response_model=Envelope[list[OrderResponse]])
def list_orders(principal: Principal = Depends(current_principal)) -> Envelope[list[OrderResponse]]:
    orders = lifecycle.list_orders(principal)
    return Envelope(data=[OrderResponse.from_order(order) for order in orders])


@order_router.get("/listing", response_model=Envelope[list[OrderListingResponse]])
def list_order_summaries(
    principal: Principal = Depends(current_principal),
) -> Envelope[list[OrderListingResponse]]:
    rows = order_listing(principal)
    return Envelope(
        data=[
            OrderListingResponse(
                order_id=str(row.order_id),
                customer_id=str(row.customer_id),
                seller_id=str(row.seller_id),
                status=row.status,
                payment_status=row.payment_status,
                item_count=row.item_count or 0,
                total_amount=row.total_amount,
                placed_at=row.placed_at,
                updated_at=row.updated_at,
            )
            for row in rows
        ]
    )


@order_router.get("/{order_id}", response_model=Envelope[OrderResponse])
def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> Envelope[OrderResponse]:
    order = lifecycle.get_order(order_id, principal)
    return Envelope(data=OrderResponse.from_order(order))


@order_router.put("/{order_id}/status", response_model=Envelope[OrderResponse])
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[OrderResponse]:
    order = lifecycle.set_status(order_id, body.status, principal)
    return Envelope(data=OrderResponse.from_order(order))


@order_router.put("/{order_id}/payment", response_model=Envelope[OrderResponse])
def update_payment_status(
    order_id: str,
    body: UpdatePaymentStatusRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[OrderResponse]:
    order = lifecycle.set_payment_status(order_id, body.payment_status, principal)
    return Envelope(data=OrderResponse.from_order(order))


@order_router.put("/{order_id}/delivery", response_model=Envelope[OrderResponse])
def schedule_delivery(
    order_id: str,
    body: ScheduleDeliveryRequest,
    principal: Principal = Depends(current_principal),
) -> Envelope[OrderResponse]:
    order = lifecycle.schedule_delivery(order_id, body.expected_delivery_date, principal)
    return Envelope(data=OrderResponse.from_order(order))


@order_router.put("/{order_id}/cancel", response_model=Envelope[OrderResponse])
def cancel_order(order_id: str, principal: Principal = Depends(current_principal)) -> Envelope[OrderResponse]:
    order = lifecycle.cancel(order_id, principal)
    return Envelope(data=OrderResponse.from_order(order))

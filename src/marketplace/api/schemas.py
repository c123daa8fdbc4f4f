"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Every response is wrapped in the
``{"success": true, "data": ...}`` envelope.
"""

from datetime import date, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    success: bool = True
    data: DataT


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    # Completeness is a domain rule (InvalidDeliveryAddress), so fields are
    # optional at the HTTP boundary.
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[OrderItemRequest] | None = None
    delivery_address: AddressSchema = Field(default_factory=AddressSchema)
    payment_method: str | None = None
    delivery_instructions: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "delivery_address": {
                        "street": "12 Moi Avenue",
                        "city": "Nairobi",
                        "state": "Nairobi County",
                        "postal_code": "00100",
                        "country": "Kenya",
                    },
                    "payment_method": "mpesa",
                    "delivery_instructions": "Leave at the gate",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str


class ScheduleDeliveryRequest(BaseModel):
    expected_delivery_date: datetime


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    unit: str | None = None
    quantity: int
    unit_price: float
    subtotal: float


class DeliveryAddressResponse(BaseModel):
    street: str
    city: str
    state: str
    postal_code: str
    country: str


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    seller_id: str
    items: list[OrderItemResponse]
    total_amount: float
    status: str
    payment_status: str
    payment_method: str
    delivery_address: DeliveryAddressResponse | None = None
    delivery_instructions: str | None = None
    delivery_status: str
    expected_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.delivery_address
        return cls(
            id=str(order.id),
            customer_id=str(order.customer_id),
            seller_id=str(order.seller_id),
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    product_name=item.product_name,
                    unit=item.unit,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            delivery_address=(
                DeliveryAddressResponse(
                    street=address.street,
                    city=address.city,
                    state=address.state,
                    postal_code=address.postal_code,
                    country=address.country,
                )
                if address
                else None
            ),
            delivery_instructions=order.delivery_instructions,
            delivery_status=order.delivery_status,
            expected_delivery_date=order.expected_delivery_date,
            actual_delivery_date=order.actual_delivery_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListingResponse(BaseModel):
    order_id: str
    customer_id: str
    seller_id: str
    status: str
    payment_status: str
    item_count: int
    total_amount: float | None = None
    placed_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Product Request Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(max_length=100)
    description: str | None = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=0)
    unit: str
    category: str
    location: str
    images: list[str] = Field(default_factory=list)
    harvested_date: date | None = None
    expiry_date: date | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Sukuma Wiki",
                    "description": "Fresh collard greens",
                    "price": 40.0,
                    "quantity": 120,
                    "unit": "bunch",
                    "category": "vegetables",
                    "location": "Kiambu",
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    unit: str | None = None
    category: str | None = None
    location: str | None = None
    images: list[str] | None = None
    harvested_date: date | None = None
    expiry_date: date | None = None


class ProductAvailabilityRequest(BaseModel):
    is_available: bool


class RestockRequest(BaseModel):
    quantity: int


# ---------------------------------------------------------------------------
# Product Response Schemas
# ---------------------------------------------------------------------------
class ProductResponse(BaseModel):
    id: str
    seller_id: str
    name: str
    description: str | None = None
    price: float
    available_quantity: int
    unit: str
    category: str
    location: str
    images: list[str]
    is_available: bool
    is_fresh: bool
    harvested_date: date | None = None
    expiry_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        return cls(
            id=str(product.id),
            seller_id=str(product.seller_id),
            name=product.name,
            description=product.description,
            price=product.price,
            available_quantity=product.available_quantity,
            unit=product.unit,
            category=product.category,
            location=product.location,
            images=product.image_urls,
            is_available=product.is_available,
            is_fresh=product.is_fresh,
            harvested_date=product.harvested_date,
            expiry_date=product.expiry_date,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductPage(BaseModel):
    products: list[ProductResponse]
    page: int
    limit: int
    total: int
    pages: int


class RestockResponse(BaseModel):
    product_id: str
    available_quantity: int

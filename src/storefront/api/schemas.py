"""Pydantic request/response schemas for the Storefront API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# --- Catalogue Response Schemas ---


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    image_url: str | None = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    price: Decimal
    stock: int
    image_url: str | None = None
    category_id: str | None = None
    featured: bool


# --- Catalogue Admin Request Schemas ---


class CreateCategoryRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Electrónica",
                    "description": "Dispositivos electrónicos y gadgets",
                    "image_url": "https://images.example.com/electronics.jpg",
                }
            ]
        }
    }

    name: str = Field(..., max_length=100)
    description: str | None = None
    image_url: str | None = Field(None, max_length=500)


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    description: str | None = None
    image_url: str | None = Field(None, max_length=500)


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Smartphone Pro Max",
                    "description": "Último modelo con cámara de 108MP",
                    "price": "899.99",
                    "stock": 50,
                    "category_id": "5b0f3c5e-0d59-4f3e-9a53-2f1e8c2b7a10",
                    "featured": True,
                }
            ]
        }
    }

    name: str = Field(..., max_length=255)
    price: Decimal = Field(..., ge=0)
    description: str | None = None
    stock: int = Field(0, ge=0)
    image_url: str | None = Field(None, max_length=500)
    category_id: str | None = None
    featured: bool = False


class UpdateProductRequest(BaseModel):
    """Only the fields present in the request body are changed."""

    name: str | None = Field(None, max_length=255)
    price: Decimal | None = Field(None, ge=0)
    description: str | None = None
    stock: int | None = Field(None, ge=0)
    image_url: str | None = Field(None, max_length=500)
    category_id: str | None = None
    featured: bool | None = None


class CategoryIdResponse(BaseModel):
    category_id: str


class ProductIdResponse(BaseModel):
    product_id: str


class CategoryDeletedResponse(BaseModel):
    status: str = "ok"
    uncategorised_products: int


# --- Cart Schemas ---


class AddToCartRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"product_id": "prod-001", "quantity": 2}]}}

    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int


class CartLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    product_id: str
    name: str
    price: Decimal
    stock: int
    image_url: str | None = None
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cart_id: str
    lines: list[CartLineResponse]
    item_count: int
    total: Decimal


class MergeCartResponse(BaseModel):
    cart_id: str


# --- Checkout Schemas ---


class ShippingDetailsRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "full_name": "Ana Pérez",
                    "address": "Av. Siempre Viva 742",
                    "city": "Montevideo",
                    "phone": "+598 99 123 456",
                    "notes": "Tocar timbre",
                }
            ]
        }
    }

    full_name: str | None = None
    address: str | None = None
    city: str | None = None
    phone: str | None = None
    notes: str | None = None


class PaymentDetailsRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "method": "card",
                    "card_number": "4111 1111 1111 1111",
                    "card_expiry": "12/28",
                    "card_cvv": "123",
                    "card_holder": "ANA PEREZ",
                },
                {"method": "cash"},
            ]
        }
    }

    method: str
    card_number: str | None = None
    card_expiry: str | None = None
    card_cvv: str | None = None
    card_holder: str | None = None


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cart_id: str
    step: str
    full_name: str | None = None
    address: str | None = None
    city: str | None = None
    phone: str | None = None
    notes: str | None = None
    payment_method: str | None = None
    card_holder: str | None = None
    card_last4: str | None = None
    order_id: str | None = None
    cart: CartResponse | None = None


# --- Order Schemas ---


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str | None = None
    product_name: str
    product_price: Decimal
    quantity: int
    subtotal: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    status: str
    total: Decimal
    full_name: str
    shipping_address: str
    shipping_city: str
    phone: str | None = None
    payment_method: str
    notes: str | None = None
    created_at: datetime
    # Read from ``Order.lines`` so items come back in line order
    items: list[OrderItemResponse] = Field(validation_alias="lines")


class ChangeOrderStatusRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"status": "processing"}]}}

    status: str


# --- Identity Schemas ---


class ProfileRequest(BaseModel):
    full_name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    city: str | None = Field(None, max_length=100)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None


class GrantRoleRequest(BaseModel):
    role: str


# --- Generic ---


class StatusResponse(BaseModel):
    status: str = "ok"

"""FastAPI endpoints for the Storefront."""

from fastapi import APIRouter, Depends, Query, Request
from protean.exceptions import ObjectNotFoundError

from storefront.api.dependencies import get_auth, get_owner
from storefront.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CategoryDeletedResponse,
    CategoryIdResponse,
    CategoryResponse,
    ChangeOrderStatusRequest,
    CheckoutResponse,
    CreateCategoryRequest,
    CreateProductRequest,
    GrantRoleRequest,
    MergeCartResponse,
    OrderResponse,
    PaymentDetailsRequest,
    ProductIdResponse,
    ProductResponse,
    ProfileRequest,
    ProfileResponse,
    ShippingDetailsRequest,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdateCategoryRequest,
    UpdateProductRequest,
)
from storefront.cart import items as cart_items
from storefront.cart.management import get_or_create_cart, merge_guest_cart
from storefront.catalogue import browsing
from storefront.catalogue import management as catalogue_admin
from storefront.checkout import steps as checkout_steps
from storefront.checkout.steps import CheckoutView
from storefront.checkout.submission import submit_order
from storefront.domain import setting
from storefront.identity.auth import AuthContext
from storefront.identity.management import grant_role, revoke_role
from storefront.identity.owner import OwnerKey
from storefront.identity.profile import get_profile, save_profile
from storefront.order import fulfillment, history

catalogue_router = APIRouter(tags=["catalogue"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
profile_router = APIRouter(prefix="/profile", tags=["profile"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


def _cart_response(summary) -> CartResponse:
    # Computed totals live on properties, so validate from attributes
    return CartResponse.model_validate(summary, from_attributes=True)


def _checkout_response(view: CheckoutView) -> CheckoutResponse:
    response = CheckoutResponse.model_validate(view.checkout, from_attributes=True)
    cart = _cart_response(view.cart) if view.cart is not None else None
    return response.model_copy(update={"cart": cart})


# --- Catalogue endpoints ---


@catalogue_router.get("/products", response_model=list[ProductResponse])
async def list_products(category: str | None = None, search: str | None = None, sort: str = Query("featured")):
    return browsing.list_products(category_id=category, search=search, sort=sort)


@catalogue_router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    return browsing.get_product(product_id)


@catalogue_router.get("/categories", response_model=list[CategoryResponse])
async def list_categories():
    return browsing.list_categories()


# --- Cart endpoints ---


@cart_router.get("", response_model=CartResponse)
async def view_cart(owner: OwnerKey = Depends(get_owner)):
    cart_id = get_or_create_cart(owner)
    return _cart_response(cart_items.list_items(owner, cart_id))


@cart_router.post("/items", status_code=201, response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, owner: OwnerKey = Depends(get_owner)):
    cart_id = get_or_create_cart(owner)
    return _cart_response(cart_items.add_item(owner, cart_id, body.product_id, body.quantity))


@cart_router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_quantity(item_id: str, body: UpdateCartQuantityRequest, owner: OwnerKey = Depends(get_owner)):
    cart_id = get_or_create_cart(owner)
    return _cart_response(cart_items.update_quantity(owner, cart_id, item_id, body.quantity))


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(item_id: str, owner: OwnerKey = Depends(get_owner)):
    cart_id = get_or_create_cart(owner)
    return _cart_response(cart_items.remove_item(owner, cart_id, item_id))


@cart_router.post("/merge", response_model=MergeCartResponse)
async def merge_cart(request: Request, auth: AuthContext = Depends(get_auth)):
    """Fold the anonymous cart held in the session cookie into the signed-in user's cart."""
    token = request.cookies.get(setting("cart_session_cookie"))
    return MergeCartResponse(cart_id=merge_guest_cart(auth, token))


# --- Checkout endpoints ---


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def start_checkout(auth: AuthContext = Depends(get_auth)):
    return _checkout_response(checkout_steps.start_checkout(auth))


@checkout_router.get("/{checkout_id}", response_model=CheckoutResponse)
async def get_checkout(checkout_id: str, auth: AuthContext = Depends(get_auth)):
    return _checkout_response(checkout_steps.load_checkout(auth, checkout_id))


@checkout_router.put("/{checkout_id}/shipping", response_model=CheckoutResponse)
async def submit_shipping(checkout_id: str, body: ShippingDetailsRequest, auth: AuthContext = Depends(get_auth)):
    return _checkout_response(checkout_steps.submit_shipping(auth, checkout_id, **body.model_dump()))


@checkout_router.put("/{checkout_id}/payment", response_model=CheckoutResponse)
async def submit_payment(checkout_id: str, body: PaymentDetailsRequest, auth: AuthContext = Depends(get_auth)):
    return _checkout_response(checkout_steps.submit_payment(auth, checkout_id, **body.model_dump()))


@checkout_router.post("/{checkout_id}/back", response_model=CheckoutResponse)
async def go_back(checkout_id: str, auth: AuthContext = Depends(get_auth)):
    return _checkout_response(checkout_steps.go_back(auth, checkout_id))


@checkout_router.post("/{checkout_id}/submit", status_code=201, response_model=OrderResponse)
async def place_order(checkout_id: str, auth: AuthContext = Depends(get_auth)):
    return submit_order(auth, checkout_id)


# --- Order history endpoints ---


@order_router.get("", response_model=list[OrderResponse])
async def list_my_orders(auth: AuthContext = Depends(get_auth)):
    return history.list_orders(auth)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, auth: AuthContext = Depends(get_auth)):
    return history.get_order(auth, order_id)


# --- Profile endpoints ---


@profile_router.get("", response_model=ProfileResponse)
async def read_profile(auth: AuthContext = Depends(get_auth)):
    profile = get_profile(auth)
    if profile is None:
        raise ObjectNotFoundError("Profile not found")
    return profile


@profile_router.put("", response_model=ProfileResponse)
async def update_profile(body: ProfileRequest, auth: AuthContext = Depends(get_auth)):
    return save_profile(auth, **body.model_dump(exclude_unset=True))


# --- Admin endpoints ---


@admin_router.get("/products", response_model=list[ProductResponse])
async def admin_list_products(auth: AuthContext = Depends(get_auth)):
    return catalogue_admin.list_admin_products(auth)


@admin_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest, auth: AuthContext = Depends(get_auth)):
    product_id = catalogue_admin.create_product(auth, **body.model_dump())
    return ProductIdResponse(product_id=product_id)


@admin_router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, body: UpdateProductRequest, auth: AuthContext = Depends(get_auth)):
    return catalogue_admin.update_product(auth, product_id, **body.model_dump(exclude_unset=True))


@admin_router.delete("/products/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str, auth: AuthContext = Depends(get_auth)):
    catalogue_admin.delete_product(auth, product_id)
    return StatusResponse()


@admin_router.post("/categories", status_code=201, response_model=CategoryIdResponse)
async def create_category(body: CreateCategoryRequest, auth: AuthContext = Depends(get_auth)):
    category_id = catalogue_admin.create_category(auth, **body.model_dump())
    return CategoryIdResponse(category_id=category_id)


@admin_router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: str, body: UpdateCategoryRequest, auth: AuthContext = Depends(get_auth)):
    return catalogue_admin.update_category(auth, category_id, **body.model_dump())


@admin_router.delete("/categories/{category_id}", response_model=CategoryDeletedResponse)
async def delete_category(category_id: str, auth: AuthContext = Depends(get_auth)):
    detached = catalogue_admin.delete_category(auth, category_id)
    return CategoryDeletedResponse(uncategorised_products=detached)


@admin_router.get("/orders", response_model=list[OrderResponse])
async def admin_list_orders(auth: AuthContext = Depends(get_auth)):
    return history.list_all_orders(auth)


@admin_router.post("/orders/{order_id}/complete", response_model=OrderResponse)
async def complete_order(order_id: str, auth: AuthContext = Depends(get_auth)):
    return fulfillment.complete_order(auth, order_id)


@admin_router.put("/orders/{order_id}/status", response_model=OrderResponse)
async def change_order_status(order_id: str, body: ChangeOrderStatusRequest, auth: AuthContext = Depends(get_auth)):
    return fulfillment.change_order_status(auth, order_id, body.status)


@admin_router.put("/users/{user_id}/roles", response_model=StatusResponse)
async def grant_user_role(user_id: str, body: GrantRoleRequest, auth: AuthContext = Depends(get_auth)):
    grant_role(auth, user_id, body.role)
    return StatusResponse()


@admin_router.delete("/users/{user_id}/roles/{role}", response_model=StatusResponse)
async def revoke_user_role(user_id: str, role: str, auth: AuthContext = Depends(get_auth)):
    revoke_role(auth, user_id, role)
    return StatusResponse()

import logging
from typing import List, Literal, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

from api import ApiError, StoreApi
from catalog import CatalogService
from checkout import CheckoutFlow, InvalidTransition
from config import Settings, settings
from database import MongoStorage, get_storage
from listing import (
    PRICE_CEILING,
    ListingQuery,
    SortOption,
    available_brands,
    best_sellers,
    discount_percent,
    featured,
    has_active_filters,
    new_arrivals,
)
from orders import REASONS, UNAVAILABLE, available_actions, submit_request
from pricing import compute_totals
from routes import ROUTES, get_route, match
from schemas import AddressIn, OrderActionRequest, OrderStatus, PaymentMethod, PaymentVerification, Product
from session import Access
from storefront import Storefront, StorefrontRegistry

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_registry(cfg: Settings = settings) -> StorefrontRegistry:
    api = StoreApi(cfg.API_BASE_URL, timeout=cfg.HTTP_TIMEOUT)
    catalog = CatalogService(api if cfg.API_BASE_URL else None)
    return StorefrontRegistry(get_storage(cfg), api, catalog, cfg)


app.state.registry = build_registry()


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    cookie = request.app.state.registry.cfg.SESSION_COOKIE
    sid = request.cookies.get(cookie)
    request.state.sid = sid or uuid4().hex
    response = await call_next(request)
    if not sid:
        response.set_cookie(cookie, request.state.sid, httponly=True, samesite="lax")
    return response


# ----------------------- Utils -----------------------
def get_store(request: Request) -> Storefront:
    return request.app.state.registry.get(request.state.sid)


def guarded(route_name: str):
    route = get_route(route_name)

    def dependency(request: Request, store: Storefront = Depends(get_store)) -> Storefront:
        # only pages are worth returning to after login, not actions
        path = request.url.path if request.method == "GET" else route.path
        decision = store.auth.guard(path, require_admin=route.requires_admin)
        if decision.access == Access.LOGIN:
            raise HTTPException(status_code=401, detail={"message": decision.message, "redirect": decision.redirect})
        if decision.access == Access.DENIED:
            raise HTTPException(status_code=403, detail=decision.message)
        return store

    return dependency


def product_view(p: Product) -> dict:
    return {**p.model_dump(), "discount_percent": discount_percent(p.price, p.mrp)}


def cart_view(store: Storefront) -> dict:
    cart = store.cart
    return {
        "items": [{**i.model_dump(), "line_total": i.line_total} for i in cart.items],
        "item_count": cart.item_count,
        "subtotal": cart.subtotal,
        "totals": compute_totals(cart.subtotal, cfg=store.cfg).model_dump(),
    }


def checkout_view(flow: CheckoutFlow) -> dict:
    return {
        "step": flow.step.value,
        "address": flow.address.model_dump() if flow.address else None,
        "items": [i.model_dump() for i in flow.cart.items],
        "totals": flow.totals().model_dump(),
        "coupon": flow.coupons.applied.code if flow.coupons.applied else None,
        "order": flow.order.model_dump(mode="json") if flow.order else None,
        "error": flow.error,
        "loading": flow.loading,
        "redirect": flow.redirect,
    }


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": str(exc), "step": exc.step.value})


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    status = exc.status_code if exc.status_code in (401, 403, 404) else 502
    return JSONResponse(status_code=status, content={"detail": exc.detail})


# ----------------------- Models -----------------------
class AddToCartBody(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class QuantityBody(BaseModel):
    quantity: int


class LoginBody(BaseModel):
    email: EmailStr
    password: str


class RegisterBody(BaseModel):
    name: str
    email: EmailStr
    password: str
    confirm_password: str
    phone: Optional[str] = None


class AddressBody(AddressIn):
    make_default: bool = False


class SelectAddressBody(BaseModel):
    address_id: str


class CouponBody(BaseModel):
    code: str


class PayBody(BaseModel):
    method: PaymentMethod


class PaymentFailureBody(BaseModel):
    description: str = "Payment was not completed"


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Storefront API running"}


@app.get("/test")
def test_storefront(request: Request):
    registry: StorefrontRegistry = request.app.state.registry
    response = {
        "backend": "✅ Running",
        "api": "✅ Set" if registry.cfg.API_BASE_URL else "❌ Not Set",
        "catalog_source": registry.catalog.source,
        "storage": type(registry.storage).__name__,
        "sessions": len(registry),
    }
    if isinstance(registry.storage, MongoStorage):
        try:
            registry.storage.collection.database.client.admin.command("ping")
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Routing -----------------------
@app.get("/routes")
def list_routes():
    return [r.model_dump() for r in ROUTES]


@app.get("/navigate")
def navigate(path: str, store: Storefront = Depends(get_store)):
    found = match(path)
    if found is None:
        return {"route": "home", "params": {}, "access": Access.ALLOW.value, "redirect": "/"}
    route, params = found
    if not route.requires_auth:
        return {"route": route.name, "params": params, "access": Access.ALLOW.value}
    decision = store.auth.guard(path, require_admin=route.requires_admin)
    return {"route": route.name, "params": params, **decision.model_dump(mode="json")}


# ----------------------- Catalog -----------------------
def listing_query(
    q: str = "",
    category: str = "",
    subcategory: str = "",
    min_price: float = 0,
    max_price: float = PRICE_CEILING,
    brand: List[str] = Query([]),
    rating: List[float] = Query([]),
    availability: Literal["all", "in_stock", "out_of_stock"] = "all",
    discount: int = Query(0, ge=0, le=100),
    sort: SortOption = SortOption.POPULARITY,
    page: int = Query(1, ge=1),
) -> ListingQuery:
    return ListingQuery(
        q=q, category=category, subcategory=subcategory, min_price=min_price, max_price=max_price,
        brands=brand, ratings=rating, availability=availability, discount=discount, sort=sort, page=page,
    )


@app.get("/home")
def home(store: Storefront = Depends(get_store)):
    products = store.catalog.products()
    return {
        "featured": [product_view(p) for p in featured(products)],
        "best_sellers": [product_view(p) for p in best_sellers(products)],
        "new_arrivals": [product_view(p) for p in new_arrivals(products)],
        "categories": [c.model_dump() for c in store.catalog.categories()],
    }


@app.get("/categories")
def list_categories(store: Storefront = Depends(get_store)):
    return [c.model_dump() for c in store.catalog.categories()]


@app.get("/brands")
def list_brands(category: str = "", store: Storefront = Depends(get_store)):
    return available_brands(store.catalog.products(), category)


@app.get("/products")
def list_products(query: ListingQuery = Depends(listing_query), store: Storefront = Depends(get_store)):
    page = store.catalog.listing(query, page_size=store.cfg.PAGE_SIZE)
    return {
        **page.model_dump(exclude={"items"}),
        "items": [product_view(p) for p in page.items],
        "is_empty": page.is_empty,
        "has_active_filters": has_active_filters(query),
    }


@app.get("/products/{product_id}")
def get_product(product_id: int, store: Storefront = Depends(get_store)):
    product = store.catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        **product_view(product),
        "in_cart": product_id in store.cart,
        "in_wishlist": store.wishlist.is_member(product_id),
    }


# ----------------------- Cart -----------------------
@app.get("/cart")
def get_cart(store: Storefront = Depends(get_store)):
    return cart_view(store)


@app.post("/cart/items", status_code=201)
def add_to_cart(body: AddToCartBody, store: Storefront = Depends(get_store)):
    product = store.catalog.get(body.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.stock <= 0:
        raise HTTPException(status_code=400, detail="Product is out of stock")
    store.cart.add(product, body.quantity)
    return cart_view(store)


@app.put("/cart/items/{product_id}")
def set_cart_quantity(product_id: int, body: QuantityBody, store: Storefront = Depends(get_store)):
    store.cart.set_quantity(product_id, body.quantity)
    return cart_view(store)


@app.delete("/cart/items/{product_id}")
def remove_from_cart(product_id: int, store: Storefront = Depends(get_store)):
    store.cart.remove(product_id)
    return cart_view(store)


@app.delete("/cart")
def clear_cart(store: Storefront = Depends(get_store)):
    store.cart.clear()
    return cart_view(store)


# ----------------------- Wishlist -----------------------
def wishlist_view(store: Storefront) -> dict:
    return {"items": [product_view(p) for p in store.wishlist.items], "item_count": store.wishlist.item_count}


@app.get("/wishlist")
def get_wishlist(store: Storefront = Depends(get_store)):
    return wishlist_view(store)


@app.post("/wishlist/{product_id}")
def add_to_wishlist(product_id: int, store: Storefront = Depends(get_store)):
    product = store.catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    store.wishlist.add(product)
    return wishlist_view(store)


@app.delete("/wishlist/{product_id}")
def remove_from_wishlist(product_id: int, store: Storefront = Depends(get_store)):
    store.wishlist.remove(product_id)
    return wishlist_view(store)


@app.delete("/wishlist")
def clear_wishlist(store: Storefront = Depends(get_store)):
    store.wishlist.clear()
    return wishlist_view(store)


# ----------------------- Auth -----------------------
@app.post("/auth/login")
def login(body: LoginBody, store: Storefront = Depends(get_store)):
    if not store.auth.login(body.email, body.password):
        raise HTTPException(status_code=401, detail=store.auth.error)
    return {"user": store.auth.user.model_dump(), "redirect": store.auth.consume_redirect("/")}


@app.post("/auth/register")
def register(body: RegisterBody, store: Storefront = Depends(get_store)):
    ok = store.auth.register(body.name, body.email, body.password, body.confirm_password, body.phone)
    if not ok:
        raise HTTPException(status_code=400, detail=store.auth.error)
    return {"user": store.auth.user.model_dump(), "redirect": store.auth.consume_redirect("/")}


@app.post("/auth/logout")
def logout(store: Storefront = Depends(get_store)):
    store.logout()
    return {"ok": True}


@app.get("/auth/me")
def me(store: Storefront = Depends(get_store)):
    user = store.auth.ensure_checked()
    return {
        "authenticated": user is not None,
        "is_admin": store.auth.is_admin,
        "user": user.model_dump() if user else None,
    }


# ----------------------- Profile -----------------------
@app.get("/profile")
def profile(store: Storefront = Depends(guarded("profile"))):
    return {
        "user": store.auth.user.model_dump(),
        "cart_count": store.cart.item_count,
        "wishlist_count": store.wishlist.item_count,
        "addresses": len(store.addresses),
    }


@app.get("/profile/addresses")
def list_addresses(store: Storefront = Depends(guarded("profile_addresses"))):
    return [a.model_dump() for a in store.addresses.items]


@app.post("/profile/addresses", status_code=201)
def add_address(body: AddressBody, store: Storefront = Depends(guarded("profile_addresses"))):
    address, error = store.addresses.add(AddressIn(**body.model_dump(exclude={"make_default"})), body.make_default)
    if error:
        raise HTTPException(status_code=400, detail=error)
    return address.model_dump()


@app.delete("/profile/addresses/{address_id}")
def delete_address(address_id: str, store: Storefront = Depends(guarded("profile_addresses"))):
    store.addresses.remove(address_id)
    return [a.model_dump() for a in store.addresses.items]


@app.put("/profile/addresses/{address_id}/default")
def set_default_address(address_id: str, store: Storefront = Depends(guarded("profile_addresses"))):
    if not store.addresses.set_default(address_id):
        raise HTTPException(status_code=404, detail="Address not found")
    return [a.model_dump() for a in store.addresses.items]


@app.get("/profile/orders")
def my_orders(store: Storefront = Depends(guarded("profile_orders"))):
    return [o.model_dump(mode="json") for o in store.api.my_orders()]


@app.get("/profile/orders/{order_id}")
def order_detail(order_id: str, store: Storefront = Depends(guarded("profile_order"))):
    return store.api.get_order(order_id).model_dump(mode="json")


@app.get("/profile/orders/{order_id}/actions")
def order_actions(order_id: str, store: Storefront = Depends(guarded("profile_order"))):
    order = store.api.get_order(order_id)
    available = available_actions(order)
    return {
        "status": order.status.value,
        "available": [a.value for a in available],
        "unavailable": {a.value: msg for a, msg in UNAVAILABLE.items() if a not in available},
        "reasons": {a.value: [{"id": k, "label": v} for k, v in reasons.items()] for a, reasons in REASONS.items()},
    }


@app.post("/profile/orders/{order_id}/actions")
def request_order_action(order_id: str, body: OrderActionRequest, store: Storefront = Depends(guarded("profile_order"))):
    order, error = submit_request(store.api, order_id, body)
    if error:
        raise HTTPException(status_code=400, detail=error)
    return order.model_dump(mode="json")


# ----------------------- Checkout -----------------------
@app.get("/checkout")
def get_checkout(store: Storefront = Depends(guarded("checkout"))):
    return checkout_view(store.start_checkout())


@app.post("/checkout/address")
def select_address(body: SelectAddressBody, store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.select_address(body.address_id)
    return checkout_view(flow)


@app.post("/checkout/next")
def checkout_next(store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.next()
    return checkout_view(flow)


@app.post("/checkout/back")
def checkout_back(store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.back()
    return checkout_view(flow)


@app.post("/checkout/coupon")
def apply_coupon(body: CouponBody, store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    result = flow.apply_coupon(body.code)
    return {**checkout_view(flow), "coupon_result": result.model_dump()}


@app.delete("/checkout/coupon")
def remove_coupon(store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.remove_coupon()
    return checkout_view(flow)


@app.post("/checkout/pay")
def pay(body: PayBody, store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    widget = flow.pay(body.method)
    return {**checkout_view(flow), "widget": widget.model_dump() if widget else None}


@app.post("/checkout/payment/success")
def payment_success(body: PaymentVerification, store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.payment_succeeded(body)
    return checkout_view(flow)


@app.post("/checkout/payment/failure")
def payment_failure(body: PaymentFailureBody, store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.payment_failed(body.description)
    return checkout_view(flow)


@app.post("/checkout/payment/dismiss")
def payment_dismiss(store: Storefront = Depends(guarded("checkout"))):
    flow = store.start_checkout()
    flow.payment_dismissed()
    return checkout_view(flow)


@app.get("/order-confirmation/{order_id}")
def order_confirmation(order_id: str, store: Storefront = Depends(guarded("order_confirmation"))):
    return store.api.get_order(order_id).model_dump(mode="json")


# ----------------------- Admin -----------------------
@app.get("/admin")
def admin_dashboard(store: Storefront = Depends(guarded("admin"))):
    return store.api.admin_dashboard()


@app.get("/admin/orders")
def admin_orders(store: Storefront = Depends(guarded("admin"))):
    return [o.model_dump(mode="json") for o in store.api.admin_orders()]


@app.put("/admin/orders/{order_id}/status")
def admin_update_status(order_id: str, status: OrderStatus, store: Storefront = Depends(guarded("admin"))):
    return store.api.update_order_status(order_id, status).model_dump(mode="json")


if __name__ == "__main__":
    import os

    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)

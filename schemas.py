"""
Schemas for the storefront

Each Pydantic model is either reference data (catalog), a record kept in the
session's local storage (cart, wishlist, addresses) or a payload exchanged
with the shop backend (auth, orders, payments).
"""
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

# -----------------
# Catalog
# -----------------

class Subcategory(BaseModel):
    id: str
    name: str
    slug: str
    category_id: str


class Category(BaseModel):
    id: str
    name: str
    slug: str
    icon: str = ""
    subcategories: List[Subcategory] = []


class Product(BaseModel):
    id: int
    name: str
    price: float = Field(..., ge=0, description="Offer price in INR")
    mrp: Optional[float] = Field(None, ge=0, description="Maximum retail price in INR")
    description: str = ""
    category: str
    subcategory: str = ""
    brand: Optional[str] = None
    image: Optional[str] = None
    images: List[str] = []
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    specifications: Dict[str, str] = {}
    highlights: List[str] = []
    is_featured: bool = False
    is_new_arrival: bool = False
    is_best_seller: bool = False

# -----------------
# Session state
# -----------------

class CartItem(BaseModel):
    product: Product
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class AddressIn(BaseModel):
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class Address(AddressIn):
    id: str
    is_default: bool = False

# -----------------
# Auth
# -----------------

class User(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: Literal["USER", "ADMIN"] = "USER"
    phone: Optional[str] = None
    avatar: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    user: User

# -----------------
# Orders & payments
# -----------------

class OrderStatus(str, Enum):
    PLACED = "placed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentMethod(str, Enum):
    UPI = "UPI"
    CARD = "CARD"
    NETBANKING = "NETBANKING"
    COD = "COD"


class OrderItem(BaseModel):
    product_id: int
    name: str
    price: float = Field(..., ge=0, description="Unit price at time of order")
    quantity: int = Field(..., ge=1)
    image: Optional[str] = None


class OrderCreate(BaseModel):
    items: List[OrderItem]
    shipping_address: Address
    subtotal: float = Field(..., ge=0)
    delivery_fee: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    tax: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    coupon_code: Optional[str] = None
    payment_method: PaymentMethod


class Order(BaseModel):
    id: str
    date: str
    items: List[OrderItem]
    total: float
    status: OrderStatus = OrderStatus.PLACED
    shipping_address: Optional[Address] = None
    payment_method: Optional[PaymentMethod] = None
    payment_id: Optional[str] = None


class PaymentIntent(BaseModel):
    gateway_order_id: str
    amount: int = Field(..., ge=0, description="Amount in paise")
    currency: str = "INR"
    key_id: str
    order_id: str


class PaymentVerification(BaseModel):
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str


class OrderAction(str, Enum):
    CANCEL = "cancel"
    RETURN = "return"
    REPLACE = "replace"


class OrderActionRequest(BaseModel):
    action: OrderAction
    reason: str = Field("", description="Reason id from the action's reason list")
    details: str = Field("", description="Free text, required for the 'other' reason")

# -----------------
# Pricing
# -----------------

class Coupon(BaseModel):
    code: str
    kind: Literal["percent", "flat"]
    value: float = Field(..., gt=0)
    min_subtotal: float = 0
    max_discount: Optional[float] = None
    description: str = ""


class PriceBreakdown(BaseModel):
    subtotal: float
    delivery_fee: float
    discount: float
    tax: float
    total: float
    coupon_code: Optional[str] = None

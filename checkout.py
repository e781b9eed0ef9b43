"""
Checkout step machine: address -> review -> payment -> confirmation.

Steps move only on explicit calls to ``next``/``back`` or on the payment
gateway reporting back. A payment failure keeps the flow on ``payment`` with
an inline error; ``confirmation`` is reached only after the backend has
verified the payment (or accepted a cash-on-delivery order), and the cart is
cleared exactly once at that point.
"""
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from api import ApiError, StoreApi
from config import Settings, settings as default_settings
from pricing import CouponResult, CouponSlot
from schemas import (
    Address,
    Order,
    OrderCreate,
    OrderItem,
    PaymentIntent,
    PaymentMethod,
    PaymentVerification,
    PriceBreakdown,
)
from stores import AddressBook, Cart

logger = logging.getLogger(__name__)


class CheckoutStep(str, Enum):
    ADDRESS = "address"
    REVIEW = "review"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


class InvalidTransition(Exception):
    def __init__(self, step: CheckoutStep, action: str):
        self.step = step
        self.action = action
        super().__init__(f"cannot {action} from the {step.value} step")


class WidgetOptions(BaseModel):
    """Everything the hosted payment widget needs to open."""
    key: str
    amount: int
    currency: str
    name: str
    description: str
    order_id: str
    prefill: dict


class CheckoutFlow:
    def __init__(self, cart: Cart, addresses: AddressBook, api: StoreApi,
                 email: Optional[str] = None, cfg: Settings = default_settings):
        self.cart = cart
        self.addresses = addresses
        self.api = api
        self.email = email
        self.cfg = cfg
        self.step = CheckoutStep.ADDRESS
        self.coupons = CouponSlot()
        self.address_id: Optional[str] = None
        self.method: Optional[PaymentMethod] = None
        self.order: Optional[Order] = None
        self.intent: Optional[PaymentIntent] = None
        self.error: Optional[str] = None
        self.loading = False
        self._submitted: Optional[OrderCreate] = None
        self._cart_cleared = False

    # --- State ---

    @property
    def address(self) -> Optional[Address]:
        # until one is picked, the book's default (which may be added mid-checkout)
        if self.address_id is None:
            return self.addresses.default
        return self.addresses.get(self.address_id)

    @property
    def confirmed(self) -> bool:
        return self.step == CheckoutStep.CONFIRMATION

    @property
    def redirect(self) -> Optional[str]:
        """Where to send the shopper instead; an empty cart has nothing to check out."""
        if not self.confirmed and len(self.cart) == 0:
            return "/shop"
        return None

    def totals(self) -> PriceBreakdown:
        return self.coupons.totals(self.cart.subtotal, self.cfg)

    def _require(self, step: CheckoutStep, action: str) -> None:
        if self.step != step:
            raise InvalidTransition(self.step, action)

    # --- Navigation ---

    def select_address(self, address_id: str) -> bool:
        self._require(CheckoutStep.ADDRESS, "select an address")
        if self.addresses.get(address_id) is None:
            self.error = "Please select a delivery address"
            return False
        self.address_id = address_id
        self.error = None
        return True

    def next(self) -> CheckoutStep:
        if self.step == CheckoutStep.ADDRESS:
            if len(self.cart) == 0:
                self.error = "Your cart is empty"
                return self.step
            if self.address is None:
                self.error = "Please select a delivery address"
                return self.step
            self.address_id = self.address.id
            self.step = CheckoutStep.REVIEW
        elif self.step == CheckoutStep.REVIEW:
            self.step = CheckoutStep.PAYMENT
        else:
            raise InvalidTransition(self.step, "continue")
        self.error = None
        return self.step

    def back(self) -> CheckoutStep:
        if self.step == CheckoutStep.REVIEW:
            self.step = CheckoutStep.ADDRESS
        elif self.step == CheckoutStep.PAYMENT:
            self.step = CheckoutStep.REVIEW
            self.loading = False
        else:
            raise InvalidTransition(self.step, "go back")
        self.error = None
        return self.step

    # --- Coupons ---

    def apply_coupon(self, code: str) -> CouponResult:
        self._require(CheckoutStep.REVIEW, "apply a coupon")
        return self.coupons.apply(code, self.cart.subtotal)

    def remove_coupon(self) -> None:
        self._require(CheckoutStep.REVIEW, "remove a coupon")
        self.coupons.remove()

    # --- Order submission & payment ---

    def _order_payload(self, method: PaymentMethod) -> OrderCreate:
        totals = self.totals()
        return OrderCreate(
            items=[
                OrderItem(product_id=i.product.id, name=i.product.name, price=i.product.price,
                          quantity=i.quantity, image=i.product.image)
                for i in self.cart.items
            ],
            shipping_address=self.address,
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            discount=totals.discount,
            tax=totals.tax,
            total=totals.total,
            coupon_code=totals.coupon_code,
            payment_method=method,
        )

    def pay(self, method: PaymentMethod) -> Optional[WidgetOptions]:
        """Submit the order and hand over to the gateway.

        Returns the widget options for online methods, ``None`` when the
        order was confirmed directly (cash on delivery) or when submission
        failed, in which case ``error`` is set.
        """
        self._require(CheckoutStep.PAYMENT, "pay")
        if self.address is None:
            self.error = "Address is missing"
            return None
        self.method = method
        self.loading = True
        self.error = None

        payload = self._order_payload(method)
        try:
            if self.order is None or self._submitted != payload:
                self.order = self.api.create_order(payload)
                self._submitted = payload
                logger.info("Order %s placed (%s, total %.2f)", self.order.id, method.value, payload.total)
            if method == PaymentMethod.COD:
                self._confirm(self.order)
                return None
            self.intent = self.api.create_payment_intent(self.order.id)
        except ApiError as e:
            logger.warning("Order submission failed: %s", e)
            self.error = "Failed to process payment. Please try again."
            self.loading = False
            return None

        address = self.address
        return WidgetOptions(
            key=self.intent.key_id,
            amount=self.intent.amount,
            currency=self.intent.currency,
            name=self.cfg.STORE_NAME,
            description=f"Order #{self.order.id}",
            order_id=self.intent.gateway_order_id,
            prefill={"name": address.name, "email": self.email, "contact": address.phone},
        )

    def payment_succeeded(self, verification: PaymentVerification) -> bool:
        if self.confirmed:
            return True
        self._require(CheckoutStep.PAYMENT, "confirm a payment")
        if self.intent is None:
            raise InvalidTransition(self.step, "confirm a payment before paying")
        try:
            order = self.api.verify_payment(verification)
        except ApiError as e:
            logger.warning("Payment verification failed for order %s: %s", self.order.id, e)
            self.error = "Payment verification failed. Please contact support."
            self.loading = False
            return False
        self._confirm(order)
        return True

    def payment_failed(self, description: str) -> None:
        self._require(CheckoutStep.PAYMENT, "report a payment failure")
        logger.warning("Payment failed for order %s: %s", self.order.id if self.order else None, description)
        self.error = f"Payment failed: {description}"
        self.loading = False

    def payment_dismissed(self) -> None:
        self.loading = False

    def _confirm(self, order: Order) -> None:
        self.order = order
        self.step = CheckoutStep.CONFIRMATION
        self.loading = False
        self.error = None
        if not self._cart_cleared:
            self.cart.clear()
            self._cart_cleared = True
        logger.info("Order %s confirmed", order.id)

import math
from typing import Dict, Optional

from pydantic import BaseModel

from config import Settings, settings as default_settings
from schemas import Coupon, PriceBreakdown

COUPONS: Dict[str, Coupon] = {
    "WELCOME10": Coupon(code="WELCOME10", kind="percent", value=10, description="10% off your order"),
    "FLAT100": Coupon(code="FLAT100", kind="flat", value=100, min_subtotal=999, description="₹100 off on orders above ₹999"),
    "MEGA20": Coupon(code="MEGA20", kind="percent", value=20, max_discount=2000, description="20% off, up to ₹2000"),
}


def round_rupees(amount: float) -> float:
    # half-up, the way prices are displayed
    return float(math.floor(amount + 0.5))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def lookup_coupon(code: str) -> Optional[Coupon]:
    return COUPONS.get(normalize_code(code))


def coupon_discount(coupon: Coupon, subtotal: float) -> float:
    if subtotal < coupon.min_subtotal:
        return 0.0
    if coupon.kind == "percent":
        amount = round_rupees(subtotal * coupon.value / 100)
    else:
        amount = coupon.value
    if coupon.max_discount is not None:
        amount = min(amount, coupon.max_discount)
    return min(amount, subtotal)


def delivery_fee(subtotal: float, cfg: Settings = default_settings) -> float:
    if subtotal <= 0 or subtotal >= cfg.FREE_DELIVERY_THRESHOLD:
        return 0.0
    return float(cfg.DELIVERY_FEE)


def compute_totals(subtotal: float, coupon: Optional[Coupon] = None, cfg: Settings = default_settings) -> PriceBreakdown:
    fee = delivery_fee(subtotal, cfg)
    discount = coupon_discount(coupon, subtotal) if coupon else 0.0
    tax = round_rupees(subtotal * cfg.TAX_RATE) if cfg.TAX_RATE else 0.0
    total = max(0.0, subtotal + fee + tax - discount)
    return PriceBreakdown(
        subtotal=subtotal,
        delivery_fee=fee,
        discount=discount,
        tax=tax,
        total=total,
        coupon_code=coupon.code if coupon and discount else None,
    )


class CouponResult(BaseModel):
    ok: bool
    message: str
    code: Optional[str] = None


class CouponSlot:
    """Holds the coupon applied to a checkout.

    A rejected code never disturbs the coupon already applied; the caller
    just shows ``message``.
    """

    def __init__(self):
        self.applied: Optional[Coupon] = None

    def apply(self, code: str, subtotal: float) -> CouponResult:
        coupon = lookup_coupon(code)
        if coupon is None:
            return CouponResult(ok=False, message="Invalid Coupon Code")
        if subtotal < coupon.min_subtotal:
            return CouponResult(
                ok=False,
                code=coupon.code,
                message=f"Add items worth ₹{coupon.min_subtotal - subtotal:,.0f} more to use {coupon.code}",
            )
        self.applied = coupon
        return CouponResult(ok=True, code=coupon.code, message=f"Code '{coupon.code}' applied!")

    def remove(self) -> None:
        self.applied = None

    def totals(self, subtotal: float, cfg: Settings = default_settings) -> PriceBreakdown:
        return compute_totals(subtotal, self.applied, cfg)

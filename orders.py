"""
Shopper-initiated order requests: cancel, return and replace.

Each action has its own fixed reason list and is only offered in certain
order states. Problems come back as an inline message, not an exception.
"""
import logging
from typing import Dict, List, Optional, Tuple

from api import ApiError, StoreApi
from schemas import Order, OrderAction, OrderActionRequest, OrderStatus

logger = logging.getLogger(__name__)

OTHER = "other"
MIN_DETAILS = 10

REASONS: Dict[OrderAction, Dict[str, str]] = {
    OrderAction.CANCEL: {
        "changed_mind": "I changed my mind",
        "found_better_price": "Found a better price elsewhere",
        "ordered_wrong": "Ordered by mistake / Wrong item",
        "delivery_too_long": "Delivery time is too long",
        "payment_issues": "Payment issues",
        OTHER: "Other reason",
    },
    OrderAction.RETURN: {
        "defective": "Product is defective or damaged",
        "not_as_described": "Product not as described",
        "wrong_item": "Wrong item received",
        "size_fit": "Size/Fit issues",
        "quality": "Quality not satisfactory",
        OTHER: "Other reason",
    },
    OrderAction.REPLACE: {
        "defective": "Product is defective or damaged",
        "wrong_item": "Wrong item received",
        "missing_parts": "Missing parts or accessories",
        "size_color": "Wrong size/color received",
        OTHER: "Other reason",
    },
}

# cancel only before shipping; return/replace only once delivered
ELIGIBLE: Dict[OrderAction, Tuple[OrderStatus, ...]] = {
    OrderAction.CANCEL: (OrderStatus.PLACED, OrderStatus.PROCESSING),
    OrderAction.RETURN: (OrderStatus.DELIVERED,),
    OrderAction.REPLACE: (OrderStatus.DELIVERED,),
}

UNAVAILABLE: Dict[OrderAction, str] = {
    OrderAction.CANCEL: "Not available - order already shipped",
    OrderAction.RETURN: "Available after delivery",
    OrderAction.REPLACE: "Available after delivery",
}

# what the order becomes once the request is accepted
RESULT_STATUS: Dict[OrderAction, OrderStatus] = {
    OrderAction.CANCEL: OrderStatus.CANCELLED,
    OrderAction.RETURN: OrderStatus.RETURNED,
    OrderAction.REPLACE: OrderStatus.RETURNED,
}


def available_actions(order: Order) -> List[OrderAction]:
    return [a for a in OrderAction if order.status in ELIGIBLE[a]]


def validate_request(order: Order, request: OrderActionRequest) -> Optional[str]:
    """Returns the message to show, or None when the request can be sent."""
    if order.status not in ELIGIBLE[request.action]:
        return UNAVAILABLE[request.action]
    if request.reason not in REASONS[request.action]:
        return "Please select a reason"
    if request.reason == OTHER and len(request.details.strip()) < MIN_DETAILS:
        return f"Please provide a detailed reason (at least {MIN_DETAILS} characters)"
    return None


def submit_request(api: StoreApi, order_id: str, request: OrderActionRequest) -> Tuple[Optional[Order], Optional[str]]:
    """Validate against the current order and send it.

    Returns ``(order, None)`` on success or ``(None, message)``. A missing
    order or an auth failure still raises ``ApiError``.
    """
    order = api.get_order(order_id)
    error = validate_request(order, request)
    if error:
        return None, error
    try:
        updated = api.request_order_action(order_id, request)
    except ApiError as e:
        if e.status_code in (401, 403, 404):
            raise
        logger.warning("Order %s %s request failed: %s", order_id, request.action.value, e)
        return None, "Something went wrong. Please try again."
    logger.info("Order %s %s requested (%s)", order_id, request.action.value, request.reason)
    return updated, None

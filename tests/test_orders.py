import pytest

import fake_backend
from api import ApiError
from orders import available_actions, submit_request, validate_request
from schemas import AddressIn, Order, OrderAction, OrderActionRequest, OrderStatus, PaymentMethod


def order_in(status):
    return Order(id="ORD-1", date="2024-01-01", items=[], total=100, status=status)


@pytest.fixture
def placed(signed_in, make_product):
    signed_in.cart.add(make_product(1, price=500))
    signed_in.addresses.add(AddressIn(name="Asha", phone="999", address="1 Park Road", city="Pune",
                                      state="Maharashtra", pincode="411001"))
    flow = signed_in.start_checkout()
    flow.next()
    flow.next()
    flow.pay(PaymentMethod.COD)
    return signed_in, flow.order.id


@pytest.mark.parametrize("status,actions", [
    (OrderStatus.PLACED, [OrderAction.CANCEL]),
    (OrderStatus.PROCESSING, [OrderAction.CANCEL]),
    (OrderStatus.SHIPPED, []),
    (OrderStatus.DELIVERED, [OrderAction.RETURN, OrderAction.REPLACE]),
    (OrderStatus.CANCELLED, []),
])
def test_available_actions(status, actions):
    assert available_actions(order_in(status)) == actions


def test_reason_is_required():
    request = OrderActionRequest(action=OrderAction.CANCEL)
    assert validate_request(order_in(OrderStatus.PLACED), request) == "Please select a reason"


def test_reason_must_belong_to_action():
    request = OrderActionRequest(action=OrderAction.CANCEL, reason="defective")
    assert validate_request(order_in(OrderStatus.PLACED), request) == "Please select a reason"


def test_other_reason_needs_details():
    short = OrderActionRequest(action=OrderAction.RETURN, reason="other", details="   too bad   ")
    assert validate_request(order_in(OrderStatus.DELIVERED), short) == \
        "Please provide a detailed reason (at least 10 characters)"
    enough = OrderActionRequest(action=OrderAction.RETURN, reason="other", details="Colour faded after one wash")
    assert validate_request(order_in(OrderStatus.DELIVERED), enough) is None


def test_shipped_order_cannot_be_cancelled():
    request = OrderActionRequest(action=OrderAction.CANCEL, reason="changed_mind")
    assert validate_request(order_in(OrderStatus.SHIPPED), request) == "Not available - order already shipped"


def test_return_before_delivery():
    request = OrderActionRequest(action=OrderAction.REPLACE, reason="wrong_item")
    assert validate_request(order_in(OrderStatus.PLACED), request) == "Available after delivery"


def test_cancel_placed_order(placed):
    store, order_id = placed
    order, error = submit_request(store.api, order_id,
                                  OrderActionRequest(action=OrderAction.CANCEL, reason="changed_mind"))
    assert error is None
    assert order.status == OrderStatus.CANCELLED
    assert fake_backend.ORDERS[order_id]["request"]["reason"] == "changed_mind"


def test_invalid_request_is_not_sent(placed):
    store, order_id = placed
    order, error = submit_request(store.api, order_id, OrderActionRequest(action=OrderAction.CANCEL))
    assert order is None
    assert error == "Please select a reason"
    assert fake_backend.ORDERS[order_id]["status"] == "placed"


def test_return_delivered_order(placed):
    store, order_id = placed
    fake_backend.ORDERS[order_id]["status"] = "delivered"
    request = OrderActionRequest(action=OrderAction.REPLACE, reason="missing_parts")
    order, error = submit_request(store.api, order_id, request)
    assert error is None
    assert order.status == OrderStatus.RETURNED


def test_backend_failure_is_inline(placed):
    store, order_id = placed
    fake_backend.ORDERS[order_id]["status"] = "processing"
    fake_backend.FAULTS.add("orders")
    order, error = submit_request(store.api, order_id,
                                  OrderActionRequest(action=OrderAction.CANCEL, reason="payment_issues"))
    assert order is None
    assert error == "Something went wrong. Please try again."


def test_unknown_order_raises(signed_in):
    with pytest.raises(ApiError) as exc:
        submit_request(signed_in.api, "ORD-404", OrderActionRequest(action=OrderAction.CANCEL, reason="changed_mind"))
    assert exc.value.status_code == 404

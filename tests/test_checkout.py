import pytest

import fake_backend
from checkout import CheckoutStep, InvalidTransition
from schemas import AddressIn, PaymentMethod, PaymentVerification


@pytest.fixture
def ready(signed_in, make_product):
    signed_in.cart.add(make_product(1, price=500), 2)
    signed_in.addresses.add(AddressIn(name="Asha", phone="+91 9876543210", address="123 Main Street",
                                      city="Delhi", state="Delhi", pincode="110001"))
    return signed_in


def to_payment(store, coupon=None):
    flow = store.start_checkout()
    assert flow.next() == CheckoutStep.REVIEW
    if coupon:
        assert flow.apply_coupon(coupon).ok
    assert flow.next() == CheckoutStep.PAYMENT
    return flow


def verification(widget, payment_id="pay_001", signature=None):
    return PaymentVerification(
        gateway_order_id=widget.order_id,
        gateway_payment_id=payment_id,
        gateway_signature=signature or fake_backend.sign(widget.order_id, payment_id),
    )


def test_widget_carries_discounted_total(ready):
    flow = to_payment(ready, "WELCOME10")
    widget = flow.pay(PaymentMethod.UPI)

    assert flow.totals().total == 900
    assert widget.amount == 90000
    assert widget.currency == "INR"
    assert widget.key == fake_backend.GATEWAY_KEY_ID
    assert widget.description == f"Order #{flow.order.id}"
    assert widget.prefill == {"name": "Asha", "email": "asha@example.com", "contact": "+91 9876543210"}
    assert flow.loading


def test_success_confirms_and_clears_cart(ready, storage):
    flow = to_payment(ready, "WELCOME10")
    widget = flow.pay(PaymentMethod.CARD)

    assert flow.payment_succeeded(verification(widget))
    assert flow.step == CheckoutStep.CONFIRMATION
    assert flow.order.status == "processing"
    assert flow.order.payment_id == "pay_001"
    assert len(ready.cart) == 0
    assert storage.get("cart") is None
    assert flow.redirect is None


def test_cart_cleared_only_once(ready, make_product):
    flow = to_payment(ready)
    widget = flow.pay(PaymentMethod.UPI)
    flow.payment_succeeded(verification(widget))

    ready.cart.add(make_product(2, price=50))
    assert flow.payment_succeeded(verification(widget))
    assert ready.cart.item_count == 1


def test_failure_stays_on_payment(ready):
    flow = to_payment(ready)
    flow.pay(PaymentMethod.UPI)
    flow.payment_failed("Card declined")

    assert flow.step == CheckoutStep.PAYMENT
    assert flow.error == "Payment failed: Card declined"
    assert not flow.loading
    assert ready.cart.item_count == 2


def test_retry_reuses_placed_order(ready):
    flow = to_payment(ready)
    flow.pay(PaymentMethod.UPI)
    first_order = flow.order.id
    flow.payment_dismissed()
    widget = flow.pay(PaymentMethod.UPI)

    assert flow.order.id == first_order
    assert len(fake_backend.ORDERS) == 1
    assert widget.order_id == "order_000002"


def test_changed_coupon_places_new_order(ready):
    flow = to_payment(ready)
    flow.pay(PaymentMethod.UPI)
    first_order = flow.order.id
    flow.back()
    flow.apply_coupon("WELCOME10")
    flow.next()
    flow.pay(PaymentMethod.UPI)
    assert flow.order.id != first_order
    assert flow.order.total == 900


def test_bad_signature_is_not_confirmed(ready):
    flow = to_payment(ready)
    widget = flow.pay(PaymentMethod.UPI)

    assert not flow.payment_succeeded(verification(widget, signature="forged"))
    assert flow.step == CheckoutStep.PAYMENT
    assert flow.error == "Payment verification failed. Please contact support."
    assert ready.cart.item_count == 2


def test_cash_on_delivery_confirms_without_widget(ready):
    flow = to_payment(ready)
    assert flow.pay(PaymentMethod.COD) is None
    assert flow.confirmed
    assert flow.order.payment_method == PaymentMethod.COD
    assert len(ready.cart) == 0
    assert fake_backend.PAYMENTS == {}


def test_order_submission_failure(ready):
    fake_backend.FAULTS.add("orders")
    flow = to_payment(ready)

    assert flow.pay(PaymentMethod.UPI) is None
    assert flow.error == "Failed to process payment. Please try again."
    assert flow.step == CheckoutStep.PAYMENT
    assert not flow.loading
    assert ready.cart.item_count == 2


def test_payment_intent_failure_keeps_order(ready):
    fake_backend.FAULTS.add("payments")
    flow = to_payment(ready)
    assert flow.pay(PaymentMethod.UPI) is None
    assert flow.order is not None
    assert flow.error == "Failed to process payment. Please try again."

    fake_backend.FAULTS.clear()
    assert flow.pay(PaymentMethod.UPI) is not None
    assert len(fake_backend.ORDERS) == 1


def test_empty_cart_cannot_leave_address(signed_in):
    flow = signed_in.start_checkout()
    assert flow.redirect == "/shop"
    assert flow.next() == CheckoutStep.ADDRESS
    assert flow.error == "Your cart is empty"


def test_address_is_required(signed_in, make_product):
    signed_in.cart.add(make_product())
    flow = signed_in.start_checkout()
    assert flow.next() == CheckoutStep.ADDRESS
    assert flow.error == "Please select a delivery address"
    assert not flow.select_address("nope")


def test_first_address_added_during_checkout_is_used(signed_in, make_product):
    signed_in.cart.add(make_product())
    flow = signed_in.start_checkout()
    assert flow.next() == CheckoutStep.ADDRESS

    added, _ = signed_in.addresses.add(AddressIn(name="Asha", phone="999", address="1 Park Road",
                                                 city="Pune", state="Maharashtra", pincode="411001"))
    assert flow.next() == CheckoutStep.REVIEW
    assert flow.address.id == added.id
    assert flow.error is None


def test_address_is_fixed_once_reviewing(ready):
    flow = ready.start_checkout()
    chosen = flow.address
    flow.next()
    ready.addresses.add(AddressIn(name="Ravi", phone="999", address="1 Park Road", city="Pune",
                                  state="Maharashtra", pincode="411001"), make_default=True)
    assert flow.address.id == chosen.id


def test_select_address(ready):
    other, _ = ready.addresses.add(AddressIn(name="Ravi", phone="999", address="1 Park Road", city="Pune",
                                             state="Maharashtra", pincode="411001"))
    flow = ready.start_checkout()
    assert flow.select_address(other.id)
    flow.next()
    assert flow.address.name == "Ravi"


def test_back_and_forth(ready):
    flow = to_payment(ready)
    assert flow.back() == CheckoutStep.REVIEW
    assert flow.back() == CheckoutStep.ADDRESS
    with pytest.raises(InvalidTransition):
        flow.back()


@pytest.mark.parametrize("action", ["next", "back", "remove_coupon"])
def test_confirmation_is_final(ready, action):
    flow = to_payment(ready)
    flow.pay(PaymentMethod.COD)
    with pytest.raises(InvalidTransition):
        getattr(flow, action)()


def test_actions_outside_their_step(ready):
    flow = ready.start_checkout()
    with pytest.raises(InvalidTransition):
        flow.apply_coupon("WELCOME10")
    with pytest.raises(InvalidTransition):
        flow.pay(PaymentMethod.UPI)
    flow.next()
    flow.next()
    with pytest.raises(InvalidTransition):
        flow.select_address("x")
    with pytest.raises(InvalidTransition):
        flow.payment_succeeded(PaymentVerification(gateway_order_id="a", gateway_payment_id="b", gateway_signature="c"))


def test_new_checkout_after_confirmation(ready, make_product):
    flow = to_payment(ready)
    flow.pay(PaymentMethod.COD)
    assert ready.start_checkout() is flow

    ready.cart.add(make_product(3, price=100))
    fresh = ready.start_checkout()
    assert fresh is not flow
    assert fresh.step == CheckoutStep.ADDRESS

import pytest

from mall.core.exceptions.checkout import CheckoutFinalizationError
from mall.integration.mercadopago import MercadoPagoCheckoutGateway
from mall.schemas.payment.payment import CheckoutItem


class FakePreference:
    def __init__(self, responses):
        self.responses = responses
        self.created = []
        self.updated = []

    def create(self, body):
        self.created.append(body)
        return self.responses["create"]

    def get(self, preference_id):
        return self.responses["get"]

    def update(self, preference_id, body):
        self.updated.append((preference_id, body))
        return {"status": 200, "response": {}}


class FakePayment:
    def __init__(self, results):
        self.results = results
        self.filters = None

    def search(self, filters=None):
        self.filters = filters
        return {"status": 200, "response": {"results": self.results}}


class FakeSDK:
    def __init__(self, responses, payments=()):
        self._preference = FakePreference(responses)
        self._payment = FakePayment(list(payments))

    def preference(self):
        return self._preference

    def payment(self):
        return self._payment


PREFERENCE = {
    "id": "123-abc",
    "init_point": "https://mp.example.com/checkout?pref=123-abc",
    "sandbox_init_point": "https://sandbox.mp.example.com/checkout?pref=123-abc",
    "external_reference": "checkout-1",
    "metadata": {"user_id": "7"},
    "items": [
        {"id": "p1", "title": "Mug", "quantity": 2, "unit_price": 9.5, "category_id": "s1", "description": "Kiln"},
    ],
    "shipments": {
        "receiver_address": {
            "street_name": "Main St", "street_number": "10", "city_name": "Austin",
            "state_name": "TX", "zip_code": "78701", "country_name": "US",
        },
    },
}


def gateway_with(responses, payments=()):
    return MercadoPagoCheckoutGateway(sdk=FakeSDK(responses, payments), app_base_url="https://shop.example.com")


def test_create_session_sends_store_on_each_item():
    gateway = gateway_with({"create": {"status": 201, "response": PREFERENCE}})
    item = CheckoutItem(product_id="p1", product_name="Mug", quantity=2, price=9.499, store_id="s1",
                        store_name="Kiln", product_image="/local.png")

    session = gateway.create_session([item], {"user_id": "7"}, "checkout-1", payer_email="jane@example.com")

    body = gateway.sdk.preference().created[0]
    assert body["items"][0]["category_id"] == "s1"
    assert body["items"][0]["description"] == "Kiln"
    assert body["items"][0]["unit_price"] == 9.5
    assert "picture_url" not in body["items"][0]
    assert body["back_urls"]["success"] == "https://shop.example.com/checkout/success"
    assert session.id == "123-abc"
    assert session.is_paid is False


def test_create_session_failure_raises():
    gateway = gateway_with({"create": {"status": 400, "response": {"message": "invalid"}}})

    with pytest.raises(CheckoutFinalizationError) as exc_info:
        gateway.create_session([], {}, "checkout-1")

    assert exc_info.value.status_code == 502


def test_retrieve_session_with_approved_payment():
    gateway = gateway_with({"get": {"status": 200, "response": PREFERENCE}}, payments=[{"status": "approved"}])

    session = gateway.retrieve_session("123-abc")

    assert session.is_paid is True
    assert gateway.sdk.payment().filters == {"external_reference": "checkout-1"}
    assert session.line_items[0].store_id == "s1"
    assert session.line_items[0].store_name == "Kiln"
    assert session.shipping_details["street_address"] == "10 Main St"


def test_retrieve_session_without_approved_payment():
    gateway = gateway_with({"get": {"status": 200, "response": PREFERENCE}}, payments=[{"status": "rejected"}])

    assert gateway.retrieve_session("123-abc").is_paid is False


def test_unknown_session_is_none():
    gateway = gateway_with({"get": {"status": 404, "response": {"message": "not found"}}})

    assert gateway.retrieve_session("missing") is None


def test_expire_session_updates_preference():
    gateway = gateway_with({})

    gateway.expire_session("123-abc")

    preference_id, body = gateway.sdk.preference().updated[0]
    assert preference_id == "123-abc"
    assert body["expires"] is True


class NotifyingPreference(FakePreference):
    def search(self, filters=None):
        self.search_filters = filters
        return {"status": 200, "response": {"elements": [{"id": "123-abc"}]}}


class NotifyingPayment(FakePayment):
    def __init__(self, payment):
        super().__init__([])
        self.payment = payment

    def get(self, payment_id):
        if self.payment is None:
            return {"status": 404, "response": {"message": "not found"}}
        return {"status": 200, "response": self.payment}


def notifying_gateway(payment):
    sdk = FakeSDK({})
    sdk._preference = NotifyingPreference({})
    sdk._payment = NotifyingPayment(payment)
    return MercadoPagoCheckoutGateway(sdk=sdk, app_base_url="https://shop.example.com")


def test_payment_notification_resolves_preference():
    gateway = notifying_gateway({"id": 900, "status": "approved", "external_reference": "checkout-1"})

    notification = gateway.get_payment_notification("900")

    assert notification.payment_id == "900"
    assert notification.status == "approved"
    assert notification.checkout_session_id == "123-abc"
    assert gateway.sdk.preference().search_filters == {"external_reference": "checkout-1"}


def test_unknown_payment_notification_is_none():
    assert notifying_gateway(None).get_payment_notification("404") is None

from sqlmodel import select

from mall.enums.order_status import OrderStatus
from mall.models.order.order import Order

from tests.conftest import SHIPPING_ADDRESS, auth_headers

CART = [
    {"productId": "p1", "productName": "Mug", "quantity": 2, "price": 9.5, "storeId": "s1", "storeName": "Kiln"},
    {"productId": "p3", "productName": "Scarf", "quantity": 1, "price": 20.0, "storeId": "s2", "storeName": "Loom"},
]


def start_checkout(client, user):
    response = client.post(
        "/api/payments/checkout-session",
        json={"items": CART, "shippingAddress": SHIPPING_ADDRESS},
        headers=auth_headers(user),
    )
    return response.json()["sessionId"]


def orders_for(db, session_id):
    db.expire_all()
    return db.exec(select(Order).where(Order.checkout_session_id == session_id).order_by(Order.id)).all()


def notify(client, payment_id="900"):
    return client.post("/api/payments/webhook", json={"type": "payment", "data": {"id": payment_id}})


def test_approved_payment_finalizes_without_the_browser(client, db, user, gateway):
    session_id = start_checkout(client, user)
    gateway.mark_paid(session_id)
    gateway.notify("900", "approved", session_id)

    response = notify(client)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    orders = orders_for(db, session_id)
    assert sorted(response.json()["orderIds"]) == [order.id for order in orders]
    assert all(order.status == OrderStatus.PROCESSING for order in orders)


def test_browser_completion_after_webhook_is_already_processed(client, user, gateway):
    session_id = start_checkout(client, user)
    gateway.mark_paid(session_id)
    gateway.notify("900", "approved", session_id)
    notify(client)

    response = client.post("/api/payments/checkout-complete", json={"sessionId": session_id}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["message"] == "Order already processed."


def test_repeated_approval_is_ignored(client, user, gateway):
    session_id = start_checkout(client, user)
    gateway.mark_paid(session_id)
    gateway.notify("900", "approved", session_id)
    notify(client)

    assert notify(client).json() == {"status": "already_processed"}


def test_cancelled_payment_removes_staged_orders(client, db, user, gateway):
    session_id = start_checkout(client, user)
    gateway.notify("901", "cancelled", session_id)

    response = notify(client, "901")

    assert response.json() == {"status": "expired", "removed": 2}
    assert orders_for(db, session_id) == []


def test_cancelled_payment_keeps_orders_of_a_paid_session(client, db, user, gateway):
    session_id = start_checkout(client, user)
    gateway.mark_paid(session_id)
    gateway.notify("901", "cancelled", session_id)

    response = notify(client, "901")

    assert response.json() == {"status": "expired", "removed": 0}
    assert len(orders_for(db, session_id)) == 2


def test_other_notification_types_are_ignored(client):
    response = client.post("/api/payments/webhook", json={"type": "merchant_order", "data": {"id": "1"}})

    assert response.json() == {"status": "ignored"}


def test_missing_payment_id(client):
    response = client.post("/api/payments/webhook", json={"type": "payment", "data": {}})

    assert response.json() == {"status": "no_payment_id"}


def test_unknown_payment(client):
    assert notify(client, "404").json() == {"status": "payment_not_found"}


def test_unpaid_approval_is_rejected(client, db, user, gateway):
    session_id = start_checkout(client, user)
    gateway.notify("900", "approved", session_id)

    response = notify(client)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert all(order.status == OrderStatus.PENDING_PAYMENT for order in orders_for(db, session_id))

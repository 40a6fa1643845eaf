import json
import logging
import uuid
from typing import Dict, List

from sqlmodel import Session

from mall.enums.order_status import OrderStatus
from mall.integration.mercadopago import MercadoPagoCheckoutGateway
from mall.models.order.order import Order
from mall.models.user.user import User
from mall.schemas.payment.payment import CheckoutPayload
from mall.services.order.orders import create_order, delete_orders_by_session
from mall.services.payment.checkout_validation import group_items_by_store, sanitize_items
from mall.services.payment.types import CheckoutSession, PendingOrderGroup

PENDING_PAYMENT_METHOD = "mercadopago_checkout:pending"


def start_checkout_session(
    gateway: MercadoPagoCheckoutGateway,
    session: Session,
    user: User,
    payload: CheckoutPayload,
) -> CheckoutSession:
    """Creates the hosted checkout and stages one pending_payment order per store.

    The payload must already have passed ``validate_checkout_payload``.
    """
    items = sanitize_items(payload.items)
    shipping_address = payload.shipping_address.model_dump(exclude={"full_name", "phone_number"})

    metadata = {
        "user_id": str(user.id),
        "shipping_address": json.dumps(payload.shipping_address.model_dump(by_alias=True)),
        "item_count": str(sum(max(0, item.quantity) for item in items)),
        "store_count": str(len({item.store_id for item in items})),
    }

    checkout_session = gateway.create_session(
        items=items,
        metadata=metadata,
        external_reference=f"checkout-{uuid.uuid4()}",
        payer_email=user.email,
    )
    logging.info(f"CHECKOUT >>> Session {checkout_session.id} created for user {user.id}")

    try:
        prepare_pending_orders(
            session,
            items_by_store=group_items_by_store(items),
            checkout_session_id=checkout_session.id,
            user_id=user.id,
            shipping_address=shipping_address,
        )
        session.commit()
    except Exception:
        session.rollback()
        cleanup_failed_checkout(gateway, session, checkout_session.id)
        raise

    return checkout_session


def prepare_pending_orders(
    session: Session,
    items_by_store: Dict[str, PendingOrderGroup],
    checkout_session_id: str,
    user_id: int,
    shipping_address: dict,
) -> List[Order]:
    delete_orders_by_session(session, checkout_session_id)

    return [
        create_order(
            session,
            user_id=user_id,
            store_id=group.store_id,
            store_name=group.store_name,
            items=group.items,
            shipping_address=shipping_address,
            payment_method=PENDING_PAYMENT_METHOD,
            checkout_session_id=checkout_session_id,
            status=OrderStatus.PENDING_PAYMENT,
        )
        for group in items_by_store.values()
    ]


def cleanup_failed_checkout(gateway: MercadoPagoCheckoutGateway, session: Session, checkout_session_id: str) -> None:
    try:
        delete_orders_by_session(session, checkout_session_id)
        session.commit()
    except Exception as e:
        session.rollback()
        logging.warning(f"CHECKOUT >>> Unable to clean up staged orders for {checkout_session_id} -> {e}")

    try:
        gateway.expire_session(checkout_session_id)
    except Exception as e:
        logging.warning(f"CHECKOUT >>> Unable to expire checkout session {checkout_session_id} -> {e}")

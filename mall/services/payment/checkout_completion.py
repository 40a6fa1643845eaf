import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session

from mall.core.exceptions.checkout import CheckoutFinalizationError
from mall.enums.order_status import OrderStatus
from mall.integration.mercadopago import MercadoPagoCheckoutGateway
from mall.models.order.order import Order
from mall.services.order.orders import create_order, delete_orders_by_session, get_orders_by_session, mark_updated
from mall.services.payment.checkout_items import group_line_items_by_store
from mall.services.payment.checkout_session import PENDING_PAYMENT_METHOD
from mall.services.payment.shipping_address_resolver import resolve_shipping_address_from_session
from mall.services.payment.types import CheckoutSession


def payment_method_for(checkout_session_id: str) -> str:
    return f"mercadopago_checkout:{checkout_session_id}"


def is_staged(order: Order) -> bool:
    """True for orders still waiting on payment, including ones the stale-order job cancelled.

    Staged orders keep ``PENDING_PAYMENT_METHOD`` until a paid session finalizes them.
    """
    if order.status == OrderStatus.PENDING_PAYMENT:
        return True
    return order.status == OrderStatus.CANCELLED and order.payment_method == PENDING_PAYMENT_METHOD


def find_finalized_orders(session: Session, checkout_session_id: str) -> List[Order]:
    """Orders of a session that already went past payment; empty while only staged ones exist."""
    orders = get_orders_by_session(session, checkout_session_id)
    if any(not is_staged(order) for order in orders):
        return orders
    return []


def retrieve_checkout_session(gateway: Optional[MercadoPagoCheckoutGateway], checkout_session_id: str) -> CheckoutSession:
    if gateway is None:
        raise CheckoutFinalizationError("Payments are not configured. Please contact support.", 500)

    checkout_session = gateway.retrieve_session(checkout_session_id)
    if checkout_session is None:
        raise CheckoutFinalizationError("Checkout session not found.", 404)
    return checkout_session


def finalize_checkout_session(
    session: Session,
    checkout_session: CheckoutSession,
    expected_user_id: Optional[int] = None,
) -> List[Order]:
    """Turns a paid checkout session into one processing order per store.

    Staged ``pending_payment`` orders are promoted in place; when none were staged
    the orders are rebuilt from the provider line items.
    """
    metadata_user_id = checkout_session.metadata.get("user_id")
    if not metadata_user_id:
        raise CheckoutFinalizationError("Checkout session is missing user information.", 400)

    if expected_user_id is not None and str(metadata_user_id) != str(expected_user_id):
        raise CheckoutFinalizationError("You do not have permission to finalize this order.", 403)

    if not checkout_session.is_paid:
        raise CheckoutFinalizationError(
            "Payment has not been completed for this session. Please try again after payment is confirmed.",
            400,
        )

    shipping_address = resolve_shipping_address_from_session(checkout_session)
    if not shipping_address:
        raise CheckoutFinalizationError("A valid shipping address could not be determined for this session.", 400)

    now = datetime.now(timezone.utc)
    payment_method = payment_method_for(checkout_session.id)
    existing_orders = get_orders_by_session(session, checkout_session.id)

    if existing_orders:
        for order in existing_orders:
            if is_staged(order):
                order.status = OrderStatus.PROCESSING
            order.payment_method = payment_method
            order.shipping_address = shipping_address
            order.order_date = now
            mark_updated(order)
            session.add(order)
        session.commit()
        logging.info(f"CHECKOUT >>> Session {checkout_session.id} finalized, {len(existing_orders)} staged order(s) promoted")
        return existing_orders

    items_by_store = group_line_items_by_store(checkout_session)
    if not items_by_store:
        raise CheckoutFinalizationError(
            "No purchasable items were found for this session. Please contact support.", 400
        )

    orders = [
        create_order(
            session,
            user_id=int(metadata_user_id),
            store_id=group.store_id,
            store_name=group.store_name,
            items=group.items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            checkout_session_id=checkout_session.id,
            status=OrderStatus.PROCESSING,
        )
        for group in items_by_store.values()
    ]
    session.commit()
    logging.info(f"CHECKOUT >>> Session {checkout_session.id} finalized, {len(orders)} order(s) created")
    return orders


def discard_unpaid_checkout(
    session: Session,
    gateway: MercadoPagoCheckoutGateway,
    checkout_session_id: str,
) -> int:
    """Drops the staged orders of a session whose payment will not arrive.

    Sessions that already have finalized orders, or that the provider reports
    as paid, are left untouched.
    """
    if find_finalized_orders(session, checkout_session_id):
        return 0

    checkout_session = gateway.retrieve_session(checkout_session_id)
    if checkout_session is not None and checkout_session.is_paid:
        return 0

    removed = delete_orders_by_session(session, checkout_session_id)
    session.commit()
    logging.info(f"CHECKOUT >>> Session {checkout_session_id} expired, {removed} staged order(s) removed")
    return removed

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlmodel import Session, select

from mall.configuration.settings import Configuration
from mall.database.connection import engine
from mall.enums.order_status import OrderStatus
from mall.models.order.order import Order

configuration = Configuration()


def cancel_stale_pending_orders(session: Optional[Session] = None, timeout_hours: Optional[int] = None) -> int:
    """Cancels orders still waiting for payment after the configured timeout."""
    if session is None:
        with Session(engine) as own_session:
            return cancel_stale_pending_orders(own_session, timeout_hours)

    hours = timeout_hours if timeout_hours is not None else configuration.pending_order_timeout_hours
    now = datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=hours)

    stale_orders = session.exec(
        select(Order).where(
            Order.status == OrderStatus.PENDING_PAYMENT,
            Order.created_at < cutoff,
        )
    ).all()

    for order in stale_orders:
        order.status = OrderStatus.CANCELLED
        order.updated_at = now
        session.add(order)
        logging.info(f"ORDERS >>> Order {order.id} cancelled, payment not received within {hours}h")

    session.commit()
    logging.info(f"ORDERS >>> Stale pending order cleanup done, {len(stale_orders)} cancelled")
    return len(stale_orders)

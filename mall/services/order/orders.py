from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from mall.enums.order_status import OrderStatus
from mall.models.order.order import Order
from mall.models.order.order_item import OrderItem
from mall.services.payment.types import PendingOrderItem

DEFAULT_ORDER_LIMIT = 50


def get_orders_by_session(session: Session, checkout_session_id: str) -> List[Order]:
    return list(session.exec(
        select(Order)
        .where(Order.checkout_session_id == checkout_session_id)
        .order_by(Order.id)
    ).all())


def get_orders_by_user(
    session: Session,
    user_id: int,
    status: Optional[OrderStatus] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[Order]:
    stmt = select(Order).where(Order.user_id == user_id)
    if status:
        stmt = stmt.where(Order.status == status)
    stmt = stmt.order_by(Order.order_date.desc(), Order.id.desc())
    stmt = stmt.offset(offset or 0).limit(limit or DEFAULT_ORDER_LIMIT)
    return list(session.exec(stmt).all())


def create_order(
    session: Session,
    *,
    user_id: Optional[int],
    store_id: str,
    store_name: str,
    items: List[PendingOrderItem],
    shipping_address: Dict[str, Any],
    payment_method: str,
    checkout_session_id: Optional[str],
    status: OrderStatus,
) -> Order:
    order = Order(
        user_id=user_id,
        store_id=store_id,
        store_name=store_name,
        shipping_address=shipping_address,
        payment_method=payment_method,
        checkout_session_id=checkout_session_id,
        status=status,
    )
    order.items = [
        OrderItem(
            product_id=item.product_id,
            product_name=item.product_name,
            product_image=item.product_image,
            quantity=item.quantity,
            price=item.price,
        )
        for item in items
    ]
    order.recalculate_total()
    session.add(order)
    session.flush()
    return order


def delete_orders_by_session(session: Session, checkout_session_id: str) -> int:
    orders = get_orders_by_session(session, checkout_session_id)
    for order in orders:
        session.delete(order)
    session.flush()
    return len(orders)


def mark_updated(order: Order) -> None:
    order.updated_at = datetime.now(timezone.utc)

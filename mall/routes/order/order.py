import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from mall.auth.auth import AuthRouter
from mall.core.exceptions.app_exception import AppHttpException
from mall.database.connection import get_session
from mall.enums.order_status import OrderStatus
from mall.models.order.order import Order
from mall.models.user.user import User
from mall.schemas.common import ApiResponse
from mall.schemas.order.order import OrderRead
from mall.services.order.orders import get_orders_by_user

db_session = get_session
get_current_user = AuthRouter().get_current_user


class OrderRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_api_route(
            "/api/orders",
            self.get_orders,
            methods=["GET"],
            response_model=ApiResponse[List[OrderRead]],
            response_model_by_alias=True,
        )
        self.add_api_route(
            "/api/orders/{order_id}",
            self.get_order_by_id,
            methods=["GET"],
            response_model=ApiResponse[OrderRead],
            response_model_by_alias=True,
        )

    def get_orders(
        self,
        status: Optional[OrderStatus] = Query(None),
        limit: Optional[int] = Query(None, ge=1, le=100),
        offset: Optional[int] = Query(None, ge=0),
        current_user: User = Depends(get_current_user),
        session: Session = Depends(db_session),
    ):
        orders = get_orders_by_user(session, current_user.id, status=status, limit=limit, offset=offset)
        logging.info(f"ORDERS >>> {len(orders)} order(s) listed for user {current_user.id}")

        data = [OrderRead.model_validate(order) for order in orders]
        return ApiResponse[List[OrderRead]](data=data, count=len(data))

    def get_order_by_id(
        self,
        order_id: int,
        current_user: User = Depends(get_current_user),
        session: Session = Depends(db_session),
    ):
        order = session.get(Order, order_id)
        if not order:
            raise AppHttpException(status_code=404, detail="Order not found")

        if order.user_id != current_user.id:
            raise AppHttpException(status_code=403, detail="You do not have permission to view this order")

        return ApiResponse[OrderRead](data=OrderRead.model_validate(order))

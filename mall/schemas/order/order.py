from datetime import datetime
from typing import Any, Dict, List, Optional

from mall.enums.order_status import OrderStatus
from mall.schemas.common import CamelModel

class OrderItemRead(CamelModel):
    id: int
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    quantity: int
    price: float
    subtotal: float

class OrderRead(CamelModel):
    id: int
    code: str
    user_id: Optional[int] = None
    store_id: str
    store_name: str
    items: List[OrderItemRead] = []
    total_amount: float
    status: OrderStatus
    shipping_address: Optional[Dict[str, Any]] = None
    payment_method: str
    order_date: datetime
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    tracking_number: Optional[str] = None

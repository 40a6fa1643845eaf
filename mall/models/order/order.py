from datetime import datetime, timezone
from typing import Any, Dict, Optional, List, TYPE_CHECKING
import uuid
from sqlmodel import JSON, Field, Relationship, SQLModel
from sqlalchemy import Column, Enum

from mall.enums.order_status import OrderStatus
from mall.core.utils.hash_utils import generate_hash

if TYPE_CHECKING:
    from mall.models.order.order_item import OrderItem
    from mall.models.user.user import User

ORDER_CODE_HASH_LENGTH = 10

def generate_order_code() -> str:
    timestamp = datetime.now(timezone.utc).isoformat()
    raw = f"{timestamp}-{uuid.uuid4()}"
    return generate_hash(raw)[:ORDER_CODE_HASH_LENGTH]

class Order(SQLModel, table=True):
    __tablename__ = "tb_order"

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[int] = Field(default=None, foreign_key="tb_user.id", index=True)
    user: Optional["User"] = Relationship(back_populates="orders")

    code: str = Field(default_factory=generate_order_code, index=True, unique=True)

    store_id: str = Field(index=True)
    store_name: str

    status: OrderStatus = Field(default=OrderStatus.PENDING_PAYMENT, sa_column=Column(Enum(OrderStatus), nullable=False))

    total_amount: float = Field(default=0.0)
    payment_method: str = Field(default="mercadopago_checkout:pending")
    checkout_session_id: Optional[str] = Field(default=None, index=True)

    shipping_address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))

    order_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    tracking_number: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    def recalculate_total(self) -> float:
        self.total_amount = round(sum(item.subtotal for item in self.items or []), 2)
        return self.total_amount

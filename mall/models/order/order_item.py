from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, Relationship, SQLModel

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mall.models.order.order import Order

class OrderItem(SQLModel, table=True):
    __tablename__ = "tb_order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(default=None, foreign_key="tb_order.id")

    product_id: str
    product_name: str
    product_image: Optional[str] = None

    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    order: Optional["Order"] = Relationship(back_populates="items")

    @property
    def subtotal(self) -> float:
        return round(self.quantity * self.price, 2)

from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING
from sqlmodel import Field, Relationship, SQLModel

from mall.enums.user_role import UserRole

if TYPE_CHECKING:
    from mall.models.order.order import Order

class User(SQLModel, table=True):
    __tablename__ = "tb_user"

    id: Optional[int] = Field(default=None, primary_key=True)

    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = Field(default=None)
    phone_number: Optional[str] = Field(default=None)
    password_hash: Optional[str] = Field(default=None)

    role: str = Field(default=UserRole.CUSTOMER.value)

    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = None

    orders: List["Order"] = Relationship(back_populates="user")

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

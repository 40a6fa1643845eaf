from typing import List, Optional
from pydantic import Field

from mall.schemas.address.address import ShippingAddress
from mall.schemas.common import CamelModel

class CheckoutItem(CamelModel):
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    quantity: int = 0
    price: float = 0.0
    store_id: str
    store_name: str

class CheckoutPayload(CamelModel):
    items: List[CheckoutItem] = []
    shipping_address: Optional[ShippingAddress] = None

class CheckoutSessionResponse(CamelModel):
    success: bool
    message: Optional[str] = None
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None

class CheckoutCompleteRequest(CamelModel):
    session_id: Optional[str] = None

class CheckoutCompletionResponse(CamelModel):
    success: bool
    message: str
    order_ids: List[int] = Field(default_factory=list)

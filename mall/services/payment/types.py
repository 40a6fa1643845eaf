from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUS_UNPAID = "unpaid"


@dataclass
class CheckoutLineItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    product_image: Optional[str] = None


@dataclass
class CheckoutSession:
    """Provider-neutral view of a hosted checkout session."""

    id: str
    url: Optional[str] = None
    payment_status: str = PAYMENT_STATUS_UNPAID
    metadata: Dict[str, Any] = field(default_factory=dict)
    # Address captured by the provider, keyed like ShippingAddress fields
    shipping_details: Optional[Dict[str, Any]] = None
    line_items: List[CheckoutLineItem] = field(default_factory=list)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_PAID


@dataclass
class PendingOrderItem:
    product_id: str
    product_name: str
    quantity: int
    price: float
    product_image: Optional[str] = None


@dataclass
class PendingOrderGroup:
    store_id: str
    store_name: str
    items: List[PendingOrderItem] = field(default_factory=list)


@dataclass
class PaymentNotification:
    """A provider payment resolved to the checkout session it belongs to."""

    payment_id: str
    status: str
    checkout_session_id: Optional[str] = None

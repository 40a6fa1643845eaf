from typing import Dict, List, Optional, Tuple

from mall.schemas.payment.payment import CheckoutItem, CheckoutPayload
from mall.services.payment.types import PendingOrderGroup, PendingOrderItem


def sanitize_items(items: List[CheckoutItem]) -> List[CheckoutItem]:
    sanitized = []
    for item in items:
        image = (item.product_image or "").strip() or None
        cleaned = item.model_copy(update={"product_image": image})
        if cleaned.quantity > 0 and cleaned.price > 0:
            sanitized.append(cleaned)
    return sanitized


def validate_checkout_payload(payload: CheckoutPayload) -> Tuple[bool, Optional[str]]:
    if not payload.items:
        return False, "Your cart is empty."

    if not sanitize_items(payload.items):
        return False, "All items in your cart have invalid quantities or prices."

    if payload.shipping_address is None:
        return False, "Please select or provide a shipping address."

    if not payload.shipping_address.is_complete():
        return False, "Please complete all required shipping address fields."

    return True, None


def group_items_by_store(items: List[CheckoutItem]) -> Dict[str, PendingOrderGroup]:
    groups: Dict[str, PendingOrderGroup] = {}

    for item in items:
        if item.store_id not in groups:
            groups[item.store_id] = PendingOrderGroup(store_id=item.store_id, store_name=item.store_name)

        groups[item.store_id].items.append(
            PendingOrderItem(
                product_id=item.product_id,
                product_name=item.product_name,
                product_image=item.product_image,
                quantity=item.quantity,
                price=item.price,
            )
        )

    return groups

from typing import Dict

from mall.integration.mercadopago import DEFAULT_STORE_NAME
from mall.services.payment.types import CheckoutSession, PendingOrderGroup, PendingOrderItem


def group_line_items_by_store(checkout_session: CheckoutSession) -> Dict[str, PendingOrderGroup]:
    """Rebuilds per-store order groups from what the provider actually charged."""
    groups: Dict[str, PendingOrderGroup] = {}

    for line_item in checkout_session.line_items:
        if line_item.quantity <= 0:
            continue
        if not line_item.store_id or line_item.unit_price <= 0:
            continue

        if line_item.store_id not in groups:
            groups[line_item.store_id] = PendingOrderGroup(
                store_id=line_item.store_id,
                store_name=line_item.store_name or DEFAULT_STORE_NAME,
            )

        groups[line_item.store_id].items.append(
            PendingOrderItem(
                product_id=line_item.product_id,
                product_name=line_item.product_name or "Product",
                product_image=line_item.product_image,
                quantity=line_item.quantity,
                price=line_item.unit_price,
            )
        )

    return groups

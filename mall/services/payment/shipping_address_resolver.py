import json
import logging
from typing import Any, Dict, Optional

from mall.services.payment.types import CheckoutSession

REQUIRED_FIELDS = ("street_address", "city", "state_province", "zip_code", "country")


def _pick(data: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return ""


def _normalize(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    address = {
        "street_address": _pick(data, "streetAddress", "street_address"),
        "apt_number": _pick(data, "aptNumber", "apt_number") or None,
        "city": _pick(data, "city"),
        "state_province": _pick(data, "stateProvince", "state_province"),
        "zip_code": _pick(data, "zipCode", "zip_code"),
        "country": _pick(data, "country"),
    }
    if all(address[field] for field in REQUIRED_FIELDS):
        return address
    return None


def resolve_shipping_address_from_session(checkout_session: CheckoutSession) -> Optional[Dict[str, Any]]:
    """Address stored in the session metadata at creation time, else the one the provider captured."""
    metadata_address = checkout_session.metadata.get("shipping_address")

    if metadata_address:
        try:
            parsed = json.loads(metadata_address) if isinstance(metadata_address, str) else metadata_address
        except ValueError as e:
            logging.warning(f"CHECKOUT >>> Unable to parse shipping address metadata -> {e}")
            parsed = None

        if isinstance(parsed, dict):
            address = _normalize(parsed)
            if address:
                return address

    if checkout_session.shipping_details:
        return _normalize(checkout_session.shipping_details)

    return None
